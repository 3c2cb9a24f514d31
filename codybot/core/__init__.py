from .config import Config
from .events import Done, Error, Message, StreamEvent, StreamUpdate, Token
from .instructions import BASE_INSTRUCTIONS, ProjectInstructions, build_system_prompt
from .session import ChatSession, SessionState

__all__ = [
    "BASE_INSTRUCTIONS",
    "ChatSession",
    "Config",
    "Done",
    "Error",
    "Message",
    "ProjectInstructions",
    "SessionState",
    "StreamEvent",
    "StreamUpdate",
    "Token",
    "build_system_prompt",
]
