import queue
import unittest
from pathlib import Path
from unittest.mock import Mock, patch

from codybot import ChatCLI, ChatSession, Config, ProjectInstructions


class BaseChatCLITest(unittest.TestCase):
    def setUp(self):
        # Silence the rich console used for rendering
        self.console_patcher = patch("codybot.cli.console")
        self.console = self.console_patcher.start()

        # Spinner threads would write straight to stdout
        self.spinner_patcher = patch("codybot.cli.Spinner")
        self.spinner = self.spinner_patcher.start()

        # The completion client only needs ``start``; tests drive the relay by hand
        self.mock_client = Mock()

        self.config = Config(base_url="http://llm.test/v1", model="test-model")
        self.instructions = ProjectInstructions(
            path=Path("agents.md"), content="Use tabs.", exists=True
        )
        self.inbox = queue.Queue()
        self.session = ChatSession(self.mock_client, self.instructions, self.inbox.put)

        # Create ChatCLI instance
        self.chat_cli = ChatCLI(self.session, self.config, self.inbox)

    def tearDown(self):
        self.console_patcher.stop()
        self.spinner_patcher.stop()

    def relay(self, *events, call_index=-1):
        """Push *events* through the relay of a started stream and apply them."""
        relay = self.mock_client.start.call_args_list[call_index].args[1]
        for event in events:
            relay(event)
        self.drain()

    def drain(self):
        while not self.inbox.empty():
            self.chat_cli.dispatch(self.inbox.get_nowait())

    def printed(self):
        """Everything written to the console via ``out`` so far."""
        return "".join(call.args[0] for call in self.console.out.call_args_list)
