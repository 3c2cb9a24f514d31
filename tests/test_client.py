import json
import os
import threading
import unittest
from unittest.mock import patch

import httpx

from codybot import CompletionClient, Config, Message
from codybot.core.errors import ResponseStatusError, StreamCancelled, TransportError
from codybot.core.events import Done, Error, Token

HISTORY = [Message("system", "Be brief."), Message("user", "Hello")]


def sse(*contents, done=True):
    lines = [
        "data: %s\n\n" % json.dumps({"choices": [{"delta": {"content": c}}]})
        for c in contents
    ]
    if done:
        lines.append("data: [DONE]\n\n")
    return "".join(lines).encode("utf-8")


class BrokenStream(httpx.SyncByteStream):
    """Response body that dies after the first frame."""

    def __iter__(self):
        yield sse("Hel", done=False)
        raise httpx.ReadError("connection reset by peer")


class TestCompletionClient(unittest.TestCase):
    def setUp(self):
        self.requests = []

    def make_client(self, respond, api_key=""):
        def handler(request):
            self.requests.append(request)
            return respond(request)

        config = Config(base_url="http://llm.test/v1/", model="test-model", api_key=api_key)
        http_client = httpx.Client(transport=httpx.MockTransport(handler))
        self.addCleanup(http_client.close)
        return CompletionClient.from_config(config, http_client=http_client)

    def test_streams_tokens_then_done(self):
        client = self.make_client(lambda r: httpx.Response(200, content=sse("Hel", "lo")))

        events = list(client.stream_events(HISTORY))

        self.assertEqual(events, [Token("Hel"), Token("lo"), Done()])

    def test_request_shape(self):
        """POST to <base>/chat/completions with the streaming body"""
        client = self.make_client(lambda r: httpx.Response(200, content=sse("ok")))

        list(client.stream_events(HISTORY))

        request = self.requests[0]
        self.assertEqual(request.method, "POST")
        self.assertEqual(str(request.url), "http://llm.test/v1/chat/completions")
        self.assertTrue(request.headers["content-type"].startswith("application/json"))
        self.assertNotIn("authorization", request.headers)
        self.assertEqual(
            json.loads(request.content),
            {
                "model": "test-model",
                "messages": [
                    {"role": "system", "content": "Be brief."},
                    {"role": "user", "content": "Hello"},
                ],
                "stream": True,
                "temperature": 0.2,
            },
        )

    def test_default_config_streams_without_credentials(self):
        """The default empty key works and sends no Authorization header"""
        environ = {k: v for k, v in os.environ.items() if k != "OPENAI_API_KEY"}
        http_client = httpx.Client(
            transport=httpx.MockTransport(
                lambda r: self.requests.append(r) or httpx.Response(200, content=sse("ok"))
            )
        )
        self.addCleanup(http_client.close)

        with patch.dict(os.environ, environ, clear=True):
            client = CompletionClient.from_config(Config(), http_client=http_client)
            events = list(client.stream_events(HISTORY))

        self.assertEqual(events, [Token("ok"), Done()])
        self.assertEqual(str(self.requests[0].url), "http://localhost:11434/v1/chat/completions")
        self.assertNotIn("authorization", self.requests[0].headers)

    def test_bearer_header_when_key_configured(self):
        client = self.make_client(lambda r: httpx.Response(200, content=sse("ok")), api_key="sk-test")

        list(client.stream_events(HISTORY))

        self.assertEqual(self.requests[0].headers["authorization"], "Bearer sk-test")

    def test_close_without_sentinel_is_done(self):
        client = self.make_client(lambda r: httpx.Response(200, content=sse("partial", done=False)))

        self.assertEqual(list(client.stream_events(HISTORY)), [Token("partial"), Done()])

    def test_error_status_reports_status_and_body(self):
        client = self.make_client(lambda r: httpx.Response(500, content=b"boom"))

        events = list(client.stream_events(HISTORY))

        self.assertEqual(len(events), 1)
        self.assertIsInstance(events[0], Error)
        self.assertIsInstance(events[0].cause, ResponseStatusError)
        self.assertIn("500", events[0].message)
        self.assertIn("boom", events[0].message)
        self.assertEqual(len(self.requests), 1)  # no retry

    def test_error_body_is_capped(self):
        client = self.make_client(lambda r: httpx.Response(502, content=b"x" * 20000))

        (event,) = list(client.stream_events(HISTORY))

        self.assertEqual(event.cause.status_code, 502)
        self.assertEqual(len(event.cause.body), ResponseStatusError.BODY_LIMIT)

    def test_connection_failure(self):
        def refuse(request):
            raise httpx.ConnectError("connection refused", request=request)

        client = self.make_client(refuse)

        (event,) = list(client.stream_events(HISTORY))

        self.assertIsInstance(event.cause, TransportError)
        self.assertIn("connection refused", event.message)

    def test_read_failure_mid_stream(self):
        client = self.make_client(lambda r: httpx.Response(200, stream=BrokenStream()))

        events = list(client.stream_events(HISTORY))

        self.assertEqual(events[0], Token("Hel"))
        self.assertEqual(len(events), 2)
        self.assertIsInstance(events[1].cause, TransportError)
        self.assertIn("connection reset by peer", events[1].message)

    def test_cancelled_stream_ends_with_error(self):
        client = self.make_client(lambda r: httpx.Response(200, content=sse("a", "b")))
        cancel = threading.Event()
        cancel.set()

        (event,) = list(client.stream_events(HISTORY, cancel))

        self.assertIsInstance(event.cause, StreamCancelled)

    def test_start_relays_from_background_thread(self):
        client = self.make_client(lambda r: httpx.Response(200, content=sse("Hi", "!")))
        events = []
        history = list(HISTORY)

        thread = client.start(history, events.append)
        # The call works on the snapshot taken at start
        history.append(Message("user", "changed my mind"))
        thread.join(5)

        self.assertFalse(thread.is_alive())
        self.assertEqual(events, [Token("Hi"), Token("!"), Done()])
        self.assertEqual(len(json.loads(self.requests[0].content)["messages"]), 2)

    def test_worker_crash_still_relays_terminal_event(self):
        client = self.make_client(lambda r: httpx.Response(200, content=sse("ok")))
        events = []

        with patch.object(CompletionClient, "stream_events", side_effect=RuntimeError("kaput")):
            with self.assertLogs("codybot.core.client", level="ERROR"):
                client.start(HISTORY, events.append).join(5)

        self.assertEqual(len(events), 1)
        self.assertIsInstance(events[0], Error)
        self.assertIn("kaput", events[0].message)


if __name__ == "__main__":
    unittest.main()
