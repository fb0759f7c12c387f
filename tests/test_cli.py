"""Tests for the terminal client."""

import io
import json

import httpx
import pytest

from cli.client import ChatAPIClient, ChatAPIError
from cli.config import CLIConfig, load_build_context
from cli.wheelchat_cli import WheelchatCLI


def _client(handler, **config) -> ChatAPIClient:
    return ChatAPIClient(CLIConfig(**config), transport=httpx.MockTransport(handler))


class TestChatAPIClient:
    @pytest.mark.asyncio
    async def test_streams_text_and_sends_context(self):
        seen: list[dict] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(json.loads(request.content))
            return httpx.Response(200, text="Rear hub is in stock.")

        client = _client(handler, build_context={"position": "rear"}, is_admin=True)
        chunks = [c async for c in client.chat([{"role": "user", "content": "hub?"}])]
        await client.close()

        assert "".join(chunks) == "Rear hub is in stock."
        assert seen == [
            {
                "messages": [{"role": "user", "content": "hub?"}],
                "buildContext": {"position": "rear"},
                "isAdmin": True,
            }
        ]

    @pytest.mark.asyncio
    async def test_error_body_is_raised(self):
        client = _client(lambda request: httpx.Response(502, json={"error": "model down"}))
        with pytest.raises(ChatAPIError, match="HTTP 502: model down"):
            async for _ in client.chat([{"role": "user", "content": "hi"}]):
                pass
        await client.close()

    @pytest.mark.asyncio
    async def test_connection_error_is_raised(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("refused", request=request)

        client = _client(handler)
        with pytest.raises(ChatAPIError, match="Connection error"):
            async for _ in client.chat([{"role": "user", "content": "hi"}]):
                pass
        await client.close()


class TestWheelchatCLI:
    @pytest.mark.asyncio
    async def test_history_is_resent_each_turn(self):
        bodies: list[dict] = []

        def handler(request: httpx.Request) -> httpx.Response:
            bodies.append(json.loads(request.content))
            return httpx.Response(200, text=f"reply {len(bodies)}")

        config = CLIConfig()
        output = io.StringIO()
        cli = WheelchatCLI(
            config,
            input_stream=io.StringIO("first\nsecond\nexit\n"),
            output_stream=output,
            client=ChatAPIClient(config, transport=httpx.MockTransport(handler)),
        )

        await cli.run()

        assert [m["content"] for m in bodies[1]["messages"]] == ["first", "reply 1", "second"]
        assert "reply 2" in output.getvalue()
        assert output.getvalue().endswith("Goodbye!\n")

    @pytest.mark.asyncio
    async def test_failed_turn_is_not_kept(self):
        config = CLIConfig()
        cli = WheelchatCLI(
            config,
            output_stream=io.StringIO(),
            client=ChatAPIClient(
                config,
                transport=httpx.MockTransport(lambda request: httpx.Response(500, text="oops")),
            ),
        )

        assert await cli.process_query("hello") == ""
        assert cli.history == []
        await cli.client.close()


def test_load_build_context(tmp_path):
    path = tmp_path / "build.json"
    path.write_text('{"position": "front", "axleSpacing": "boost"}', encoding="utf-8")
    assert load_build_context(path) == {"position": "front", "axleSpacing": "boost"}
    assert load_build_context(None) == {}

    path.write_text("[1, 2]", encoding="utf-8")
    with pytest.raises(ValueError):
        load_build_context(path)
