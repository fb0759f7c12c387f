"""Interactive terminal chat loop.

The server keeps no history, so the client resends the whole
conversation with every turn.
"""

import logging
import sys
from typing import TextIO

import httpx

from .client import ChatAPIClient, ChatAPIError
from .config import CLIConfig

logger = logging.getLogger(__name__)

EXIT_COMMANDS = ("exit", "quit", "q")
RESET_COMMAND = "/reset"


class WheelchatCLI:
    """Read a line, stream the reply, repeat."""

    def __init__(
        self,
        config: CLIConfig,
        input_stream: TextIO = sys.stdin,
        output_stream: TextIO = sys.stdout,
        client: ChatAPIClient | None = None,
    ):
        self.config = config
        self.input_stream = input_stream
        self.output_stream = output_stream
        self.client = client or ChatAPIClient(config)
        self.history: list[dict[str, str]] = []

    async def run(self) -> None:
        try:
            self._print_welcome()
            while True:
                try:
                    query = self._get_user_input()
                except EOFError:
                    self._print("\nGoodbye!\n")
                    break
                except KeyboardInterrupt:
                    self._print("\n\nInterrupted. Use 'exit' or 'quit' to exit.\n")
                    continue

                if not query.strip():
                    continue
                if query.strip().lower() in EXIT_COMMANDS:
                    self._print("Goodbye!\n")
                    break
                if query.strip() == RESET_COMMAND:
                    self.history.clear()
                    self._print("Conversation cleared.\n\n")
                    continue

                await self.process_query(query)
        finally:
            await self.client.close()

    async def process_query(self, query: str) -> str:
        """Send *query* with the history so far; return the full reply."""
        self.history.append({"role": "user", "content": query})
        parts: list[str] = []
        try:
            async for chunk in self.client.chat(self.history):
                parts.append(chunk)
                self._print(chunk)
        except ChatAPIError as e:
            self.history.pop()
            self._print(f"\nError: {e}\n\n")
            return ""

        reply = "".join(parts)
        self.history.append({"role": "assistant", "content": reply})
        self._print("\n\n")
        return reply

    def _get_user_input(self) -> str:
        self._print("> ")
        line = self.input_stream.readline()
        if not line:
            raise EOFError
        return line.rstrip("\n\r")

    def _print_welcome(self) -> None:
        self._print("Wheelchat CLI\n")
        self._print(f"Connected to: {self.config.chat_url}\n")
        self._print(
            f"Type a message and press Enter. '{RESET_COMMAND}' clears the "
            "conversation, 'exit' quits.\n\n"
        )

    def _print(self, text: str) -> None:
        self.output_stream.write(text)
        self.output_stream.flush()


async def main(config: CLIConfig, debug: bool = False) -> None:
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.WARNING,
        format="%(levelname)s: %(message)s",
        stream=sys.stderr,
    )
    cli = WheelchatCLI(config)
    try:
        info = await cli.client.health()
        logger.debug("Server health: %s", info)
    except httpx.HTTPError:
        logger.warning("Health check against %s failed", config.base_url)
    await cli.run()
