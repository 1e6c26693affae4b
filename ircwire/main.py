#!/usr/bin/env python3
"""
Command-line entry point: a line-mode IRC console on top of the client core.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys

from .config import IRCConfig
from .errors import ConnectError, IRCError, log_error
from .irc import ChannelRoster, EventMessage, IRCClient
from .irc import handlers as ev
from .logging_config import LoggerConfigurator
from .logs.logger import logger

USAGE_EXAMPLES = """examples:
  ircwire irc.libera.chat/7000 myusername
  ircwire irc.libera.chat:6667 myusername
  ircwire -v irc.libera.chat/7000 myusername
"""


def format_event(message: EventMessage) -> str | None:
    """Render one event as a console line; None for events not shown."""
    data = message.data
    kind = message.type
    if kind == ev.PRIVMSG:
        return f"{message.clock} {data['target']} <{data['nick']}> {data['message']}"
    if kind == ev.NOTICE:
        return f"{message.clock} -{data['sender']}- {data['message']}"
    if kind == ev.JOIN:
        return f"{message.clock} * {data['nick']} joined {data['channel']}"
    if kind == ev.PART:
        return f"{message.clock} * {data['nick']} left {data['channel']}"
    if kind == ev.QUIT:
        reason = data.get("reason")
        suffix = f" ({reason})" if reason else ""
        return f"{message.clock} * {data['nick']} has quit{suffix}"
    if kind == ev.LIST:
        return f"{message.clock} {data['channel']:<20} [{data['users']}] {data['topic']}"
    if kind in (ev.ERROR, ev.TLS_ERROR):
        return f"{message.clock} ! {data.get('message', '')}"
    if kind in (ev.NAMES, ev.ENDOFNAMES):
        return None
    if "message" in data:
        return f"{message.clock} {data['message']}"
    return None


class ConsoleSession:
    """Feeds events to stdout and user input to the client."""

    def __init__(self, client: IRCClient, out=None) -> None:
        self.client = client
        self.roster = ChannelRoster(own_nick=client.nick)
        self.channel = ""
        self.out = out or sys.stdout

    def show(self, text: str) -> None:
        print(text, file=self.out, flush=True)

    def on_event(self, message: EventMessage) -> None:
        self.roster.own_nick = self.client.nick
        self.roster.apply(message)
        if message.type == ev.JOIN and message.get("nick") == self.client.nick:
            self.channel = message.get("channel")
        elif message.type == ev.PART and message.get("nick") == self.client.nick:
            if self.channel == message.get("channel"):
                self.channel = next(iter(self.roster.channels), "")
        elif message.type == ev.ENDOFNAMES:
            users = self.roster.users(message.get("channel"))
            self.show(f"{message.clock} * {message.get('channel')}: {' '.join(users)}")
        text = format_event(message)
        if text is not None:
            self.show(text)

    async def consume(self) -> None:
        async for message in self.client:
            self.on_event(message)

    async def handle_input(self, text: str) -> bool:
        """Run one line of user input; False once the user asked to quit."""
        text = text.strip()
        if not text:
            return True
        if not text.startswith("/"):
            if not self.channel:
                self.show("! Not in a channel")
                return True
            await self.client.privmsg(self.channel, text)
            return True

        name, _, rest = text.partition(" ")
        args = rest.split()
        command = name.lower()
        if command == "/quit":
            await self.client.quit(rest.strip() or "Goodbye!")
            return False
        if command == "/join":
            if not args:
                self.show("! Usage: /join <channel>")
                return True
            channel = args[0] if args[0].startswith("#") else f"#{args[0]}"
            await self.client.join(channel)
            self.show(f"* Joining {channel}...")
        elif command == "/part":
            if not self.channel:
                self.show("! Not in a channel")
                return True
            await self.client.part(self.channel)
            self.show(f"* Leaving {self.channel}...")
        elif command == "/list":
            await self.client.raw("LIST")
            self.show("* Fetching channel list...")
        elif command == "/msg":
            if len(args) < 2:
                self.show("! Usage: /msg <nick> <message>")
                return True
            target, _, message = rest.strip().partition(" ")
            await self.client.privmsg(target, message.strip())
        elif command == "/raw":
            await self.client.raw(rest.strip())
        else:
            self.show(f"! Unknown command: {name}")
        return True


async def _stdin_reader() -> asyncio.StreamReader:
    loop = asyncio.get_running_loop()
    reader = asyncio.StreamReader()
    await loop.connect_read_pipe(lambda: asyncio.StreamReaderProtocol(reader), sys.stdin)
    return reader


async def run_console(config: IRCConfig, verbose: bool = False) -> int:
    client = IRCClient(config, verbose=verbose)
    session = ConsoleSession(client)
    consumer = asyncio.create_task(session.consume())
    try:
        await client.connect()
    except ConnectError as e:
        log_error("Connection failed", e)
        consumer.cancel()
        return 1

    reader = await _stdin_reader()
    try:
        while True:
            data = await reader.readline()
            if not data:
                break
            try:
                if not await session.handle_input(data.decode("utf-8", errors="replace")):
                    break
            except IRCError as e:
                session.show(f"! {e}")
    finally:
        await client.aclose()
        consumer.cancel()
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="ircwire",
        description="Minimal IRC console client.",
        epilog=USAGE_EXAMPLES,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("server", help="server address as host/port or host:port")
    parser.add_argument("nick", help="nickname to register with")
    parser.add_argument(
        "-v", "--verbose", action="store_true", help="show every IRC protocol line"
    )
    parser.add_argument(
        "-k", "--insecure", action="store_true", help="skip TLS certificate verification"
    )
    return parser


def run(argv: list[str] | None = None) -> None:
    """Synchronous entry point for the console client.

    Raises:
        SystemExit: With the console's exit status.
    """
    args = build_parser().parse_args(argv)
    LoggerConfigurator({"verbose": args.verbose}).configure()
    if args.verbose:
        logger.set_level(logging.DEBUG)
    try:
        config = IRCConfig.from_address(args.server, args.nick, tls_verify=not args.insecure)
    except ValueError as e:
        print(f"Invalid arguments: {e}", file=sys.stderr)
        sys.exit(2)
    try:
        sys.exit(asyncio.run(run_console(config, verbose=args.verbose)))
    except KeyboardInterrupt:
        sys.exit(0)


if __name__ == "__main__":
    run()
