#!/usr/bin/env python3
"""
Minimal interactive IRC client built on ircflow.

Every line read from stdin is parsed as a raw IRC line and sent as-is.
Unhandled inbound messages are printed together with their hints.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import pprint
import sys
from typing import Any

from ircflow.config import load_config
from ircflow.errors import InternalError, MalformedMessage, log_error
from ircflow.irc import AsyncIRC, Message
from ircflow.logging_config import LoggerConfigurator
from ircflow.logs.logger import logger


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Interactive IRC client")
    parser.add_argument("-s", "--server", help="Server hostname")
    parser.add_argument("-p", "--port", type=int, help="Server port")
    parser.add_argument("-n", "--nick", help="Nick to log in with")
    parser.add_argument("--ssl", action="store_true", default=None, help="Use TLS")
    parser.add_argument("-c", "--config", help="JSON configuration file")
    return parser.parse_args(argv)


def print_unhandled(command: str, message: Message, hints: dict[str, Any]) -> bool:
    if hints["handled"]:
        return False
    print(f"<<{command}>>: {' '.join(message.args)}")
    for line in pprint.pformat(hints).splitlines():
        print(f"| {line}")
    return True


async def read_stdin(irc: AsyncIRC) -> None:
    loop = asyncio.get_running_loop()
    while True:
        line = await loop.run_in_executor(None, sys.stdin.readline)
        if not line:
            return
        line = line.rstrip("\r\n")
        if not line:
            continue
        try:
            irc.send_message(Message.from_line(line))
        except MalformedMessage as e:
            print(f"!! {e}", file=sys.stderr)
        await irc.drain()


async def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    try:
        config = load_config(
            args.config, host=args.server, port=args.port, nick=args.nick, ssl=args.ssl
        )
    except ValueError as e:
        log_error("Configuration error", e)
        return 2
    if not config.host or not config.nick:
        logger.log_event("app", "missing_settings", level=logging.ERROR)
        return 2

    irc = AsyncIRC(config)
    irc.client.register_generic(print_unhandled)
    irc.client.on_ping_timeout = lambda client: logger.log_event(
        "app", "server_unresponsive", level=logging.WARNING, nick=client.nick
    )

    try:
        await irc.login()
        logger.log_event("app", "ready", nick=irc.client.nick, server=config.host)
        stdin_task = asyncio.create_task(read_stdin(irc))
        closed_task = asyncio.create_task(irc.wait_closed())
        done, pending = await asyncio.wait(
            {stdin_task, closed_task}, return_when=asyncio.FIRST_COMPLETED
        )
        for task in pending:
            task.cancel()
    except (InternalError, OSError, TimeoutError) as e:
        log_error("Client error", e)
        return 1
    finally:
        await irc.disconnect()
        logger.log_event("app", "shutdown")
    return 0


if __name__ == "__main__":
    LoggerConfigurator().configure()
    try:
        sys.exit(asyncio.run(main()))
    except KeyboardInterrupt:
        logger.log_event("app", "interrupted")
        sys.exit(0)
