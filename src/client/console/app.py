"""Line-oriented console front end for the game client.

Usage:
    four-in-a-row
    four-in-a-row --ws-url ws://game.example:8080/ws --api-url http://game.example:8080/api
"""

from __future__ import annotations

import argparse
import asyncio
import contextlib
from collections.abc import Callable
from pathlib import Path

import structlog
from pydantic import ValidationError

from client.connection.websocket import connect_websocket
from client.console.render import render_board, render_leaderboard, render_status
from client.leaderboard.poller import LeaderboardClient, LeaderboardPoller
from client.session.exceptions import SessionError
from client.session.manager import GameSession
from client.session.models import SessionContext
from client.session.turn_gate import is_your_turn
from client.settings import ClientSettings
from shared.logging import setup_logging

logger = structlog.get_logger()

HELP_TEXT = """Commands:
  join <username>   enter the matchmaking queue
  move <column>     drop a disc (a bare column number works too)
  again             start over after a finished game
  leave             abandon the current session
  board             show the current game
  leaders           show the leaderboard
  quit              exit"""

Writer = Callable[[str], None]


def create_session(settings: ClientSettings) -> GameSession:
    return GameSession(connect_websocket, settings)


def create_poller(settings: ClientSettings) -> LeaderboardPoller:
    client = LeaderboardClient(settings.api_url, timeout=settings.leaderboard_timeout_seconds)
    return LeaderboardPoller(client, interval=settings.leaderboard_poll_seconds)


async def handle_command(
    session: GameSession,
    poller: LeaderboardPoller,
    line: str,
    write: Writer = print,
) -> bool:
    """Run one command line. Returns False when the user asked to quit."""
    command, _, argument = line.strip().partition(" ")
    command = command.lower()
    argument = argument.strip()

    if not command:
        return True
    if command in ("quit", "exit"):
        return False

    try:
        if command == "join":
            await session.join(argument)
        elif command == "move" or command.isdigit():
            await _move(session, argument if command == "move" else command, write)
        elif command == "again":
            await session.play_again()
        elif command == "leave":
            await session.leave()
        elif command == "board":
            write(_render_board_or_hint(session.context))
        elif command == "leaders":
            write(render_leaderboard(poller.entries, loading=poller.loading, error=poller.error))
        elif command == "help":
            write(HELP_TEXT)
        else:
            write(f"Unknown command: {command}. Type 'help' for a list.")
    except SessionError as e:
        write(str(e))
    return True


async def _move(session: GameSession, argument: str, write: Writer) -> None:
    try:
        column = int(argument)
    except ValueError:
        write("Usage: move <column>")
        return
    if await session.move(column):
        return
    if not session.is_your_turn:
        write("Not your turn.")
    else:
        write(f"Column {column} is not playable.")


def _render_board_or_hint(context: SessionContext) -> str:
    if context.snapshot is None:
        return "No game in progress."
    return render_board(context.snapshot, can_play=is_your_turn(context))


async def run(settings: ClientSettings, write: Writer = print) -> None:
    session = create_session(settings)
    poller = create_poller(settings)

    def on_change(context: SessionContext) -> None:
        write(render_status(context))

    session.subscribe(on_change)
    poller.start()
    write(HELP_TEXT)
    try:
        while True:
            try:
                line = await asyncio.to_thread(input, "> ")
            except EOFError:
                break
            if not await handle_command(session, poller, line, write):
                break
    finally:
        await poller.stop()
        await session.aclose()
        logger.info("client stopped")


def main() -> None:
    parser = argparse.ArgumentParser(description="Play four-in-a-row from the terminal")
    parser.add_argument("--ws-url", help="game server WebSocket URL (default: CLIENT_WS_URL or localhost)")
    parser.add_argument("--api-url", help="REST base URL for the leaderboard (default: CLIENT_API_URL or localhost)")
    parser.add_argument("--log-dir", help="directory for a timestamped log file")
    args = parser.parse_args()

    overrides = {
        key: value
        for key, value in (("ws_url", args.ws_url), ("api_url", args.api_url), ("log_dir", args.log_dir))
        if value is not None
    }
    try:
        settings = ClientSettings(**overrides)
    except ValidationError as e:
        parser.error(str(e))

    setup_logging(log_dir=Path(settings.log_dir) if settings.log_dir else None)
    with contextlib.suppress(KeyboardInterrupt):
        asyncio.run(run(settings))


if __name__ == "__main__":
    main()
