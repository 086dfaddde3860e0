import asyncio
import time
from collections.abc import Callable, Sequence

from client.messaging.types import BOARD_COLUMNS, BOARD_ROWS, CellState, GameSnapshot, GameStatus, PlayerInfo

ALICE = PlayerInfo(id="p1", username="Ada")
BOB = PlayerInfo(id="p2", username="Bob")
BOT = PlayerInfo(id="bot-1", username="Bot", is_bot=True)


def empty_board() -> list[list[int]]:
    return [[CellState.EMPTY] * BOARD_COLUMNS for _ in range(BOARD_ROWS)]


def make_snapshot(
    game_id: str = "game1",
    *,
    board: Sequence[Sequence[int]] | None = None,
    player1: PlayerInfo = ALICE,
    player2: PlayerInfo | None = BOB,
    current_turn: int = 1,
    winner: PlayerInfo | None = None,
    winning_line: Sequence[tuple[int, int]] | None = None,
    state: GameStatus = GameStatus.PLAYING,
) -> GameSnapshot:
    """Build a GameSnapshot with sensible defaults for tests."""
    return GameSnapshot(
        id=game_id,
        board=board if board is not None else empty_board(),
        player1=player1,
        player2=player2,
        current_turn=current_turn,
        winner=winner,
        winning_line=winning_line,
        state=state,
    )


def board_with_full_column(column: int) -> list[list[int]]:
    board = empty_board()
    for row in range(BOARD_ROWS):
        board[row][column] = CellState.PLAYER1 if row % 2 == 0 else CellState.PLAYER2
    return board


async def wait_until(predicate: Callable[[], bool], timeout: float = 1.0) -> None:
    """Yield to the event loop until predicate() holds or the timeout passes."""
    deadline = time.monotonic() + timeout
    while not predicate():
        if time.monotonic() > deadline:
            raise AssertionError("condition not met within timeout")
        await asyncio.sleep(0.001)
