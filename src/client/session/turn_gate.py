"""Local input gating from the last known snapshot.

The server stays authoritative and may still reject a gated move with
invalid_move; these checks only keep obviously useless moves off the wire.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from client.messaging.types import BOARD_COLUMNS, CellState
from client.session.models import SessionStatus

if TYPE_CHECKING:
    from client.messaging.types import GameSnapshot
    from client.session.models import SessionContext


def player_number(snapshot: GameSnapshot, player_id: str | None) -> int | None:
    """Return 1 or 2 for a seated player id, None for anyone else."""
    if player_id is None:
        return None
    if player_id == snapshot.player1.id:
        return 1
    if snapshot.player2 is not None and player_id == snapshot.player2.id:
        return 2
    return None


def is_your_turn(context: SessionContext) -> bool:
    if context.status is not SessionStatus.PLAYING or context.snapshot is None or context.identity is None:
        return False
    number = player_number(context.snapshot, context.identity.player_id)
    return number is not None and context.snapshot.current_turn == number


def is_column_full(snapshot: GameSnapshot, column: int) -> bool:
    return snapshot.cell(0, column) is not CellState.EMPTY


def can_move(context: SessionContext, column: int) -> bool:
    """Check whether a move to column may be sent."""
    if not (0 <= column < BOARD_COLUMNS):
        return False
    if not is_your_turn(context) or context.snapshot is None:
        return False
    return not is_column_full(context.snapshot, column)


def playable_columns(context: SessionContext) -> list[int]:
    return [column for column in range(BOARD_COLUMNS) if can_move(context, column)]
