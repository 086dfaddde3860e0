"""Text projections of session state. Pure functions, no I/O."""

from client.leaderboard.types import LeaderboardEntry
from client.messaging.types import BOARD_COLUMNS, BOARD_ROWS, CellState, GameSnapshot, PlayerInfo
from client.session.models import SessionContext, SessionStatus
from client.session.transitions import player_color
from client.session.turn_gate import is_column_full, is_your_turn

_DISCS = {CellState.EMPTY: ".", CellState.PLAYER1: "R", CellState.PLAYER2: "Y"}
_MEDALS = {1: "1st", 2: "2nd", 3: "3rd"}


def render_board(snapshot: GameSnapshot, can_play: bool = False) -> str:
    """
    Draw the board as a text grid, top row first.

    Winning cells are wrapped in brackets. When can_play is set, a "v" marks
    each column that still accepts a disc.
    """
    lines = []
    indicators = []
    for col in range(BOARD_COLUMNS):
        marker = "v" if can_play and not is_column_full(snapshot, col) else " "
        indicators.append(f" {marker} ")
    lines.append("".join(indicators))
    for row in range(BOARD_ROWS):
        cells = []
        for col in range(BOARD_COLUMNS):
            disc = _DISCS[snapshot.cell(row, col)]
            cells.append(f"[{disc}]" if snapshot.is_winning_cell(row, col) else f" {disc} ")
        lines.append("".join(cells))
    lines.append("".join(f" {col} " for col in range(BOARD_COLUMNS)))
    return "\n".join(lines)


def _describe_player(player: PlayerInfo | None, number: int) -> str:
    if player is None:
        return f"Waiting... ({player_color(number)})"
    bot = " [bot]" if player.is_bot else ""
    return f"{player.username}{bot} ({player_color(number)})"


def describe_players(snapshot: GameSnapshot) -> str:
    return f"{_describe_player(snapshot.player1, 1)} vs {_describe_player(snapshot.player2, 2)}"


def describe_turn(context: SessionContext) -> str:
    if context.snapshot is None:
        return ""
    color = player_color(context.snapshot.current_turn)
    if is_your_turn(context):
        return f"Your Turn! ({color})"
    return f"Opponent's Turn ({color})"


def describe_result(snapshot: GameSnapshot) -> str:
    if snapshot.winner is not None:
        return f"{snapshot.winner.username} Wins!"
    return "It's a Draw!"


def render_status(context: SessionContext) -> str:
    """Summarize the whole session for one screen refresh."""
    lines = []
    if context.status is SessionStatus.IDLE:
        lines.append("Enter 'join <username>' to play.")
    elif context.status is SessionStatus.WAITING:
        lines.append("Looking for an opponent...")
    if context.snapshot is not None and context.status is not SessionStatus.WAITING:
        lines.append(describe_players(context.snapshot))
        lines.append(render_board(context.snapshot, can_play=is_your_turn(context)))
        if context.status is SessionStatus.PLAYING:
            lines.append(describe_turn(context))
        else:
            lines.append(describe_result(context.snapshot))
            lines.append("Enter 'again' to play another game.")
    if context.message is not None:
        lines.append(context.message.text)
    if context.error is not None:
        lines.append(f"! {context.error.text}")
    return "\n".join(lines)


def render_leaderboard(entries: list[LeaderboardEntry], *, loading: bool = False, error: str | None = None) -> str:
    if loading:
        return "Leaderboard: loading..."
    if error is not None:
        return f"Leaderboard: {error}"
    if not entries:
        return "No games played yet. Be the first!"
    lines = [f"{'Rank':<5}{'Player':<22}{'W':>4}{'L':>4}{'D':>4}{'Win %':>8}"]
    for rank, entry in enumerate(entries, start=1):
        label = _MEDALS.get(rank, str(rank))
        lines.append(
            f"{label:<5}{entry.username:<22}{entry.wins:>4}{entry.losses:>4}{entry.draws:>4}{entry.win_rate:>7.1f}%",
        )
    return "\n".join(lines)
