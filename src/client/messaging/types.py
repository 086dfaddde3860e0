from enum import IntEnum, StrEnum
from typing import Annotated, Any, Literal

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, field_validator
from pydantic.alias_generators import to_camel

BOARD_ROWS = 6
BOARD_COLUMNS = 7
USERNAME_MAX_LENGTH = 20


class ClientMessageType(StrEnum):
    JOIN_QUEUE = "join_queue"
    RECONNECT = "reconnect"
    MOVE = "move"


class ServerMessageType(StrEnum):
    GAME_START = "game_start"
    GAME_UPDATE = "game_update"
    GAME_OVER = "game_over"
    ERROR = "error"
    INVALID_MOVE = "invalid_move"
    OPPONENT_LEFT = "opponent_left"


class CellState(IntEnum):
    EMPTY = 0
    PLAYER1 = 1
    PLAYER2 = 2


class GameStatus(StrEnum):
    """Server-side lifecycle of a game, echoed inside snapshots."""

    WAITING = "waiting"
    PLAYING = "playing"
    FINISHED = "finished"


class _WireModel(BaseModel):
    """Frozen model with camelCase wire names and snake_case attributes."""

    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)


class PlayerInfo(_WireModel):
    id: str
    username: str
    is_bot: bool = False


class GameSnapshot(_WireModel):
    """Complete game state as last delivered by the server.

    Each inbound update replaces the snapshot wholesale; nothing is
    patched in place.
    """

    id: str = Field(min_length=1)
    board: tuple[tuple[CellState, ...], ...]
    player1: PlayerInfo
    player2: PlayerInfo | None = None
    current_turn: Literal[1, 2]
    winner: PlayerInfo | None = None
    winning_line: tuple[tuple[int, int], ...] | None = None
    state: GameStatus | None = None
    last_move_row: int | None = None
    last_move_col: int | None = None

    @field_validator("board")
    @classmethod
    def _validate_board_shape(cls, v: tuple[tuple[CellState, ...], ...]) -> tuple[tuple[CellState, ...], ...]:
        if len(v) != BOARD_ROWS or any(len(row) != BOARD_COLUMNS for row in v):
            raise ValueError(f"board must be {BOARD_ROWS} rows x {BOARD_COLUMNS} columns")
        return v

    @field_validator("winning_line")
    @classmethod
    def _validate_winning_line(cls, v: tuple[tuple[int, int], ...] | None) -> tuple[tuple[int, int], ...] | None:
        if v is not None:
            for row, col in v:
                if not (0 <= row < BOARD_ROWS and 0 <= col < BOARD_COLUMNS):
                    raise ValueError(f"winning cell ({row}, {col}) is off the board")
        return v

    def cell(self, row: int, col: int) -> CellState:
        return self.board[row][col]

    def is_winning_cell(self, row: int, col: int) -> bool:
        return self.winning_line is not None and (row, col) in self.winning_line


# Outbound


class JoinQueueMessage(_WireModel):
    type: Literal[ClientMessageType.JOIN_QUEUE] = ClientMessageType.JOIN_QUEUE
    username: str = Field(min_length=1, max_length=USERNAME_MAX_LENGTH)


class ReconnectMessage(_WireModel):
    type: Literal[ClientMessageType.RECONNECT] = ClientMessageType.RECONNECT
    username: str = Field(min_length=1, max_length=USERNAME_MAX_LENGTH)
    game_id: str = Field(min_length=1)


class MoveMessage(_WireModel):
    type: Literal[ClientMessageType.MOVE] = ClientMessageType.MOVE
    column: int = Field(ge=0, lt=BOARD_COLUMNS)


ClientMessage = JoinQueueMessage | ReconnectMessage | MoveMessage


# Inbound


class GameStartMessage(_WireModel):
    type: Literal[ServerMessageType.GAME_START] = ServerMessageType.GAME_START
    game: GameSnapshot
    your_player_id: str = Field(min_length=1)


class GameUpdateMessage(_WireModel):
    type: Literal[ServerMessageType.GAME_UPDATE] = ServerMessageType.GAME_UPDATE
    game: GameSnapshot
    message: str | None = None


class GameOverMessage(_WireModel):
    type: Literal[ServerMessageType.GAME_OVER] = ServerMessageType.GAME_OVER
    game: GameSnapshot
    message: str
    winner: str | None = None
    reason: str | None = None


class ErrorMessage(_WireModel):
    type: Literal[ServerMessageType.ERROR] = ServerMessageType.ERROR
    message: str


class InvalidMoveMessage(_WireModel):
    type: Literal[ServerMessageType.INVALID_MOVE] = ServerMessageType.INVALID_MOVE
    message: str


class OpponentLeftMessage(_WireModel):
    type: Literal[ServerMessageType.OPPONENT_LEFT] = ServerMessageType.OPPONENT_LEFT
    message: str


ServerMessage = (
    GameStartMessage
    | GameUpdateMessage
    | GameOverMessage
    | ErrorMessage
    | InvalidMoveMessage
    | OpponentLeftMessage
)

_server_adapter = TypeAdapter(Annotated[ServerMessage, Field(discriminator="type")])
_client_adapter = TypeAdapter(Annotated[ClientMessage, Field(discriminator="type")])


def parse_server_message(data: dict[str, Any]) -> ServerMessage:
    """Parse a flattened inbound message ({"type": ..., **payload}) into a typed model."""
    return _server_adapter.validate_python(data)


def parse_client_message(data: dict[str, Any]) -> ClientMessage:
    """Parse a flattened outbound message; used by test doubles standing in for the server."""
    return _client_adapter.validate_python(data)
