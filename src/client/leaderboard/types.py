from pydantic import BaseModel, ConfigDict, Field, TypeAdapter


class LeaderboardEntry(BaseModel):
    model_config = ConfigDict(frozen=True)

    username: str
    wins: int = Field(default=0, ge=0)
    losses: int = Field(default=0, ge=0)
    draws: int = Field(default=0, ge=0)

    @property
    def total_games(self) -> int:
        return self.wins + self.losses + self.draws

    @property
    def win_rate(self) -> float:
        """Percentage of games won, 0.0 when no games were played."""
        if self.total_games == 0:
            return 0.0
        return self.wins / self.total_games * 100


# The endpoint answers null instead of [] when nobody has played yet.
leaderboard_adapter = TypeAdapter(list[LeaderboardEntry] | None)
