"""User gamification counters"""
from datetime import datetime, timezone
from pydantic import BaseModel, Field


class UserStats(BaseModel):
    """Authoritative per-user counters. Mutated only through score deltas and spends."""
    user_id: str = Field(..., min_length=1)
    name: str = ""
    credits: int = Field(default=0, ge=0)
    level: int = Field(default=1, ge=1)
    experience: int = Field(default=0, ge=0)
    points: int = Field(default=0, ge=0)
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    def counters(self) -> dict[str, int]:
        """Counter snapshot as returned to callers"""
        return {
            "credits": self.credits,
            "level": self.level,
            "experience": self.experience,
            "points": self.points,
        }
