"""Leaderboard models"""
from pydantic import BaseModel, Field


class LeaderboardEntry(BaseModel):
    """One ranked row, rebuilt on every request"""
    position: int = Field(..., ge=1)
    user_id: str
    name: str
    points: int
    level: int
