"""Derived behavioral insight models"""
from pydantic import BaseModel, Field


class InsightSnapshot(BaseModel):
    """Recomputed on request from the event log; never persisted"""
    vocational_interests: set[str] = Field(default_factory=set)
    reinforcement_areas: set[str] = Field(default_factory=set)
    is_exhausted: bool = False
    emotional_variability: float = 0.0
