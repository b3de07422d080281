from __future__ import annotations  # Feedback report domain models

from typing import List

from pydantic import BaseModel, ConfigDict, Field


class RubricScore(BaseModel):  # Score for one rubric dimension
    dimension: str
    score: int = Field(ge=1, le=5)
    feedback: str

    model_config = ConfigDict(frozen=True)


class Report(BaseModel):  # Feedback report; never mutated after creation
    session_id: str
    problem_title: str
    duration_minutes: int = Field(ge=0)
    rubric: List[RubricScore]
    overall_score: float = Field(ge=0.0, le=5.0)
    strengths: List[str]
    improvements: List[str]
    recommendations: List[str]
    summary: str
    markdown: str
    generated_at: str

    model_config = ConfigDict(frozen=True)


__all__ = ["Report", "RubricScore"]
