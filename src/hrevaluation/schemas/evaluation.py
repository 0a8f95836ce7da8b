from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .job import SCORE_LEVELS, JobType

Recommendation = Literal["hire", "consider", "reject"]
DraftStage = Literal["candidate_input", "evaluation"]
FinalDecision = Literal["hired", "rejected", "pending"]


class Evaluation(BaseModel):
    """Scorecard for one candidate under one job type."""

    candidate_id: str
    job_type: JobType
    scores: dict[str, int] = Field(default_factory=dict)
    comments: dict[str, str] = Field(default_factory=dict)
    overall_comment: str = ""
    recommendation: Recommendation = "consider"
    evaluated_at: datetime | None = None
    is_complete: bool = False
    evaluator_id: str | None = None
    evaluator_name: str | None = None
    # Actual hiring outcome, recorded after the scorecard is finalized.
    final_decision: FinalDecision | None = None
    performance_rating: int | None = Field(default=None, ge=1, le=5)

    model_config = ConfigDict(extra="ignore")

    @property
    def is_decided(self) -> bool:
        return self.is_complete and self.final_decision in ("hired", "rejected")

    @field_validator("scores")
    @classmethod
    def _scores_in_range(cls, value: dict[str, int]) -> dict[str, int]:
        for criterion_id, score in value.items():
            if score not in SCORE_LEVELS:
                raise ValueError(f"score for {criterion_id!r} must be 1-4, got {score}")
        return value


class SavedDraft(BaseModel):
    """Autosaved, incomplete evaluation snapshot."""

    id: str
    evaluation: Evaluation
    job_type: JobType
    stage: DraftStage = "evaluation"
    saved_at: datetime
    title: str = ""

    model_config = ConfigDict(extra="ignore")
