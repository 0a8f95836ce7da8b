"""Deterministic insights derived from SPI results and hiring history."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field

from .candidate import Candidate
from .evaluation import Evaluation

TeamFit = Literal["high", "medium", "low"]


class SPIAnalysis(BaseModel):
    """Rule-based reading of a candidate's SPI results for one job type."""

    job_fit_score: int = Field(ge=0, le=100)
    strength_areas: list[str] = Field(default_factory=list)
    development_areas: list[str] = Field(default_factory=list)
    personality_insights: list[str] = Field(default_factory=list)
    recommended_role: str = ""
    team_fit: TeamFit = "medium"
    management_potential: int = Field(default=0, ge=0, le=100)
    risk_factors: list[str] = Field(default_factory=list)
    recommendations: list[str] = Field(default_factory=list)
    summary: str = ""


class SimilarCandidate(BaseModel):
    candidate: Candidate
    evaluation: Evaluation
    similarity_score: float = Field(ge=0, le=100)
    similarity_reasons: list[str] = Field(default_factory=list)


class JobTypeHiringStats(BaseModel):
    total: int = 0
    hired: int = 0
    rate: float = 0.0


class HiringStatistics(BaseModel):
    total_evaluated: int = 0
    hired: int = 0
    rejected: int = 0
    overall_hiring_rate: float = 0.0
    job_type_stats: dict[str, JobTypeHiringStats] = Field(default_factory=dict)


class HiringPrediction(BaseModel):
    prediction: Literal["hire", "reject"]
    confidence: float = Field(ge=0, le=1)
    reasons: list[str] = Field(default_factory=list)
    similar_count: int = 0
