"""Result shapes of AI-assisted analyses.

Field aliases follow the camelCase JSON requested from the completion model.
"""

from __future__ import annotations

from enum import Enum
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class AnalysisKind(str, Enum):
    EVALUATION = "evaluation"
    MATCHING = "matching"
    QUESTIONS = "questions"
    TURNOVER = "turnover"
    MINUTES = "minutes"


class _Result(BaseModel):
    # Set when the completion could not be parsed and defaults were substituted.
    notice: str | None = None

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class FitScoreAnalysis(_Result):
    recommended_score: float = 3.0
    confidence: float = 0.5
    reasoning: str = ""
    strengths: list[str] = Field(default_factory=list)
    risk_factors: list[str] = Field(default_factory=list)
    recommendations: list[str] = Field(default_factory=list)


class CriterionMatch(_Result):
    criterion_id: str = ""
    criterion_name: str = ""
    matching_score: float = 3.0
    confidence: float = 0.5
    reasoning: str = ""
    evidences: list[str] = Field(default_factory=list)
    concerns: list[str] = Field(default_factory=list)
    recommendations: list[str] = Field(default_factory=list)


class MatchingAnalysis(_Result):
    overall_matching_score: float = 3.0
    overall_confidence: float = 0.5
    overall_reasoning: str = ""
    criteria_analysis: list[CriterionMatch] = Field(default_factory=list)
    strengths: list[str] = Field(default_factory=list)
    weaknesses: list[str] = Field(default_factory=list)
    recommendations: list[str] = Field(default_factory=list)
    risk_factors: list[str] = Field(default_factory=list)


class SuggestedQuestion(_Result):
    question: str = ""
    purpose: str = ""
    target_criteria: list[str] = Field(default_factory=list)
    expected_insights: list[str] = Field(default_factory=list)


class InterviewQuestionSet(_Result):
    questions: list[SuggestedQuestion] = Field(default_factory=list)


RiskLevel = Literal["low", "medium", "high"]


class TurnoverRiskAnalysis(_Result):
    risk_level: RiskLevel = "medium"
    risk_score: float = 0.5
    factors: list[str] = Field(default_factory=list)
    recommendations: list[str] = Field(default_factory=list)


class SkillsAssessment(BaseModel):
    """Interview-observed skills, each on a 1-5 scale."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    communication: int = 3
    technical_skills: int = 3
    problem_solving: int = 3
    cultural_fit: int = 3
    motivation: int = 3


class InterviewMinutesAnalysis(_Result):
    minutes_id: str = ""
    overall_assessment: str = ""
    strengths_identified: list[str] = Field(default_factory=list)
    concerns_identified: list[str] = Field(default_factory=list)
    skills_assessment: SkillsAssessment = Field(default_factory=SkillsAssessment)
    recommended_questions: list[str] = Field(default_factory=list)
    red_flags: list[str] = Field(default_factory=list)
    positive_signals: list[str] = Field(default_factory=list)
    confidence_level: float = 0.5


AnalysisResult = (
    FitScoreAnalysis
    | MatchingAnalysis
    | InterviewQuestionSet
    | TurnoverRiskAnalysis
    | InterviewMinutesAnalysis
)
