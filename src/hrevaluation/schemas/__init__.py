"""Pydantic schema definitions for the evaluation domain."""

from __future__ import annotations

from .analysis import (
    AnalysisKind,
    AnalysisResult,
    CriterionMatch,
    FitScoreAnalysis,
    InterviewMinutesAnalysis,
    InterviewQuestionSet,
    MatchingAnalysis,
    SkillsAssessment,
    SuggestedQuestion,
    TurnoverRiskAnalysis,
)
from .candidate import (
    Candidate,
    CandidateDocuments,
    DocumentFile,
    InterviewMinutes,
    MinutesQuestion,
    SPIResults,
)
from .company import CompanyInfo
from .evaluation import Evaluation, FinalDecision, Recommendation, SavedDraft
from .insights import (
    HiringPrediction,
    HiringStatistics,
    JobTypeHiringStats,
    SimilarCandidate,
    SPIAnalysis,
)
from .job import (
    JOB_TYPES,
    CriterionCategory,
    EvaluationCriterion,
    JobPosting,
    JobType,
    JobTypeConfig,
    ScoreDescription,
)

__all__ = [
    "AnalysisKind",
    "AnalysisResult",
    "Candidate",
    "CandidateDocuments",
    "CompanyInfo",
    "CriterionCategory",
    "CriterionMatch",
    "DocumentFile",
    "Evaluation",
    "EvaluationCriterion",
    "FinalDecision",
    "FitScoreAnalysis",
    "HiringPrediction",
    "HiringStatistics",
    "InterviewMinutes",
    "InterviewMinutesAnalysis",
    "InterviewQuestionSet",
    "JOB_TYPES",
    "JobPosting",
    "JobTypeHiringStats",
    "JobType",
    "JobTypeConfig",
    "MatchingAnalysis",
    "MinutesQuestion",
    "Recommendation",
    "SPIAnalysis",
    "SPIResults",
    "SavedDraft",
    "ScoreDescription",
    "SimilarCandidate",
    "SkillsAssessment",
    "SuggestedQuestion",
    "TurnoverRiskAnalysis",
]
