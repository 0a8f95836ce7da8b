"""Core scorecard logic: criteria, scoring, sessions and deterministic insights."""

from __future__ import annotations

# NOTE: keep imports explicit for export clarity.
from .criteria import (
    CriteriaResolution,
    JobTypeCatalog,
    category_progress,
    completion_percentage,
    group_by_category,
    is_form_complete,
    is_fully_specified,
    resolve_criteria,
    resolve_job_config,
    weighted_score,
)
from .session import (
    Autosaver,
    EvaluationFinalizedError,
    EvaluationSession,
    IncompleteEvaluationError,
)
from .similar import (
    SimilarCandidateFinder,
    candidate_similarity,
    hiring_statistics,
    predict_outcome,
    similarity_reasons,
    text_similarity,
)
from .spi import analyze_spi, job_fit_score, spi_summary

__all__ = [
    "Autosaver",
    "CriteriaResolution",
    "EvaluationFinalizedError",
    "EvaluationSession",
    "IncompleteEvaluationError",
    "JobTypeCatalog",
    "SimilarCandidateFinder",
    "analyze_spi",
    "candidate_similarity",
    "category_progress",
    "completion_percentage",
    "group_by_category",
    "hiring_statistics",
    "is_form_complete",
    "is_fully_specified",
    "job_fit_score",
    "predict_outcome",
    "resolve_criteria",
    "resolve_job_config",
    "similarity_reasons",
    "spi_summary",
    "text_similarity",
    "weighted_score",
]
