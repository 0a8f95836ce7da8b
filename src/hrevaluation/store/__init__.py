"""Persistence of criteria, company info, postings, candidates and drafts."""

from __future__ import annotations

from .backends import InMemoryStore, JsonFileStore, KeyValueStore
from .repositories import (
    CandidateRepository,
    CompanyInfoRepository,
    CredentialRepository,
    CriteriaRepository,
    DraftRepository,
    EvaluationRepository,
    JobPostingRepository,
)

__all__ = [
    "CandidateRepository",
    "CompanyInfoRepository",
    "CredentialRepository",
    "CriteriaRepository",
    "DraftRepository",
    "EvaluationRepository",
    "InMemoryStore",
    "JobPostingRepository",
    "JsonFileStore",
    "KeyValueStore",
]
