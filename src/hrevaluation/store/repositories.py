"""Domain repositories on top of a key-value store.

Every read re-validates the stored JSON so ISO date strings come back as
``datetime`` objects. Malformed or schema-invalid records are logged and
treated as absent.
"""

from __future__ import annotations

import json
from typing import Any, Callable, TypeVar

import structlog
from pydantic import TypeAdapter, ValidationError

from ..config import ConfigManager
from ..schemas import (
    Candidate,
    CompanyInfo,
    Evaluation,
    EvaluationCriterion,
    InterviewMinutes,
    JobPosting,
    SavedDraft,
)
from ..schemas.evaluation import FinalDecision
from ..timeutil import now
from .backends import KeyValueStore

T = TypeVar("T")

CRITERIA_KEY = "hr_tool_evaluation_criteria"
COMPANY_INFO_KEY = "hr_tool_company_info"
DRAFTS_KEY = "hr_tool_drafts"
JOB_POSTINGS_KEY = "hr_tool_job_postings"
CANDIDATES_KEY = "hr_tool_candidates"
EVALUATIONS_KEY = "hr_tool_evaluations"
API_KEY_KEY = "openai_api_key"

_logger = structlog.get_logger(__name__)


def _load(store: KeyValueStore, key: str, adapter: TypeAdapter[T]) -> T | None:
    raw = store.get(key)
    if raw is None:
        return None
    try:
        return adapter.validate_json(raw)
    except ValidationError as exc:
        _logger.warning("store.corrupt_record", key=key, errors=exc.error_count())
        return None


def _dump(store: KeyValueStore, key: str, adapter: TypeAdapter[Any], value: Any) -> None:
    store.set(key, adapter.dump_json(value).decode("utf-8"))


def _upsert(items: list[T], item: T, match: Callable[[T], bool]) -> list[T]:
    for index, existing in enumerate(items):
        if match(existing):
            items[index] = item
            return items
    items.append(item)
    return items


class CriteriaRepository:
    """Job-type specific criteria overrides."""

    _adapter = TypeAdapter(dict[str, list[EvaluationCriterion]])

    def __init__(self, store: KeyValueStore):
        self._store = store

    def get_all(self) -> dict[str, list[EvaluationCriterion]]:
        return _load(self._store, CRITERIA_KEY, self._adapter) or {}

    def get(self, job_type: str) -> list[EvaluationCriterion]:
        return self.get_all().get(job_type, [])

    def save(self, job_type: str, criteria: list[EvaluationCriterion]) -> None:
        all_criteria = self.get_all()
        all_criteria[job_type] = list(criteria)
        _dump(self._store, CRITERIA_KEY, self._adapter, all_criteria)

    def add(self, job_type: str, criterion: EvaluationCriterion) -> None:
        self.save(job_type, [*self.get(job_type), criterion])

    def update(self, job_type: str, criterion: EvaluationCriterion) -> bool:
        criteria = self.get(job_type)
        for index, existing in enumerate(criteria):
            if existing.id == criterion.id:
                criteria[index] = criterion
                self.save(job_type, criteria)
                return True
        return False

    def delete(self, job_type: str, criterion_id: str) -> None:
        self.save(job_type, [c for c in self.get(job_type) if c.id != criterion_id])

    def reset(self, job_type: str) -> None:
        all_criteria = self.get_all()
        if all_criteria.pop(job_type, None) is not None:
            _dump(self._store, CRITERIA_KEY, self._adapter, all_criteria)


class CompanyInfoRepository:
    """Singleton company profile."""

    _adapter = TypeAdapter(CompanyInfo)

    def __init__(self, store: KeyValueStore, *, config: ConfigManager | None = None):
        self._store = store
        self._config = config or ConfigManager()

    def get(self) -> CompanyInfo | None:
        return _load(self._store, COMPANY_INFO_KEY, self._adapter)

    def save(self, info: CompanyInfo) -> None:
        _dump(self._store, COMPANY_INFO_KEY, self._adapter, info)

    def create_default(self, user_id: str = "") -> CompanyInfo:
        data = self._config.load("company_defaults")
        data.update(updated_at=now(), updated_by=user_id)
        return CompanyInfo.model_validate(data)

    def ensure_exists(self, user_id: str = "") -> CompanyInfo:
        info = self.get()
        if info is None:
            info = self.create_default(user_id)
            self.save(info)
            _logger.info("company_info.created_default", user_id=user_id)
        return info

    def get_criteria(self) -> list[EvaluationCriterion]:
        info = self.get()
        return list(info.evaluation_criteria or []) if info else []

    def save_criteria(self, criteria: list[EvaluationCriterion]) -> None:
        info = self.get()
        if info is None:
            return
        self.save(info.model_copy(update={"evaluation_criteria": list(criteria), "updated_at": now()}))


class JobPostingRepository:
    _adapter = TypeAdapter(list[JobPosting])

    def __init__(self, store: KeyValueStore):
        self._store = store

    def list(self) -> list[JobPosting]:
        return _load(self._store, JOB_POSTINGS_KEY, self._adapter) or []

    def list_active(self) -> list[JobPosting]:
        return [posting for posting in self.list() if posting.is_active]

    def get_active_for(self, job_type: str) -> JobPosting | None:
        for posting in self.list_active():
            if posting.job_type == job_type:
                return posting
        return None

    def save(self, posting: JobPosting) -> None:
        stamped = posting.model_copy(
            update={"updated_at": now(), "created_at": posting.created_at or now()}
        )
        postings = _upsert(self.list(), stamped, lambda p: p.id == posting.id)
        _dump(self._store, JOB_POSTINGS_KEY, self._adapter, postings)

    def delete(self, posting_id: str) -> None:
        postings = [p for p in self.list() if p.id != posting_id]
        _dump(self._store, JOB_POSTINGS_KEY, self._adapter, postings)


class DraftRepository:
    _adapter = TypeAdapter(list[SavedDraft])

    def __init__(self, store: KeyValueStore):
        self._store = store

    def list(self) -> list[SavedDraft]:
        return _load(self._store, DRAFTS_KEY, self._adapter) or []

    def get(self, draft_id: str) -> SavedDraft | None:
        for draft in self.list():
            if draft.id == draft_id:
                return draft
        return None

    def save(self, draft: SavedDraft) -> SavedDraft:
        stamped = draft.model_copy(update={"saved_at": now()})
        drafts = _upsert(self.list(), stamped, lambda d: d.id == draft.id)
        _dump(self._store, DRAFTS_KEY, self._adapter, drafts)
        return stamped

    def delete(self, draft_id: str) -> None:
        drafts = [d for d in self.list() if d.id != draft_id]
        _dump(self._store, DRAFTS_KEY, self._adapter, drafts)

    def delete_for_candidate(self, candidate_id: str) -> None:
        drafts = [d for d in self.list() if d.evaluation.candidate_id != candidate_id]
        _dump(self._store, DRAFTS_KEY, self._adapter, drafts)


class EvaluationRepository:
    _adapter = TypeAdapter(list[Evaluation])

    def __init__(self, store: KeyValueStore):
        self._store = store

    def list(self) -> list[Evaluation]:
        return _load(self._store, EVALUATIONS_KEY, self._adapter) or []

    def get_by_candidate(self, candidate_id: str) -> Evaluation | None:
        for evaluation in self.list():
            if evaluation.candidate_id == candidate_id:
                return evaluation
        return None

    def save(self, evaluation: Evaluation) -> None:
        existing = self.get_by_candidate(evaluation.candidate_id)
        if existing is not None and existing.is_complete and not evaluation.is_complete:
            raise ValueError(
                f"Evaluation for candidate {evaluation.candidate_id!r} is already finalized"
            )
        evaluations = _upsert(
            self.list(), evaluation, lambda e: e.candidate_id == evaluation.candidate_id
        )
        _dump(self._store, EVALUATIONS_KEY, self._adapter, evaluations)

    def record_decision(
        self,
        candidate_id: str,
        decision: FinalDecision,
        *,
        performance_rating: int | None = None,
    ) -> Evaluation:
        """Attach the actual hiring outcome to a finalized evaluation."""
        existing = self.get_by_candidate(candidate_id)
        if existing is None or not existing.is_complete:
            raise ValueError(f"No finalized evaluation for candidate {candidate_id!r}")
        update: dict[str, Any] = {"final_decision": decision}
        if performance_rating is not None:
            update["performance_rating"] = performance_rating
        decided = Evaluation.model_validate({**existing.model_dump(), **update})
        self.save(decided)
        return decided

    def delete_for_candidate(self, candidate_id: str) -> None:
        evaluations = [e for e in self.list() if e.candidate_id != candidate_id]
        _dump(self._store, EVALUATIONS_KEY, self._adapter, evaluations)


class CandidateRepository:
    _adapter = TypeAdapter(list[Candidate])

    def __init__(
        self,
        store: KeyValueStore,
        *,
        evaluations: EvaluationRepository | None = None,
        drafts: DraftRepository | None = None,
    ):
        self._store = store
        self._evaluations = evaluations or EvaluationRepository(store)
        self._drafts = drafts or DraftRepository(store)

    def list(self) -> list[Candidate]:
        return _load(self._store, CANDIDATES_KEY, self._adapter) or []

    def get(self, candidate_id: str) -> Candidate | None:
        for candidate in self.list():
            if candidate.id == candidate_id:
                return candidate
        return None

    def save(self, candidate: Candidate) -> None:
        stamped = candidate.model_copy(
            update={"updated_at": now(), "created_at": candidate.created_at or now()}
        )
        candidates = _upsert(self.list(), stamped, lambda c: c.id == candidate.id)
        _dump(self._store, CANDIDATES_KEY, self._adapter, candidates)

    def append_minutes(self, candidate_id: str, minutes: InterviewMinutes) -> Candidate:
        candidate = self.get(candidate_id)
        if candidate is None:
            raise KeyError(f"Unknown candidate: {candidate_id!r}")
        updated = candidate.with_minutes(minutes)
        self.save(updated)
        return updated

    def delete(self, candidate_id: str) -> None:
        candidates = [c for c in self.list() if c.id != candidate_id]
        _dump(self._store, CANDIDATES_KEY, self._adapter, candidates)
        self._evaluations.delete_for_candidate(candidate_id)
        self._drafts.delete_for_candidate(candidate_id)


class CredentialRepository:
    """Locally stored API key override."""

    def __init__(self, store: KeyValueStore):
        self._store = store

    def get(self) -> str | None:
        value = self._store.get(API_KEY_KEY)
        if value is None:
            return None
        try:
            decoded = json.loads(value)
        except json.JSONDecodeError:
            _logger.warning("store.corrupt_record", key=API_KEY_KEY)
            return None
        return decoded if isinstance(decoded, str) and decoded.strip() else None

    def set(self, api_key: str) -> None:
        self._store.set(API_KEY_KEY, json.dumps(api_key.strip()))

    def clear(self) -> None:
        self._store.delete(API_KEY_KEY)
