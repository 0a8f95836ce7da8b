"""Scorecard editing session with debounced draft autosave."""

from __future__ import annotations

import asyncio
from typing import Callable, Sequence

import structlog

from ..schemas import Candidate, Evaluation, EvaluationCriterion, Recommendation, SavedDraft
from ..schemas.job import SCORE_LEVELS
from ..store import DraftRepository, EvaluationRepository
from ..timeutil import epoch_millis, now
from .criteria import completion_percentage, is_form_complete, weighted_score

DEFAULT_AUTOSAVE_DELAY = 3.0


class EvaluationFinalizedError(RuntimeError):
    """Raised when editing a session after submission."""


class IncompleteEvaluationError(ValueError):
    """Raised when submitting with unscored criteria."""

    def __init__(self, missing: list[str]):
        super().__init__(f"Unscored criteria: {', '.join(missing)}")
        self.missing = missing


class Autosaver:
    """Debounce timer: each schedule() supersedes the pending write."""

    def __init__(self, save: Callable[[], object], *, delay: float = DEFAULT_AUTOSAVE_DELAY):
        self._save = save
        self._delay = delay
        self._handle: asyncio.TimerHandle | None = None

    @property
    def pending(self) -> bool:
        return self._handle is not None

    def schedule(self) -> None:
        loop = asyncio.get_running_loop()
        self.cancel()
        self._handle = loop.call_later(self._delay, self._fire)

    def cancel(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

    def flush(self) -> None:
        self.cancel()
        self._save()

    def _fire(self) -> None:
        self._handle = None
        self._save()


class EvaluationSession:
    """One evaluator filling out one candidate's scorecard.

    The draft id is generated once per session and reused by every autosave,
    so a session owns at most one stored draft.
    """

    def __init__(
        self,
        candidate: Candidate,
        job_type: str,
        criteria: Sequence[EvaluationCriterion],
        *,
        drafts: DraftRepository,
        evaluations: EvaluationRepository,
        initial: Evaluation | None = None,
        draft_id: str | None = None,
        autosave: bool = True,
        autosave_delay: float = DEFAULT_AUTOSAVE_DELAY,
    ) -> None:
        self._candidate = candidate
        self._job_type = job_type
        self._criteria = list(criteria)
        self._criteria_ids = {c.id for c in self._criteria}
        self._drafts = drafts
        self._evaluations = evaluations
        self._draft_id = draft_id
        self._autosave_enabled = autosave
        self._autosaver = Autosaver(self.save_draft, delay=autosave_delay)
        self._finalized = False
        self._logger = structlog.get_logger(__name__).bind(candidate_id=candidate.id)

        self.scores: dict[str, int] = dict(initial.scores) if initial else {}
        self.comments: dict[str, str] = dict(initial.comments) if initial else {}
        self.overall_comment: str = initial.overall_comment if initial else ""
        self.recommendation: Recommendation = initial.recommendation if initial else "consider"

    @classmethod
    def from_draft(
        cls,
        draft: SavedDraft,
        candidate: Candidate,
        criteria: Sequence[EvaluationCriterion],
        *,
        drafts: DraftRepository,
        evaluations: EvaluationRepository,
        **kwargs,
    ) -> "EvaluationSession":
        return cls(
            candidate,
            draft.job_type,
            criteria,
            drafts=drafts,
            evaluations=evaluations,
            initial=draft.evaluation,
            draft_id=draft.id,
            **kwargs,
        )

    @property
    def criteria(self) -> list[EvaluationCriterion]:
        return list(self._criteria)

    @property
    def draft_id(self) -> str:
        if self._draft_id is None:
            self._draft_id = f"evaluation_{self._candidate.id}_{epoch_millis()}"
        return self._draft_id

    @property
    def finalized(self) -> bool:
        return self._finalized

    @property
    def autosave_pending(self) -> bool:
        return self._autosaver.pending

    def set_score(self, criterion_id: str, score: int) -> None:
        self._ensure_editable()
        if criterion_id not in self._criteria_ids:
            raise KeyError(f"Unknown criterion: {criterion_id!r}")
        if score not in SCORE_LEVELS:
            raise ValueError(f"Score must be one of {SCORE_LEVELS}, got {score!r}")
        self.scores[criterion_id] = score
        self._changed()

    def set_comment(self, criterion_id: str, comment: str) -> None:
        self._ensure_editable()
        if criterion_id not in self._criteria_ids:
            raise KeyError(f"Unknown criterion: {criterion_id!r}")
        self.comments[criterion_id] = comment
        self._changed()

    def set_overall_comment(self, comment: str) -> None:
        self._ensure_editable()
        self.overall_comment = comment
        self._changed()

    def set_recommendation(self, recommendation: Recommendation) -> None:
        self._ensure_editable()
        if recommendation not in ("hire", "consider", "reject"):
            raise ValueError(f"Unknown recommendation: {recommendation!r}")
        self.recommendation = recommendation
        self._changed()

    def set_autosave(self, enabled: bool) -> None:
        self._autosave_enabled = enabled
        if not enabled:
            self._autosaver.cancel()

    def snapshot(self) -> Evaluation:
        return Evaluation(
            candidate_id=self._candidate.id,
            job_type=self._job_type,
            scores=dict(self.scores),
            comments=dict(self.comments),
            overall_comment=self.overall_comment,
            recommendation=self.recommendation,
            is_complete=False,
        )

    def weighted_score(self) -> float:
        return weighted_score(self._criteria, self.scores)

    def completion_percentage(self) -> int:
        return completion_percentage(self._criteria, self.scores)

    def is_complete(self) -> bool:
        return is_form_complete(self._criteria, self.scores)

    def save_draft(self) -> SavedDraft | None:
        if self._finalized:
            return None
        draft = SavedDraft(
            id=self.draft_id,
            evaluation=self.snapshot(),
            job_type=self._job_type,
            stage="evaluation",
            saved_at=now(),
            title=f"{self._candidate.name or '候補者'}の評価",
        )
        saved = self._drafts.save(draft)
        self._logger.info("draft.autosaved", draft_id=saved.id, scored=len(self.scores))
        return saved

    def submit(
        self,
        *,
        evaluator_id: str | None = None,
        evaluator_name: str | None = None,
    ) -> Evaluation:
        self._ensure_editable()
        missing = [c.id for c in self._criteria if c.id not in self.scores]
        if missing:
            raise IncompleteEvaluationError(missing)
        self._autosaver.cancel()
        evaluation = self.snapshot().model_copy(
            update={
                "is_complete": True,
                "evaluated_at": now(),
                "evaluator_id": evaluator_id,
                "evaluator_name": evaluator_name,
            }
        )
        self._evaluations.save(evaluation)
        if self._draft_id is not None:
            self._drafts.delete(self._draft_id)
        self._finalized = True
        self._logger.info("evaluation.submitted", weighted_score=self.weighted_score())
        return evaluation

    def close(self) -> None:
        self._autosaver.cancel()

    def _ensure_editable(self) -> None:
        if self._finalized:
            raise EvaluationFinalizedError("Evaluation has already been submitted")

    def _changed(self) -> None:
        if self._autosave_enabled:
            self._autosaver.schedule()
