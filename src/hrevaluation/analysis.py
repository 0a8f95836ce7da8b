"""AI-assisted analyses and their per-action state."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Callable, Union

import structlog

from .core import JobTypeCatalog, resolve_job_config
from .errors import (
    AnalysisError,
    CompletionError,
    ErrorKind,
    MissingInputError,
    NotConfiguredError,
    localized_message,
)
from .llm import Completer
from .parsing import parse_completion
from .prompts import (
    build_evaluation_prompt,
    build_matching_prompt,
    build_minutes_prompt,
    build_questions_prompt,
    build_turnover_prompt,
    latest_minutes,
)
from .schemas import (
    AnalysisKind,
    AnalysisResult,
    Candidate,
    CompanyInfo,
    Evaluation,
    FitScoreAnalysis,
    InterviewMinutes,
    InterviewMinutesAnalysis,
    InterviewQuestionSet,
    JobPosting,
    JobTypeConfig,
    MatchingAnalysis,
    TurnoverRiskAnalysis,
)
from .store import CompanyInfoRepository, CriteriaRepository, JobPostingRepository

OPERATION_LABELS: dict[AnalysisKind, str] = {
    AnalysisKind.EVALUATION: "AI評価",
    AnalysisKind.MATCHING: "マッチング分析",
    AnalysisKind.QUESTIONS: "面接質問生成",
    AnalysisKind.TURNOVER: "離職リスク分析",
    AnalysisKind.MINUTES: "面接議事録分析",
}

_PROMPT_BUILDERS: dict[AnalysisKind, Callable[..., str]] = {
    AnalysisKind.EVALUATION: build_evaluation_prompt,
    AnalysisKind.MATCHING: build_matching_prompt,
    AnalysisKind.QUESTIONS: build_questions_prompt,
    AnalysisKind.TURNOVER: build_turnover_prompt,
    AnalysisKind.MINUTES: build_minutes_prompt,
}


@dataclass(slots=True)
class AnalysisContext:
    """Everything a prompt needs besides the candidate."""

    job_config: JobTypeConfig
    company: CompanyInfo | None
    posting: JobPosting | None


class AnalysisService:
    """Builds prompts, calls the completion model and parses the answer."""

    def __init__(
        self,
        client: Completer,
        catalog: JobTypeCatalog,
        company_repo: CompanyInfoRepository,
        criteria_repo: CriteriaRepository,
        posting_repo: JobPostingRepository,
    ) -> None:
        self._client = client
        self._catalog = catalog
        self._company_repo = company_repo
        self._criteria_repo = criteria_repo
        self._posting_repo = posting_repo
        self._logger = structlog.get_logger(__name__)

    def context(self, job_type: str) -> AnalysisContext:
        company = self._company_repo.get()
        job_config = resolve_job_config(
            job_type,
            catalog=self._catalog,
            company=company,
            stored=self._criteria_repo.get(job_type),
        )
        return AnalysisContext(
            job_config=job_config,
            company=company,
            posting=self._posting_repo.get_active_for(job_type),
        )

    def build_prompt(
        self,
        kind: AnalysisKind,
        candidate: Candidate,
        current: Evaluation | None = None,
        *,
        job_type: str | None = None,
        minutes_id: str | None = None,
    ) -> str:
        kind = AnalysisKind(kind)
        ctx = self.context(job_type or _job_type_for(candidate, current))
        extra = {}
        if kind is AnalysisKind.MINUTES:
            extra["minutes"] = select_minutes(candidate, minutes_id)
        return _PROMPT_BUILDERS[kind](
            candidate=candidate,
            job_config=ctx.job_config,
            company=ctx.company,
            posting=ctx.posting,
            current=current,
            **extra,
        )

    async def run(
        self,
        kind: AnalysisKind,
        candidate: Candidate,
        current: Evaluation | None = None,
        *,
        job_type: str | None = None,
        minutes_id: str | None = None,
    ) -> AnalysisResult:
        kind = AnalysisKind(kind)
        logger = self._logger.bind(kind=kind.value, candidate_id=candidate.id)
        if not self._client.configured:
            logger.warning("analysis.not_configured")
            raise NotConfiguredError()

        record = None
        if kind is AnalysisKind.MINUTES:
            try:
                record = select_minutes(candidate, minutes_id)
            except MissingInputError as exc:
                logger.warning("analysis.missing_input", detail=exc.detail)
                raise
            minutes_id = record.id

        prompt = self.build_prompt(kind, candidate, current, job_type=job_type, minutes_id=minutes_id)
        try:
            text = await asyncio.to_thread(self._client.complete, prompt)
        except CompletionError as exc:
            logger.warning("analysis.failed", error_kind=exc.kind.value, status=exc.status)
            raise exc.for_operation(OPERATION_LABELS[kind]) from exc

        result = parse_completion(text, kind)
        if record is not None:
            result = result.model_copy(update={"minutes_id": record.id})
        logger.info("analysis.completed", fallback=result.notice is not None)
        return result

    async def evaluate(self, candidate: Candidate, current: Evaluation | None = None, **kwargs) -> FitScoreAnalysis:
        return await self.run(AnalysisKind.EVALUATION, candidate, current, **kwargs)

    async def match_criteria(
        self, candidate: Candidate, current: Evaluation | None = None, **kwargs
    ) -> MatchingAnalysis:
        return await self.run(AnalysisKind.MATCHING, candidate, current, **kwargs)

    async def generate_questions(
        self, candidate: Candidate, current: Evaluation | None = None, **kwargs
    ) -> InterviewQuestionSet:
        return await self.run(AnalysisKind.QUESTIONS, candidate, current, **kwargs)

    async def assess_turnover(
        self, candidate: Candidate, current: Evaluation | None = None, **kwargs
    ) -> TurnoverRiskAnalysis:
        return await self.run(AnalysisKind.TURNOVER, candidate, current, **kwargs)

    async def analyze_minutes(
        self, candidate: Candidate, current: Evaluation | None = None, **kwargs
    ) -> InterviewMinutesAnalysis:
        return await self.run(AnalysisKind.MINUTES, candidate, current, **kwargs)


def _job_type_for(candidate: Candidate, current: Evaluation | None) -> str:
    if current is not None and current.job_type:
        return current.job_type
    return candidate.applied_position


def select_minutes(candidate: Candidate, minutes_id: str | None = None) -> InterviewMinutes:
    """The requested interview record, or the most recent one."""
    if minutes_id:
        for record in candidate.interview_minutes:
            if record.id == minutes_id:
                return record
        raise MissingInputError(detail=f"minutes {minutes_id!r} not found for candidate {candidate.id!r}")
    record = latest_minutes(candidate.interview_minutes)
    if record is None:
        raise MissingInputError(detail=f"candidate {candidate.id!r} has no interview minutes")
    return record


# --- per-action state --------------------------------------------------------


@dataclass(slots=True, frozen=True)
class Idle:
    pass


@dataclass(slots=True, frozen=True)
class Loading:
    pass


@dataclass(slots=True, frozen=True)
class Succeeded:
    result: AnalysisResult


@dataclass(slots=True, frozen=True)
class Failed:
    kind: ErrorKind
    message: str


SlotState = Union[Idle, Loading, Succeeded, Failed]


class AnalysisBoard:
    """One state slot per analysis kind for a single candidate view.

    A slot that is loading refuses a second run. After :meth:`close` the
    board ignores results that arrive late.
    """

    def __init__(self, service: AnalysisService):
        self._service = service
        self._slots: dict[AnalysisKind, SlotState] = {kind: Idle() for kind in AnalysisKind}
        self._closed = False
        self._logger = structlog.get_logger(__name__)

    @property
    def closed(self) -> bool:
        return self._closed

    def state(self, kind: AnalysisKind) -> SlotState:
        return self._slots[AnalysisKind(kind)]

    def states(self) -> dict[AnalysisKind, SlotState]:
        return dict(self._slots)

    def is_loading(self, kind: AnalysisKind) -> bool:
        return isinstance(self.state(kind), Loading)

    def reset(self, kind: AnalysisKind) -> None:
        kind = AnalysisKind(kind)
        if not isinstance(self._slots[kind], Loading):
            self._slots[kind] = Idle()

    async def run(
        self,
        kind: AnalysisKind,
        candidate: Candidate,
        current: Evaluation | None = None,
        *,
        job_type: str | None = None,
        minutes_id: str | None = None,
    ) -> SlotState:
        kind = AnalysisKind(kind)
        if self._closed:
            return self._slots[kind]
        if isinstance(self._slots[kind], Loading):
            self._logger.info("analysis.already_running", kind=kind.value)
            return self._slots[kind]

        self._slots[kind] = Loading()
        outcome: SlotState
        try:
            result = await self._service.run(kind, candidate, current, job_type=job_type, minutes_id=minutes_id)
        except AnalysisError as exc:
            outcome = Failed(exc.kind, exc.message)
        except Exception as exc:  # noqa: BLE001
            self._logger.exception("analysis.unexpected_error", kind=kind.value)
            outcome = Failed(
                ErrorKind.UNKNOWN,
                localized_message(ErrorKind.UNKNOWN, operation=OPERATION_LABELS[kind], detail=str(exc)),
            )
        else:
            outcome = Succeeded(result)

        if self._closed:
            self._logger.info("analysis.dropped", kind=kind.value)
            return outcome
        self._slots[kind] = outcome
        return outcome

    def close(self) -> None:
        self._closed = True


__all__ = [
    "OPERATION_LABELS",
    "AnalysisBoard",
    "AnalysisContext",
    "AnalysisService",
    "Failed",
    "Idle",
    "Loading",
    "SlotState",
    "Succeeded",
    "select_minutes",
]
