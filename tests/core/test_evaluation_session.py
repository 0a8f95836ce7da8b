from __future__ import annotations

import asyncio

import pytest

from hrevaluation.core import (
    EvaluationFinalizedError,
    EvaluationSession,
    IncompleteEvaluationError,
    JobTypeCatalog,
)
from hrevaluation.schemas import Candidate, SavedDraft
from hrevaluation.store import DraftRepository, EvaluationRepository, InMemoryStore


class CountingDrafts(DraftRepository):
    def __init__(self, store: InMemoryStore):
        super().__init__(store)
        self.saves = 0

    def save(self, draft: SavedDraft) -> SavedDraft:
        self.saves += 1
        return super().save(draft)


def _session(candidate, catalog, store, **kwargs) -> EvaluationSession:
    return EvaluationSession(
        candidate,
        "engineer",
        catalog.get("engineer").evaluation_criteria,
        drafts=kwargs.pop("drafts", DraftRepository(store)),
        evaluations=EvaluationRepository(store),
        **kwargs,
    )


def test_debounced_autosave_writes_once_per_burst(candidate: Candidate, catalog: JobTypeCatalog, store):
    drafts = CountingDrafts(store)

    async def scenario() -> EvaluationSession:
        session = _session(candidate, catalog, store, drafts=drafts, autosave_delay=0.05)
        session.set_score("logical_thinking", 3)
        await asyncio.sleep(0.01)
        session.set_score("problem_solving", 4)
        await asyncio.sleep(0.01)
        session.set_overall_comment("良い候補者")
        assert session.autosave_pending
        await asyncio.sleep(0.2)
        assert not session.autosave_pending
        return session

    session = asyncio.run(scenario())

    assert drafts.saves == 1
    saved = drafts.get(session.draft_id)
    assert saved is not None
    assert saved.evaluation.scores == {"logical_thinking": 3, "problem_solving": 4}
    assert saved.evaluation.overall_comment == "良い候補者"
    assert saved.title == "田中 太郎の評価"


def test_every_autosave_upserts_the_same_draft(candidate: Candidate, catalog: JobTypeCatalog, store):
    drafts = DraftRepository(store)

    async def scenario() -> EvaluationSession:
        session = _session(candidate, catalog, store, drafts=drafts, autosave_delay=0.01)
        session.set_score("logical_thinking", 2)
        await asyncio.sleep(0.05)
        session.set_score("logical_thinking", 3)
        await asyncio.sleep(0.05)
        return session

    session = asyncio.run(scenario())

    assert [d.id for d in drafts.list()] == [session.draft_id]
    assert session.draft_id.startswith("evaluation_C-001_")
    assert drafts.list()[0].evaluation.scores == {"logical_thinking": 3}


def test_close_drops_pending_autosave(candidate: Candidate, catalog: JobTypeCatalog, store):
    drafts = CountingDrafts(store)

    async def scenario() -> None:
        session = _session(candidate, catalog, store, drafts=drafts, autosave_delay=0.02)
        session.set_score("logical_thinking", 3)
        session.close()
        await asyncio.sleep(0.05)

    asyncio.run(scenario())

    assert drafts.saves == 0


def test_disabled_autosave_never_schedules(candidate: Candidate, catalog: JobTypeCatalog, store):
    session = _session(candidate, catalog, store, autosave=False)
    session.set_score("logical_thinking", 3)

    assert not session.autosave_pending
    assert DraftRepository(store).list() == []


def test_set_score_validation(candidate: Candidate, catalog: JobTypeCatalog, store):
    session = _session(candidate, catalog, store, autosave=False)

    with pytest.raises(KeyError):
        session.set_score("unknown", 3)
    with pytest.raises(ValueError):
        session.set_score("logical_thinking", 5)
    with pytest.raises(ValueError):
        session.set_recommendation("maybe")


def test_session_score_helpers(candidate: Candidate, catalog: JobTypeCatalog, store):
    session = _session(candidate, catalog, store, autosave=False)
    session.set_score("logical_thinking", 3)

    assert session.weighted_score() == 3.0
    assert session.completion_percentage() == round(1 / len(session.criteria) * 100)
    assert not session.is_complete()


def test_submit_requires_all_scores(candidate: Candidate, catalog: JobTypeCatalog, store):
    session = _session(candidate, catalog, store, autosave=False)
    session.set_score("logical_thinking", 3)

    with pytest.raises(IncompleteEvaluationError) as exc:
        session.submit()

    assert "logical_thinking" not in exc.value.missing
    assert "problem_solving" in exc.value.missing
    assert not session.finalized


def test_submit_persists_evaluation_and_removes_draft(candidate: Candidate, catalog: JobTypeCatalog, store):
    drafts = DraftRepository(store)
    evaluations = EvaluationRepository(store)
    session = EvaluationSession(
        candidate,
        "engineer",
        catalog.get("engineer").evaluation_criteria,
        drafts=drafts,
        evaluations=evaluations,
        autosave=False,
    )
    for criterion in session.criteria:
        session.set_score(criterion.id, 3)
    session.set_recommendation("hire")
    session.save_draft()
    assert drafts.get(session.draft_id) is not None

    evaluation = session.submit(evaluator_id="U-1", evaluator_name="佐藤")

    assert evaluation.is_complete
    assert evaluation.evaluated_at is not None
    assert evaluation.recommendation == "hire"
    stored = evaluations.get_by_candidate("C-001")
    assert stored is not None and stored.is_complete
    assert stored.scores == evaluation.scores
    assert stored.evaluator_name == "佐藤"
    assert drafts.list() == []
    with pytest.raises(EvaluationFinalizedError):
        session.set_score("logical_thinking", 4)
    assert session.save_draft() is None


def test_resume_from_draft_keeps_id(candidate: Candidate, catalog: JobTypeCatalog, store):
    drafts = DraftRepository(store)
    first = _session(candidate, catalog, store, drafts=drafts, autosave=False)
    first.set_score("logical_thinking", 2)
    first.set_comment("logical_thinking", "根拠が弱い")
    saved = first.save_draft()

    resumed = EvaluationSession.from_draft(
        saved,
        candidate,
        catalog.get("engineer").evaluation_criteria,
        drafts=drafts,
        evaluations=EvaluationRepository(store),
        autosave=False,
    )
    resumed.set_score("logical_thinking", 4)
    resumed.save_draft()

    assert resumed.draft_id == first.draft_id
    assert len(drafts.list()) == 1
    assert drafts.list()[0].evaluation.scores == {"logical_thinking": 4}
    assert resumed.comments == {"logical_thinking": "根拠が弱い"}
