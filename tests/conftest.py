from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Callable

import pytest

from hrevaluation.core import JobTypeCatalog
from hrevaluation.schemas import Candidate, InterviewMinutes
from hrevaluation.store import InMemoryStore


@pytest.fixture(scope="session")
def catalog() -> JobTypeCatalog:
    return JobTypeCatalog.from_config()


@pytest.fixture
def store() -> InMemoryStore:
    return InMemoryStore()


def _minutes(index: int, **overrides: Any) -> InterviewMinutes:
    data: dict[str, Any] = {
        "id": f"M-{index}",
        "candidate_id": "C-001",
        "phase": "first",
        "interview_date": datetime(2024, 4, index, tzinfo=timezone.utc),
        "interviewer": f"面接官{index}",
        "overall_impression": f"印象{index}",
        "rating": 4,
        "key_insights": [f"洞察{index}"],
    }
    data.update(overrides)
    return InterviewMinutes.model_validate(data)


@pytest.fixture
def make_minutes() -> Callable[..., InterviewMinutes]:
    return _minutes


@pytest.fixture
def make_candidate() -> Callable[..., Candidate]:
    def factory(**overrides: Any) -> Candidate:
        data: dict[str, Any] = {
            "id": "C-001",
            "name": "田中 太郎",
            "email": "taro@example.com",
            "age": 28,
            "education": "東京大学 工学部",
            "major": "情報工学",
            "experience": "Webサービス開発に5年従事。バックエンドとインフラを担当。",
            "self_pr": "チームで成果を出すことにこだわってきました。",
            "interview_notes": "受け答えが明快",
            "applied_position": "engineer",
        }
        data.update(overrides)
        return Candidate.model_validate(data)

    return factory


@pytest.fixture
def candidate(make_candidate: Callable[..., Candidate]) -> Candidate:
    return make_candidate()
