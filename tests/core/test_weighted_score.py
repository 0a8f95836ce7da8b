from __future__ import annotations

import pytest

from hrevaluation.core import JobTypeCatalog, completion_percentage, is_form_complete, weighted_score
from hrevaluation.schemas import EvaluationCriterion


def _criterion(criterion_id: str, weight: int) -> EvaluationCriterion:
    return EvaluationCriterion(id=criterion_id, name=criterion_id, category="能力経験", weight=weight)


def test_single_scored_engineer_criterion_is_exact(catalog: JobTypeCatalog):
    criteria = catalog.get("engineer").evaluation_criteria

    assert weighted_score(criteria, {"logical_thinking": 3}) == 3.0


def test_weighted_mean_uses_scored_criteria_only():
    criteria = [_criterion("a", 30), _criterion("b", 10), _criterion("c", 60)]

    assert weighted_score(criteria, {"a": 4, "b": 2}) == pytest.approx((4 * 30 + 2 * 10) / 40)


def test_nothing_scored_is_zero():
    criteria = [_criterion("a", 30)]

    assert weighted_score(criteria, {}) == 0.0
    assert weighted_score([], {"a": 3}) == 0.0


def test_out_of_range_scores_are_ignored():
    criteria = [_criterion("a", 50), _criterion("b", 50)]

    assert weighted_score(criteria, {"a": 4, "b": 9}) == 4.0
    assert weighted_score(criteria, {"a": 0}) == 0.0


def test_zero_weight_criteria_do_not_divide_by_zero():
    criteria = [_criterion("a", 0)]

    assert weighted_score(criteria, {"a": 3}) == 0.0


def test_completion_and_form_state():
    criteria = [_criterion("a", 1), _criterion("b", 1), _criterion("c", 1)]

    assert completion_percentage(criteria, {"a": 1}) == 33
    assert completion_percentage([], {}) == 0
    assert not is_form_complete(criteria, {"a": 1, "b": 2})
    assert is_form_complete(criteria, {"a": 1, "b": 2, "c": 4})
