from __future__ import annotations

import pytest

from hrevaluation.core import (
    JobTypeCatalog,
    category_progress,
    group_by_category,
    is_fully_specified,
    resolve_criteria,
    resolve_job_config,
)
from hrevaluation.schemas import CompanyInfo, CriterionCategory, EvaluationCriterion, JOB_TYPES


def _criterion(criterion_id: str, weight: int = 10, category: str = "能力経験") -> EvaluationCriterion:
    return EvaluationCriterion(
        id=criterion_id,
        name=criterion_id.upper(),
        description="desc",
        category=category,
        weight=weight,
    )


def test_catalog_covers_every_job_type(catalog: JobTypeCatalog):
    assert set(catalog.job_types()) == set(JOB_TYPES)
    for config in catalog.all():
        assert config.evaluation_criteria, config.id
        assert all(is_fully_specified(c) for c in config.evaluation_criteria)


def test_catalog_unknown_job_type(catalog: JobTypeCatalog):
    with pytest.raises(KeyError):
        catalog.get("astronaut")


def test_engineer_defaults_include_logical_thinking(catalog: JobTypeCatalog):
    engineer = {c.id: c for c in catalog.get("engineer").evaluation_criteria}
    assert engineer["logical_thinking"].weight == 11
    assert engineer["logical_thinking"].category is CriterionCategory.CAPABILITY


def test_resolution_prefers_company_criteria(catalog: JobTypeCatalog):
    company = CompanyInfo(evaluation_criteria=[_criterion("company_only")])
    stored = [_criterion("stored_only")]

    resolution = resolve_criteria("engineer", catalog=catalog, company=company, stored=stored)

    assert resolution.source == "company"
    assert [c.id for c in resolution.criteria] == ["company_only"]


def test_resolution_ignores_empty_company_list(catalog: JobTypeCatalog):
    company = CompanyInfo(evaluation_criteria=[])
    stored = [_criterion("stored_only")]

    resolution = resolve_criteria("engineer", catalog=catalog, company=company, stored=stored)

    assert resolution.source == "job_type"
    assert [c.id for c in resolution.criteria] == ["stored_only"]


def test_resolution_falls_back_to_builtin(catalog: JobTypeCatalog):
    resolution = resolve_criteria("marketing", catalog=catalog, company=CompanyInfo(), stored=[])

    assert resolution.source == "default"
    assert resolution.criteria == catalog.get("marketing").evaluation_criteria


def test_resolve_job_config_replaces_criteria_only(catalog: JobTypeCatalog):
    stored = [_criterion("stored_only")]
    config = resolve_job_config("engineer", catalog=catalog, stored=stored)

    assert config.name == catalog.get("engineer").name
    assert [c.id for c in config.evaluation_criteria] == ["stored_only"]
    assert catalog.get("engineer").evaluation_criteria[0].id != "stored_only"


def test_group_by_category_omits_empty_groups():
    criteria = [_criterion("a"), _criterion("b", category="志向性"), _criterion("c")]

    grouped = group_by_category(criteria)

    assert list(grouped) == [CriterionCategory.CAPABILITY, CriterionCategory.ORIENTATION]
    assert [c.id for c in grouped[CriterionCategory.CAPABILITY]] == ["a", "c"]


def test_category_progress():
    criteria = [_criterion("a"), _criterion("b"), _criterion("c", category="価値観")]

    assert category_progress(criteria, {"a": 2}, CriterionCategory.CAPABILITY) == 50.0
    assert category_progress(criteria, {}, CriterionCategory.ORIENTATION) == 0.0


def test_is_fully_specified_requires_all_levels():
    revalidated = EvaluationCriterion.model_validate(
        {
            **_criterion("a").model_dump(),
            "score_descriptions": [
                {"score": 1, "label": "1", "description": "x"},
                {"score": 2, "label": "2", "description": "x"},
                {"score": 3, "label": "3", "description": " "},
                {"score": 4, "label": "4", "description": "x"},
            ],
        }
    )

    assert not is_fully_specified(revalidated)
    assert not is_fully_specified(_criterion("b"))
