"""Criteria catalog, resolution order and scorecard arithmetic."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterable, Literal, Mapping, Sequence

from ..config import ConfigManager
from ..schemas import (
    CompanyInfo,
    CriterionCategory,
    EvaluationCriterion,
    JobTypeConfig,
    ScoreDescription,
)
from ..schemas.job import SCORE_LEVELS

CriteriaSource = Literal["company", "job_type", "default"]


class JobTypeCatalog:
    """Built-in job types loaded from the packaged ``job_types.yaml``."""

    def __init__(self, configs: Mapping[str, JobTypeConfig]):
        self._configs = dict(configs)

    @classmethod
    def from_config(cls, manager: ConfigManager | None = None, name: str = "job_types") -> "JobTypeCatalog":
        raw = (manager or ConfigManager()).load(name)
        levels = [ScoreDescription.model_validate(item) for item in raw.get("score_levels", [])]
        configs: dict[str, JobTypeConfig] = {}
        for job_id, data in (raw.get("job_types") or {}).items():
            criteria = [
                _with_levels(item, levels) for item in data.get("evaluation_criteria", [])
            ]
            configs[job_id] = JobTypeConfig.model_validate(
                {**data, "id": job_id, "evaluation_criteria": criteria}
            )
        return cls(configs)

    def get(self, job_type: str) -> JobTypeConfig:
        try:
            return self._configs[job_type]
        except KeyError as exc:
            raise KeyError(f"Unknown job type: {job_type!r}") from exc

    def label(self, job_type: str) -> str:
        config = self._configs.get(job_type)
        return config.name if config is not None else job_type

    def job_types(self) -> list[str]:
        return list(self._configs.keys())

    def all(self) -> list[JobTypeConfig]:
        return list(self._configs.values())


def _with_levels(item: dict[str, Any], levels: list[ScoreDescription]) -> dict[str, Any]:
    if item.get("score_descriptions"):
        return item
    return {**item, "score_descriptions": [level.model_dump() for level in levels]}


@dataclass(slots=True)
class CriteriaResolution:
    """Criteria selected for a job type and where they came from."""

    criteria: list[EvaluationCriterion]
    source: CriteriaSource


def resolve_criteria(
    job_type: str,
    *,
    catalog: JobTypeCatalog,
    company: CompanyInfo | None = None,
    stored: Sequence[EvaluationCriterion] | None = None,
) -> CriteriaResolution:
    """Pick exactly one criteria source: company, then job type, then built-in."""
    if company is not None and company.criteria_override:
        return CriteriaResolution(list(company.criteria_override), "company")
    if stored:
        return CriteriaResolution(list(stored), "job_type")
    return CriteriaResolution(list(catalog.get(job_type).evaluation_criteria), "default")


def resolve_job_config(
    job_type: str,
    *,
    catalog: JobTypeCatalog,
    company: CompanyInfo | None = None,
    stored: Sequence[EvaluationCriterion] | None = None,
) -> JobTypeConfig:
    """Built-in job config carrying the resolved criteria."""
    resolution = resolve_criteria(job_type, catalog=catalog, company=company, stored=stored)
    return catalog.get(job_type).model_copy(update={"evaluation_criteria": resolution.criteria})


def is_fully_specified(criterion: EvaluationCriterion) -> bool:
    """True when every score level 1-4 has a non-empty description."""
    for score in SCORE_LEVELS:
        entry = criterion.score_description(score)
        if entry is None or not entry.description.strip():
            return False
    return True


def _valid_score(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and value in SCORE_LEVELS


def weighted_score(
    criteria: Iterable[EvaluationCriterion],
    scores: Mapping[str, int],
) -> float:
    """Weighted mean over scored criteria only; 0.0 when nothing is scored."""
    weighted_sum = 0
    total_weight = 0
    for criterion in criteria:
        score = scores.get(criterion.id)
        if not _valid_score(score):
            continue
        weighted_sum += score * criterion.weight
        total_weight += criterion.weight
    return weighted_sum / total_weight if total_weight > 0 else 0.0


def completion_percentage(
    criteria: Sequence[EvaluationCriterion],
    scores: Mapping[str, int],
) -> int:
    if not criteria:
        return 0
    completed = sum(1 for c in criteria if _valid_score(scores.get(c.id)))
    return round(completed / len(criteria) * 100)


def is_form_complete(
    criteria: Iterable[EvaluationCriterion],
    scores: Mapping[str, int],
) -> bool:
    return all(_valid_score(scores.get(c.id)) for c in criteria)


def group_by_category(
    criteria: Iterable[EvaluationCriterion],
) -> dict[CriterionCategory, list[EvaluationCriterion]]:
    """Group criteria in category order, omitting empty categories."""
    grouped: dict[CriterionCategory, list[EvaluationCriterion]] = {c: [] for c in CriterionCategory}
    for criterion in criteria:
        grouped[criterion.category].append(criterion)
    return {category: items for category, items in grouped.items() if items}


def category_progress(
    criteria: Iterable[EvaluationCriterion],
    scores: Mapping[str, int],
    category: CriterionCategory,
) -> float:
    in_category = [c for c in criteria if c.category is category]
    if not in_category:
        return 0.0
    done = sum(1 for c in in_category if _valid_score(scores.get(c.id)))
    return done / len(in_category) * 100
