from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from .job import EvaluationCriterion


class CompanyInfo(BaseModel):
    """Deployment-wide company profile and optional criteria override."""

    id: str = "default_company_info"
    company_name: str = ""
    mission: str = ""
    vision: str = ""
    values: list[str] = Field(default_factory=list)
    culture: str = ""
    behavioral_guidelines: list[str] = Field(default_factory=list)
    evaluation_philosophy: str = ""
    hiring_criteria: list[str] = Field(default_factory=list)
    work_environment: str = ""
    leadership_style: str = ""
    team_dynamics: str = ""
    performance_expectations: str = ""
    career_development: str = ""
    diversity_inclusion: str = ""
    additional_context: str = ""
    updated_at: datetime | None = None
    updated_by: str = ""
    evaluation_criteria: list[EvaluationCriterion] | None = None

    model_config = ConfigDict(extra="ignore")

    @property
    def criteria_override(self) -> list[EvaluationCriterion] | None:
        """Company-wide criteria when present and non-empty."""
        return self.evaluation_criteria or None
