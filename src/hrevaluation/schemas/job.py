"""Job types, evaluation criteria and job postings."""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Literal, get_args

from pydantic import BaseModel, ConfigDict, Field

JobType = Literal[
    "fresh_sales",
    "experienced_sales",
    "specialist",
    "engineer",
    "part_time_base",
    "part_time_sales",
    "finance_accounting",
    "human_resources",
    "business_development",
    "marketing",
]

JOB_TYPES: tuple[str, ...] = get_args(JobType)

SCORE_LEVELS: tuple[int, ...] = (1, 2, 3, 4)


class CriterionCategory(str, Enum):
    """Closed set of criterion groupings shown on the scorecard."""

    CAPABILITY = "能力経験"
    VALUES = "価値観"
    ORIENTATION = "志向性"


class ScoreDescription(BaseModel):
    """Rubric text for one score level of a criterion."""

    score: int = Field(ge=1, le=4)
    label: str = ""
    description: str = ""

    model_config = ConfigDict(extra="forbid")


class EvaluationCriterion(BaseModel):
    """Single weighted axis of candidate evaluation."""

    id: str
    name: str
    description: str = ""
    category: CriterionCategory
    weight: int = Field(default=0, ge=0)
    score_descriptions: list[ScoreDescription] = Field(default_factory=list)

    model_config = ConfigDict(extra="forbid")

    def score_description(self, score: int) -> ScoreDescription | None:
        for entry in self.score_descriptions:
            if entry.score == score:
                return entry
        return None


class JobTypeConfig(BaseModel):
    """Evaluation setup for one job type."""

    id: JobType
    name: str
    description: str = ""
    evaluation_criteria: list[EvaluationCriterion] = Field(default_factory=list)
    interview_process: str | None = None

    model_config = ConfigDict(extra="forbid")


EmploymentType = Literal["full-time", "part-time", "contract", "internship"]


class SalaryRange(BaseModel):
    min: int = 0
    max: int = 0
    currency: str = "JPY"


class PostingRequirements(BaseModel):
    education: list[str] = Field(default_factory=list)
    experience: list[str] = Field(default_factory=list)
    skills: list[str] = Field(default_factory=list)
    qualifications: list[str] = Field(default_factory=list)
    languages: list[str] = Field(default_factory=list)


class WorkingConditions(BaseModel):
    working_hours: str = ""
    holidays: str = ""
    overtime: str = ""
    remote_work: bool = False
    travel_required: bool = False


class PostingCompanyInfo(BaseModel):
    mission: str = ""
    vision: str = ""
    values: list[str] = Field(default_factory=list)
    culture: str = ""


class CareerPath(BaseModel):
    initial_role: str = ""
    growth_opportunities: list[str] = Field(default_factory=list)
    training_programs: list[str] = Field(default_factory=list)


class JobPosting(BaseModel):
    """Published job posting used as prompt context."""

    id: str
    job_type: JobType
    title: str
    department: str = ""
    location: str = ""
    employment_type: EmploymentType = "full-time"
    salary_range: SalaryRange = Field(default_factory=SalaryRange)
    requirements: PostingRequirements = Field(default_factory=PostingRequirements)
    essential_requirements: list[str] = Field(default_factory=list)
    preferred_requirements: list[str] = Field(default_factory=list)
    ideal_candidate: list[str] = Field(default_factory=list)
    responsibilities: list[str] = Field(default_factory=list)
    benefits: list[str] = Field(default_factory=list)
    working_conditions: WorkingConditions = Field(default_factory=WorkingConditions)
    company_info: PostingCompanyInfo = Field(default_factory=PostingCompanyInfo)
    career_path: CareerPath = Field(default_factory=CareerPath)
    application_deadline: datetime | None = None
    start_date: datetime | None = None
    is_active: bool = True
    created_at: datetime | None = None
    updated_at: datetime | None = None
    created_by: str = ""

    model_config = ConfigDict(extra="ignore")
