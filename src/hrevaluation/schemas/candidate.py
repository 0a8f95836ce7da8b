from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from .job import JobType

InterviewPhaseId = Literal["casual", "first", "second", "final"]
DocumentType = Literal["resume", "career_history", "cover_letter", "portfolio", "other"]


class DocumentFile(BaseModel):
    """Text content of an attached candidate document."""

    id: str
    name: str = ""
    type: DocumentType = "other"
    content: str = ""
    original_file_name: str | None = None
    uploaded_at: datetime | None = None

    model_config = ConfigDict(extra="ignore")


class CandidateDocuments(BaseModel):
    resume: DocumentFile | None = None
    career_history: DocumentFile | None = None
    cover_letter: DocumentFile | None = None
    portfolio: DocumentFile | None = None
    others: list[DocumentFile] = Field(default_factory=list)


class MinutesQuestion(BaseModel):
    """Question asked during an interview and the recorded answer."""

    id: str = ""
    question: str
    purpose: str = ""
    target_criteria: list[str] = Field(default_factory=list)
    response: str = ""
    evaluator_notes: str = ""
    score: int | None = Field(default=None, ge=1, le=5)


class InterviewMinutes(BaseModel):
    """Interview minutes record attached to a candidate."""

    id: str
    candidate_id: str = ""
    phase: InterviewPhaseId
    interview_date: datetime
    interviewer: str = ""
    duration: int | None = None
    location: str = ""
    agenda: str = ""
    questions: list[MinutesQuestion] = Field(default_factory=list)
    interviewer_observations: str = ""
    key_insights: list[str] = Field(default_factory=list)
    concerns: list[str] = Field(default_factory=list)
    strengths: list[str] = Field(default_factory=list)
    overall_impression: str = ""
    rating: int = Field(default=3, ge=1, le=5)
    recommendation: Literal["strong_hire", "hire", "consider", "no_hire"] = "consider"
    next_steps: str = ""
    is_complete: bool = False
    created_at: datetime | None = None
    updated_at: datetime | None = None

    model_config = ConfigDict(extra="ignore")


class SPILanguageScore(BaseModel):
    total_score: float = 0
    vocabulary: float = 0
    reading: float = 0
    grammar: float = 0
    percentile: float = 0


class SPINonVerbalScore(BaseModel):
    total_score: float = 0
    calculation: float = 0
    logic: float = 0
    spatial: float = 0
    data_analysis: float = 0
    percentile: float = 0


class SPIBehavioral(BaseModel):
    leadership: float = 0
    teamwork: float = 0
    initiative: float = 0
    persistence: float = 0
    adaptability: float = 0
    communication: float = 0


class SPICognitive(BaseModel):
    analytical: float = 0
    creative: float = 0
    practical: float = 0
    strategic: float = 0


class SPIEmotional(BaseModel):
    stability: float = 0
    stress: float = 0
    optimism: float = 0
    empathy: float = 0


class SPIJobFit(BaseModel):
    sales: float = 0
    management: float = 0
    technical: float = 0
    creative: float = 0
    service: float = 0


class SPIPersonalityScore(BaseModel):
    behavioral: SPIBehavioral = Field(default_factory=SPIBehavioral)
    cognitive: SPICognitive = Field(default_factory=SPICognitive)
    emotional: SPIEmotional = Field(default_factory=SPIEmotional)
    job_fit: SPIJobFit = Field(default_factory=SPIJobFit)


class SPIResults(BaseModel):
    """Aptitude test (SPI) results."""

    test_date: datetime
    language: SPILanguageScore = Field(default_factory=SPILanguageScore)
    non_verbal: SPINonVerbalScore = Field(default_factory=SPINonVerbalScore)
    personality: SPIPersonalityScore = Field(default_factory=SPIPersonalityScore)
    total_score: float = 0
    percentile: float = 0
    test_version: str = "SPI3"
    test_duration: int | None = None
    reliability: Literal["high", "medium", "low"] = "medium"


class Candidate(BaseModel):
    """Applicant record.

    Frozen: the only supported change after creation is appending interview
    minutes, which yields a new instance via :meth:`with_minutes`.
    """

    id: str
    name: str = ""
    email: str = ""
    phone: str = ""
    age: int | None = None
    education: str = ""
    major: str = ""
    experience: str = ""
    self_pr: str = ""
    interview_notes: str = ""
    applied_position: JobType
    created_at: datetime | None = None
    updated_at: datetime | None = None
    spi_results: SPIResults | None = None
    interview_minutes: list[InterviewMinutes] = Field(default_factory=list)
    documents: CandidateDocuments | None = None

    model_config = ConfigDict(extra="ignore", frozen=True)

    def with_minutes(self, minutes: InterviewMinutes) -> "Candidate":
        return self.model_copy(
            update={"interview_minutes": [*self.interview_minutes, minutes]}
        )
