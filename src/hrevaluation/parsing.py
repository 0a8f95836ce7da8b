"""Turn free-form completion text into validated analysis results.

The parser is the boundary between the completion model and the rest of the
application: it never raises. Unparseable text yields the kind-specific
fallback result carrying a ``notice``.
"""

from __future__ import annotations

import json
import math
import re
from typing import Any, Callable

import structlog
from pydantic import ValidationError

from .schemas import (
    AnalysisKind,
    AnalysisResult,
    CriterionMatch,
    FitScoreAnalysis,
    InterviewMinutesAnalysis,
    InterviewQuestionSet,
    MatchingAnalysis,
    SkillsAssessment,
    SuggestedQuestion,
    TurnoverRiskAnalysis,
)

SCORE_RANGE = (1.0, 5.0)
UNIT_RANGE = (0.0, 1.0)
DEFAULT_SCORE = 3.0
DEFAULT_CONFIDENCE = 0.5
DEFAULT_SKILL_SCORE = 3
MAX_SUMMARY_ITEMS = 5
MAX_CRITERION_ITEMS = 3

_FENCED_JSON = re.compile(r"```json\s*([\s\S]*?)\s*```")
_DECODER = json.JSONDecoder()

_ERROR_REASONING = "AI分析の解析中にエラーが発生しました。手動での評価をお勧めします。"
_MATCHING_ERROR_REASONING = "マッチング分析の解析中にエラーが発生しました。手動での評価をお勧めします。"
_QUESTIONS_ERROR = "面接質問の生成結果を解析できませんでした。再度お試しください。"
_TURNOVER_ERROR = "離職リスク分析の解析中にエラーが発生しました。手動での評価をお勧めします。"
_MINUTES_ERROR = "面接議事録の分析結果を解析できませんでした。手動での評価をお勧めします。"

logger = structlog.get_logger(__name__)


def extract_json_text(text: str) -> str:
    """Fenced ```json block first, then the first complete ``{...}`` object, else the text.

    When no object decodes from the first brace, the widest brace span is
    returned so the caller reports the decode error.
    """
    fenced = _FENCED_JSON.search(text)
    if fenced:
        return fenced.group(1)
    start = text.find("{")
    if start < 0:
        return text
    try:
        _, end = _DECODER.raw_decode(text, start)
    except (ValueError, RecursionError):
        end = text.rfind("}")
        return text[start : end + 1] if end > start else text[start:]
    return text[start:end]


def _number(value: Any, default: float, bounds: tuple[float, float]) -> float:
    if isinstance(value, bool):
        return default
    if isinstance(value, str):
        try:
            value = float(value)
        except ValueError:
            return default
    if not isinstance(value, (int, float)) or math.isnan(value):
        return default
    low, high = bounds
    return float(min(max(value, low), high))


def _text(value: Any, default: str = "") -> str:
    if isinstance(value, str) and value.strip():
        return value
    return default


def _strings(value: Any, limit: int | None = None) -> list[str]:
    if not isinstance(value, list):
        return []
    items = [item if isinstance(item, str) else str(item) for item in value if item is not None]
    return items[:limit] if limit is not None else items


def parse_fit_score(data: dict[str, Any]) -> FitScoreAnalysis:
    return FitScoreAnalysis(
        recommended_score=_number(data.get("recommendedScore"), DEFAULT_SCORE, SCORE_RANGE),
        confidence=_number(data.get("confidence"), DEFAULT_CONFIDENCE, UNIT_RANGE),
        reasoning=_text(data.get("reasoning"), "AI分析結果"),
        strengths=_strings(data.get("strengths"), MAX_SUMMARY_ITEMS),
        risk_factors=_strings(data.get("riskFactors"), MAX_SUMMARY_ITEMS),
        recommendations=_strings(data.get("recommendations"), MAX_SUMMARY_ITEMS),
    )


def _criterion_match(item: Any) -> CriterionMatch | None:
    if not isinstance(item, dict):
        return None
    return CriterionMatch(
        criterion_id=_text(item.get("criterionId")),
        criterion_name=_text(item.get("criterionName")),
        matching_score=_number(item.get("matchingScore"), DEFAULT_SCORE, SCORE_RANGE),
        confidence=_number(item.get("confidence"), DEFAULT_CONFIDENCE, UNIT_RANGE),
        reasoning=_text(item.get("reasoning")),
        evidences=_strings(item.get("evidences"), MAX_CRITERION_ITEMS),
        concerns=_strings(item.get("concerns"), MAX_CRITERION_ITEMS),
        recommendations=_strings(item.get("recommendations"), MAX_CRITERION_ITEMS),
    )


def parse_matching(data: dict[str, Any]) -> MatchingAnalysis:
    raw_criteria = data.get("criteriaAnalysis")
    matches = [
        match
        for match in (_criterion_match(item) for item in (raw_criteria if isinstance(raw_criteria, list) else []))
        if match is not None
    ]
    return MatchingAnalysis(
        overall_matching_score=_number(data.get("overallMatchingScore"), DEFAULT_SCORE, SCORE_RANGE),
        overall_confidence=_number(data.get("overallConfidence"), DEFAULT_CONFIDENCE, UNIT_RANGE),
        overall_reasoning=_text(data.get("overallReasoning"), "マッチング分析結果"),
        criteria_analysis=matches,
        strengths=_strings(data.get("strengths"), MAX_SUMMARY_ITEMS),
        weaknesses=_strings(data.get("weaknesses"), MAX_SUMMARY_ITEMS),
        recommendations=_strings(data.get("recommendations"), MAX_SUMMARY_ITEMS),
        risk_factors=_strings(data.get("riskFactors"), MAX_SUMMARY_ITEMS),
    )


def parse_questions(data: dict[str, Any]) -> InterviewQuestionSet:
    raw = data.get("questions")
    questions = []
    for item in raw if isinstance(raw, list) else []:
        if not isinstance(item, dict) or not _text(item.get("question")):
            continue
        questions.append(
            SuggestedQuestion(
                question=item["question"],
                purpose=_text(item.get("purpose")),
                target_criteria=_strings(item.get("targetCriteria")),
                expected_insights=_strings(item.get("expectedInsights")),
            )
        )
    return InterviewQuestionSet(questions=questions)


def parse_turnover(data: dict[str, Any]) -> TurnoverRiskAnalysis:
    level = data.get("riskLevel")
    return TurnoverRiskAnalysis(
        risk_level=level if level in ("low", "medium", "high") else "medium",
        risk_score=_number(data.get("riskScore"), 0.5, UNIT_RANGE),
        factors=_strings(data.get("factors"), MAX_SUMMARY_ITEMS),
        recommendations=_strings(data.get("recommendations"), MAX_SUMMARY_ITEMS),
    )


def _skill(value: Any) -> int:
    clamped = _number(value, DEFAULT_SKILL_SCORE, SCORE_RANGE)
    return int(math.floor(clamped + 0.5))


def parse_minutes_analysis(data: dict[str, Any]) -> InterviewMinutesAnalysis:
    skills = data.get("skillsAssessment")
    skills = skills if isinstance(skills, dict) else {}
    return InterviewMinutesAnalysis(
        overall_assessment=_text(data.get("overallAssessment")),
        strengths_identified=_strings(data.get("strengthsIdentified")),
        concerns_identified=_strings(data.get("concernsIdentified")),
        skills_assessment=SkillsAssessment(
            communication=_skill(skills.get("communication")),
            technical_skills=_skill(skills.get("technicalSkills")),
            problem_solving=_skill(skills.get("problemSolving")),
            cultural_fit=_skill(skills.get("culturalFit")),
            motivation=_skill(skills.get("motivation")),
        ),
        recommended_questions=_strings(data.get("recommendedQuestions")),
        red_flags=_strings(data.get("redFlags")),
        positive_signals=_strings(data.get("positiveSignals")),
        confidence_level=_number(data.get("confidenceLevel"), DEFAULT_CONFIDENCE, UNIT_RANGE),
    )


def fallback_result(kind: AnalysisKind) -> AnalysisResult:
    """Safe default returned whenever a completion cannot be parsed."""
    if kind is AnalysisKind.EVALUATION:
        return FitScoreAnalysis(
            recommended_score=3.0,
            confidence=0.3,
            reasoning=_ERROR_REASONING,
            strengths=[],
            risk_factors=["AI分析エラー"],
            recommendations=["手動評価の実施を推奨"],
            notice=_ERROR_REASONING,
        )
    if kind is AnalysisKind.MATCHING:
        return MatchingAnalysis(
            overall_matching_score=3.0,
            overall_confidence=0.3,
            overall_reasoning=_MATCHING_ERROR_REASONING,
            criteria_analysis=[],
            strengths=[],
            weaknesses=["AI分析エラー"],
            recommendations=["手動評価の実施を推奨"],
            risk_factors=["AI分析エラー"],
            notice=_MATCHING_ERROR_REASONING,
        )
    if kind is AnalysisKind.QUESTIONS:
        return InterviewQuestionSet(questions=[], notice=_QUESTIONS_ERROR)
    if kind is AnalysisKind.MINUTES:
        return InterviewMinutesAnalysis(
            overall_assessment=_MINUTES_ERROR,
            red_flags=["AI分析エラー"],
            confidence_level=0.3,
            notice=_MINUTES_ERROR,
        )
    return TurnoverRiskAnalysis(
        risk_level="medium",
        risk_score=0.5,
        factors=["AI分析エラー"],
        recommendations=["手動評価の実施を推奨"],
        notice=_TURNOVER_ERROR,
    )


_PARSERS: dict[AnalysisKind, Callable[[dict[str, Any]], AnalysisResult]] = {
    AnalysisKind.EVALUATION: parse_fit_score,
    AnalysisKind.MATCHING: parse_matching,
    AnalysisKind.QUESTIONS: parse_questions,
    AnalysisKind.TURNOVER: parse_turnover,
    AnalysisKind.MINUTES: parse_minutes_analysis,
}


def parse_completion(text: str | None, kind: AnalysisKind) -> AnalysisResult:
    """Parse ``text`` into the result shape for ``kind``; never raises."""
    kind = AnalysisKind(kind)
    try:
        data = json.loads(extract_json_text(text or ""))
    except (TypeError, ValueError) as exc:
        logger.warning("parser.fallback", kind=kind.value, reason="invalid_json", error=str(exc))
        return fallback_result(kind)
    except RecursionError:
        logger.warning("parser.fallback", kind=kind.value, reason="nesting_too_deep")
        return fallback_result(kind)
    if not isinstance(data, dict):
        logger.warning("parser.fallback", kind=kind.value, reason="not_an_object")
        return fallback_result(kind)
    try:
        return _PARSERS[kind](data)
    except (TypeError, ValueError, OverflowError, ValidationError) as exc:
        logger.warning("parser.fallback", kind=kind.value, reason="invalid_fields", error=str(exc))
        return fallback_result(kind)


__all__ = [
    "extract_json_text",
    "fallback_result",
    "parse_completion",
    "parse_fit_score",
    "parse_matching",
    "parse_minutes_analysis",
    "parse_questions",
    "parse_turnover",
]
