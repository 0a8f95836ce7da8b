from __future__ import annotations

import json

import pytest

from hrevaluation.parsing import extract_json_text, fallback_result, parse_completion
from hrevaluation.schemas import (
    AnalysisKind,
    FitScoreAnalysis,
    InterviewMinutesAnalysis,
    InterviewQuestionSet,
    MatchingAnalysis,
    TurnoverRiskAnalysis,
)


def test_fenced_block_with_prose_is_clamped_and_truncated():
    text = (
        'Here you go: ```json\n{"recommendedScore":7,"confidence":1.5,'
        '"strengths":["a","b","c","d","e","f"]}\n```'
    )

    result = parse_completion(text, AnalysisKind.EVALUATION)

    assert isinstance(result, FitScoreAnalysis)
    assert result.recommended_score == 5.0
    assert result.confidence == 1.0
    assert result.strengths == ["a", "b", "c", "d", "e"]
    assert result.risk_factors == []
    assert result.recommendations == []
    assert result.reasoning == "AI分析結果"
    assert result.notice is None


def test_wrapping_does_not_change_the_result():
    payload = json.dumps(
        {"recommendedScore": 3.5, "confidence": 0.7, "reasoning": "妥当", "riskFactors": ["転職回数"]},
        ensure_ascii=False,
    )
    variants = [
        payload,
        f"```json\n{payload}\n```",
        f"分析結果は以下の通りです。\n{payload}\n以上です。",
    ]

    results = [parse_completion(text, AnalysisKind.EVALUATION) for text in variants]

    assert results[0] == results[1] == results[2]
    assert results[0].risk_factors == ["転職回数"]


@pytest.mark.parametrize("kind", list(AnalysisKind))
@pytest.mark.parametrize("text", ["", "not json at all", "{broken", "[1, 2, 3]", None])
def test_unparseable_text_yields_fallback(kind: AnalysisKind, text):
    result = parse_completion(text, kind)

    assert result == fallback_result(kind)
    assert result.notice


def test_fallback_defaults_per_kind():
    evaluation = fallback_result(AnalysisKind.EVALUATION)
    matching = fallback_result(AnalysisKind.MATCHING)
    turnover = fallback_result(AnalysisKind.TURNOVER)

    assert isinstance(evaluation, FitScoreAnalysis)
    assert (evaluation.recommended_score, evaluation.confidence) == (3.0, 0.3)
    assert evaluation.risk_factors == ["AI分析エラー"]
    assert evaluation.recommendations == ["手動評価の実施を推奨"]
    assert isinstance(matching, MatchingAnalysis)
    assert matching.overall_confidence == 0.3
    assert matching.weaknesses == ["AI分析エラー"]
    assert isinstance(turnover, TurnoverRiskAnalysis)
    assert (turnover.risk_level, turnover.risk_score) == ("medium", 0.5)
    assert isinstance(fallback_result(AnalysisKind.QUESTIONS), InterviewQuestionSet)


def test_missing_and_invalid_numbers_use_defaults():
    result = parse_completion('{"recommendedScore": "high", "confidence": null}', AnalysisKind.EVALUATION)

    assert result.recommended_score == 3.0
    assert result.confidence == 0.5


def test_zero_values_are_clamped_not_defaulted():
    result = parse_completion('{"recommendedScore": 0, "confidence": 0}', AnalysisKind.EVALUATION)

    assert result.recommended_score == 1.0
    assert result.confidence == 0.0


def test_matching_criteria_lists_are_capped_at_three():
    payload = {
        "overallMatchingScore": -2,
        "overallConfidence": 0.9,
        "criteriaAnalysis": [
            {
                "criterionId": "logical_thinking",
                "criterionName": "論理力",
                "matchingScore": 9,
                "evidences": ["e1", "e2", "e3", "e4"],
                "concerns": ["c1"],
            },
            "not an object",
        ],
        "weaknesses": ["w1", "w2", "w3", "w4", "w5", "w6", "w7"],
    }

    result = parse_completion(json.dumps(payload), AnalysisKind.MATCHING)

    assert isinstance(result, MatchingAnalysis)
    assert result.overall_matching_score == 1.0
    assert result.overall_reasoning == "マッチング分析結果"
    assert len(result.criteria_analysis) == 1
    match = result.criteria_analysis[0]
    assert match.criterion_id == "logical_thinking"
    assert match.matching_score == 5.0
    assert match.confidence == 0.5
    assert match.evidences == ["e1", "e2", "e3"]
    assert match.recommendations == []
    assert len(result.weaknesses) == 5


def test_questions_skip_entries_without_text():
    payload = {
        "questions": [
            {
                "question": "困難を乗り越えた経験は？",
                "purpose": "やり切り力の確認",
                "targetCriteria": ["persistence"],
                "expectedInsights": ["粘り強さ"],
            },
            {"purpose": "no question"},
        ]
    }

    result = parse_completion(json.dumps(payload, ensure_ascii=False), AnalysisKind.QUESTIONS)

    assert isinstance(result, InterviewQuestionSet)
    assert [q.question for q in result.questions] == ["困難を乗り越えた経験は？"]
    assert result.questions[0].target_criteria == ["persistence"]


def test_turnover_level_outside_enum_becomes_medium():
    result = parse_completion(
        '{"riskLevel": "extreme", "riskScore": 3, "factors": ["通勤距離"]}', AnalysisKind.TURNOVER
    )

    assert isinstance(result, TurnoverRiskAnalysis)
    assert result.risk_level == "medium"
    assert result.risk_score == 1.0
    assert result.factors == ["通勤距離"]


def test_extract_json_prefers_fenced_block():
    text = 'prefix {"a": 1} ```json\n{"b": 2}\n``` suffix'

    assert extract_json_text(text) == '{"b": 2}'
    assert extract_json_text("no braces") == "no braces"


def test_results_serialize_with_camel_case_aliases():
    result = parse_completion('{"recommendedScore": 4}', AnalysisKind.EVALUATION)

    dumped = result.model_dump(by_alias=True)

    assert dumped["recommendedScore"] == 4.0
    assert "riskFactors" in dumped


@pytest.mark.parametrize(
    "text",
    ["[" * 100000, '{"a":' * 100000, "分析結果: " + "{" * 50000 + "}" * 50000],
)
@pytest.mark.parametrize("kind", [AnalysisKind.EVALUATION, AnalysisKind.TURNOVER])
def test_deeply_nested_text_yields_fallback(kind: AnalysisKind, text: str):
    result = parse_completion(text, kind)

    assert result == fallback_result(kind)


def test_trailing_prose_with_braces_is_tolerated():
    text = '結果: {"riskLevel": "low", "riskScore": 0.2} 補足は {note} を参照'

    result = parse_completion(text, AnalysisKind.TURNOVER)

    assert result.notice is None
    assert (result.risk_level, result.risk_score) == ("low", 0.2)
    assert extract_json_text(text) == '{"riskLevel": "low", "riskScore": 0.2}'


def test_extract_json_returns_widest_span_when_nothing_decodes():
    assert extract_json_text("see {not json} and {more}") == "{not json} and {more}"


def test_minutes_skills_are_rounded_and_clamped():
    payload = {
        "overallAssessment": "誠実で論理的",
        "strengthsIdentified": ["傾聴力", "論理性", "誠実さ", "粘り強さ", "行動力", "柔軟性"],
        "skillsAssessment": {
            "communication": 0,
            "technicalSkills": 7,
            "problemSolving": 3.5,
            "culturalFit": "4.4",
            "motivation": "very high",
        },
        "redFlags": [],
        "confidenceLevel": 1.4,
    }

    result = parse_completion(json.dumps(payload, ensure_ascii=False), AnalysisKind.MINUTES)

    assert isinstance(result, InterviewMinutesAnalysis)
    skills = result.skills_assessment
    assert (skills.communication, skills.technical_skills, skills.problem_solving) == (1, 5, 4)
    assert (skills.cultural_fit, skills.motivation) == (4, 3)
    assert len(result.strengths_identified) == 6
    assert result.confidence_level == 1.0
    assert result.notice is None


def test_minutes_without_skills_use_middle_scores():
    result = parse_completion('{"overallAssessment": "普通", "skillsAssessment": [1, 2]}', AnalysisKind.MINUTES)

    assert result.skills_assessment.model_dump() == {
        "communication": 3,
        "technical_skills": 3,
        "problem_solving": 3,
        "cultural_fit": 3,
        "motivation": 3,
    }
    assert result.confidence_level == 0.5


def test_minutes_fallback_flags_the_error():
    result = fallback_result(AnalysisKind.MINUTES)

    assert isinstance(result, InterviewMinutesAnalysis)
    assert result.red_flags == ["AI分析エラー"]
    assert result.confidence_level == 0.3
    assert result.notice == result.overall_assessment
