"""Similar past candidates, hiring statistics and outcome prediction.

Only candidates whose evaluation is finalized and carries a hired or rejected
decision count as history.
"""

from __future__ import annotations

import re
from typing import Callable, Mapping, Sequence

import structlog

from ..schemas import (
    Candidate,
    Evaluation,
    HiringPrediction,
    HiringStatistics,
    JobTypeHiringStats,
    SimilarCandidate,
)
from ..store import CandidateRepository, EvaluationRepository

DEFAULT_LIMIT = 5
PREDICTION_SAMPLE = 10

_PUNCTUATION = re.compile(r"[.,/#!$%^&*;:{}=\-_`~()]")
_SPACES = re.compile(r"\s+")
_STOP_WORDS = frozenset(
    {
        "の", "に", "は", "を", "た", "が", "で", "て", "と", "し", "れ", "さ", "ある", "いる",
        "する", "ます", "です", "した", "から", "など", "その", "この", "これ", "それ", "あの", "あれ",
    }
)


def extract_keywords(text: str) -> list[str]:
    """Whitespace tokens with punctuation and stop words removed."""
    normalized = _PUNCTUATION.sub("", text.lower())
    return [word for word in _SPACES.split(normalized) if len(word) > 1 and word not in _STOP_WORDS]


def text_similarity(first: str, second: str) -> float:
    """Shared keywords over the keyword union, 0-1."""
    if not first or not second:
        return 0.0
    words1 = extract_keywords(first)
    words2 = extract_keywords(second)
    if not words1 or not words2:
        return 0.0
    vocabulary = set(words2)
    common = [word for word in words1 if word in vocabulary]
    return min(1.0, len(common) / len(set(words1) | vocabulary))


def _age_points(first: int | None, second: int | None) -> float | None:
    if first is None or second is None:
        return None
    diff = abs(first - second)
    if diff <= 3:
        return 5
    if diff <= 7:
        return 3
    if diff <= 10:
        return 1
    return 0


def _spi_points(first: Candidate, second: Candidate) -> float | None:
    if first.spi_results is None or second.spi_results is None:
        return None
    diff = abs(first.spi_results.total_score - second.spi_results.total_score)
    for limit, points in ((5, 10), (10, 7), (15, 4), (20, 2)):
        if diff <= limit:
            return points
    return 0


def candidate_similarity(first: Candidate, second: Candidate) -> float:
    """Weighted profile similarity normalized to 0-100.

    Major, age and SPI components only count when both candidates have them.
    """
    score = 0.0
    total = 0.0
    if first.applied_position == second.applied_position:
        score += 40
    total += 40
    score += text_similarity(first.education, second.education) * 10
    total += 10
    if first.major and second.major:
        score += text_similarity(first.major, second.major) * 10
        total += 10
    score += text_similarity(first.experience, second.experience) * 20
    total += 20
    score += text_similarity(first.self_pr, second.self_pr) * 15
    total += 15
    for points, weight in ((_age_points(first.age, second.age), 5), (_spi_points(first, second), 10)):
        if points is not None:
            score += points
            total += weight
    return min(100.0, score / total * 100) if total else 0.0


def similarity_reasons(
    first: Candidate,
    second: Candidate,
    job_label: Callable[[str], str] = str,
) -> list[str]:
    reasons: list[str] = []
    if first.applied_position == second.applied_position:
        reasons.append(f"同じ職種「{job_label(first.applied_position)}」に応募")
    if text_similarity(first.education, second.education) > 0.5:
        reasons.append("類似した学歴背景")
    if first.major and second.major and text_similarity(first.major, second.major) > 0.5:
        reasons.append("類似した専攻分野")
    if text_similarity(first.experience, second.experience) > 0.4:
        reasons.append("類似した職務経験")
    if text_similarity(first.self_pr, second.self_pr) > 0.3:
        reasons.append("類似した自己PR内容")
    if first.age is not None and second.age is not None and abs(first.age - second.age) <= 3:
        reasons.append("近い年齢層")
    if first.spi_results is not None and second.spi_results is not None:
        if abs(first.spi_results.total_score - second.spi_results.total_score) <= 10:
            reasons.append("類似したSPI適性検査結果")
    return reasons


def hiring_statistics(evaluations: Sequence[Evaluation]) -> HiringStatistics:
    decided = [e for e in evaluations if e.is_decided]
    hired = sum(1 for e in decided if e.final_decision == "hired")
    per_job: dict[str, JobTypeHiringStats] = {}
    for evaluation in decided:
        stats = per_job.setdefault(evaluation.job_type, JobTypeHiringStats())
        stats.total += 1
        if evaluation.final_decision == "hired":
            stats.hired += 1
    for stats in per_job.values():
        stats.rate = stats.hired / stats.total * 100
    return HiringStatistics(
        total_evaluated=len(decided),
        hired=hired,
        rejected=len(decided) - hired,
        overall_hiring_rate=hired / len(decided) * 100 if decided else 0.0,
        job_type_stats=per_job,
    )


def _mean_score(scores: Sequence[int]) -> float:
    return sum(scores) / len(scores) if scores else 0.0


def _baseline(hire_rate: float) -> tuple[str, float]:
    if hire_rate >= 0.7:
        return "hire", 0.7 + (hire_rate - 0.7) * 0.5
    if hire_rate >= 0.5:
        return "hire", 0.5 + (hire_rate - 0.5)
    if hire_rate >= 0.3:
        return "reject", 0.5 + (0.5 - hire_rate)
    return "reject", 0.7 + (0.3 - hire_rate) * 0.5


def predict_outcome(similar: Sequence[SimilarCandidate], current_scores: Mapping[str, int] | None) -> HiringPrediction:
    """Predict hire or reject from the outcomes of similar past candidates.

    The current scorecard average (1-4) overrides the history when it is
    at least 3.5 or at most 2.0.
    """
    if not similar:
        return HiringPrediction(
            prediction="hire",
            confidence=0.5,
            reasons=["十分な過去データがないため、予測の信頼性は低いです"],
        )

    hired = [item for item in similar if item.evaluation.final_decision == "hired"]
    hire_rate = len(hired) / len(similar)
    current_avg = _mean_score(list((current_scores or {}).values()))
    hired_avg = _mean_score([score for item in hired for score in item.evaluation.scores.values()])

    reasons: list[str] = []
    if len(similar) >= 3:
        reasons.append(
            f"{len(similar)}名の類似候補者のうち{len(hired)}名が採用されています（採用率: {hire_rate * 100:.1f}%）"
        )
    if hired:
        reasons.append(f"採用された類似候補者の平均スコアは{hired_avg:.1f}点でした")
        if current_avg > 0:
            if current_avg >= hired_avg:
                reasons.append(f"現在の評価スコア({current_avg:.1f})は採用された類似候補者の平均以上です")
            else:
                reasons.append(f"現在の評価スコア({current_avg:.1f})は採用された類似候補者の平均を下回っています")

    prediction, confidence = _baseline(hire_rate)
    if current_avg >= 3.5 and prediction == "reject":
        prediction, confidence = "hire", max(0.6, confidence - 0.1)
        reasons.append("現在の高評価スコアにより採用予測を調整しました")
    elif 0 < current_avg <= 2.0 and prediction == "hire":
        prediction, confidence = "reject", max(0.6, confidence - 0.1)
        reasons.append("現在の低評価スコアにより不採用予測を調整しました")

    return HiringPrediction(
        prediction=prediction,
        confidence=round(min(confidence, 1.0), 4),
        reasons=reasons,
        similar_count=len(similar),
    )


class SimilarCandidateFinder:
    """Looks up decided past candidates in the repositories."""

    def __init__(
        self,
        candidates: CandidateRepository,
        evaluations: EvaluationRepository,
        job_label: Callable[[str], str] = str,
    ) -> None:
        self._candidates = candidates
        self._evaluations = evaluations
        self._job_label = job_label
        self._logger = structlog.get_logger(__name__)

    def find(self, candidate: Candidate, limit: int = DEFAULT_LIMIT) -> list[SimilarCandidate]:
        decided = {e.candidate_id: e for e in self._evaluations.list() if e.is_decided}
        matches = [
            SimilarCandidate(
                candidate=past,
                evaluation=decided[past.id],
                similarity_score=candidate_similarity(candidate, past),
                similarity_reasons=similarity_reasons(candidate, past, self._job_label),
            )
            for past in self._candidates.list()
            if past.id != candidate.id and past.id in decided
        ]
        matches.sort(key=lambda item: item.similarity_score, reverse=True)
        self._logger.info("similar.found", candidate_id=candidate.id, history=len(decided), matches=len(matches))
        return matches[:limit]

    def statistics(self) -> HiringStatistics:
        return hiring_statistics(self._evaluations.list())

    def predict(self, candidate: Candidate, current: Evaluation | None = None) -> HiringPrediction:
        similar = self.find(candidate, limit=PREDICTION_SAMPLE)
        return predict_outcome(similar, current.scores if current is not None else None)
