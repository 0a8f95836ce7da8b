"""Rule-based reading of SPI aptitude results.

All personality and ability scores are on a 0-100 scale. Thresholds and
label texts live in the tables below; the functions only walk them.
"""

from __future__ import annotations

import math
from typing import Callable, Sequence

from ..schemas import SPIAnalysis, SPIResults

MAX_STRENGTHS = 5
MAX_DEVELOPMENT_AREAS = 3
MAX_INSIGHTS = 4
MAX_RISKS = 3
MAX_RECOMMENDATIONS = 4

JOB_FIT_WEIGHTS = (0.4, 0.3, 0.3)
ABILITY_WEIGHT = 0.2

Rule = tuple[Callable[[SPIResults], bool], str]


def _mean(*values: float) -> float:
    return sum(values) / len(values)


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def _clamp_percent(value: float) -> int:
    return _round_half_up(max(0.0, min(100.0, value)))


def _fmt(value: float) -> str:
    return str(int(value)) if float(value).is_integer() else str(value)


# job type -> (job fit, cognitive, behavioral) components
_JOB_FIT_COMPONENTS: dict[str, Callable[[SPIResults], tuple[float, float, float]]] = {
    "fresh_sales": lambda s: (
        s.personality.job_fit.sales,
        _mean(s.personality.cognitive.practical, s.personality.cognitive.strategic),
        _mean(
            s.personality.behavioral.communication,
            s.personality.behavioral.initiative,
            s.personality.behavioral.persistence,
        ),
    ),
    "engineer": lambda s: (
        s.personality.job_fit.technical,
        _mean(s.personality.cognitive.analytical, s.personality.cognitive.practical),
        _mean(s.personality.behavioral.persistence, s.personality.behavioral.adaptability),
    ),
    "specialist": lambda s: (
        _mean(s.personality.job_fit.technical, s.personality.job_fit.management),
        _mean(s.personality.cognitive.analytical, s.personality.cognitive.strategic),
        _mean(s.personality.behavioral.leadership, s.personality.behavioral.initiative),
    ),
    "part_time_base": lambda s: (
        s.personality.job_fit.service,
        s.personality.cognitive.practical,
        _mean(
            s.personality.behavioral.teamwork,
            s.personality.behavioral.communication,
            s.personality.behavioral.adaptability,
        ),
    ),
    "part_time_sales": lambda s: (
        _mean(s.personality.job_fit.sales, s.personality.job_fit.service),
        s.personality.cognitive.practical,
        _mean(
            s.personality.behavioral.communication,
            s.personality.behavioral.persistence,
            s.personality.behavioral.initiative,
        ),
    ),
}
_JOB_FIT_COMPONENTS["experienced_sales"] = _JOB_FIT_COMPONENTS["fresh_sales"]


def _default_components(s: SPIResults) -> tuple[float, float, float]:
    job_fit = s.personality.job_fit
    return (
        _mean(job_fit.sales, job_fit.technical, job_fit.management),
        _mean(s.personality.cognitive.analytical, s.personality.cognitive.practical),
        _mean(s.personality.behavioral.teamwork, s.personality.behavioral.communication),
    )


def ability_average(spi: SPIResults) -> float:
    return _mean(spi.language.total_score, spi.non_verbal.total_score)


def job_fit_score(spi: SPIResults, job_type: str) -> int:
    """Weighted personality fit for ``job_type`` blended with ability scores, 0-100."""
    components = _JOB_FIT_COMPONENTS.get(job_type, _default_components)(spi)
    base = sum(weight * value for weight, value in zip(JOB_FIT_WEIGHTS, components))
    return _clamp_percent(base * (1 - ABILITY_WEIGHT) + ability_average(spi) * ABILITY_WEIGHT)


_STRENGTH_RULES: Sequence[Rule] = (
    (lambda s: s.personality.behavioral.leadership >= 70, "リーダーシップ"),
    (lambda s: s.personality.behavioral.teamwork >= 70, "チームワーク"),
    (lambda s: s.personality.behavioral.initiative >= 70, "積極性・主体性"),
    (lambda s: s.personality.behavioral.persistence >= 70, "粘り強さ・継続力"),
    (lambda s: s.personality.behavioral.adaptability >= 70, "適応性・柔軟性"),
    (lambda s: s.personality.behavioral.communication >= 70, "コミュニケーション能力"),
    (lambda s: s.personality.cognitive.analytical >= 70, "分析的思考力"),
    (lambda s: s.personality.cognitive.creative >= 70, "創造的思考力"),
    (lambda s: s.personality.cognitive.practical >= 70, "実践的思考力"),
    (lambda s: s.personality.cognitive.strategic >= 70, "戦略的思考力"),
    (lambda s: s.personality.emotional.stability >= 70, "情緒安定性"),
    (lambda s: s.personality.emotional.stress >= 70, "ストレス耐性"),
    (lambda s: s.personality.emotional.optimism >= 70, "楽観性・前向きさ"),
    (lambda s: s.personality.emotional.empathy >= 70, "共感性・理解力"),
    (lambda s: s.language.total_score >= 60, "言語能力"),
    (lambda s: s.non_verbal.total_score >= 60, "数理・論理的思考"),
)

_DEVELOPMENT_RULES: Sequence[Rule] = (
    (lambda s: s.personality.behavioral.leadership < 40, "リーダーシップの発揮"),
    (lambda s: s.personality.behavioral.teamwork < 40, "チームワークの向上"),
    (lambda s: s.personality.behavioral.initiative < 40, "積極性の向上"),
    (lambda s: s.personality.behavioral.persistence < 40, "継続力の強化"),
    (lambda s: s.personality.behavioral.communication < 40, "コミュニケーション力の向上"),
    (lambda s: s.personality.cognitive.analytical < 40, "分析力の強化"),
    (lambda s: s.personality.cognitive.practical < 40, "実践力の向上"),
    (lambda s: s.personality.emotional.stability < 40, "情緒安定性の向上"),
    (lambda s: s.personality.emotional.stress < 40, "ストレス管理能力の向上"),
    (lambda s: s.language.total_score < 40, "言語能力の向上"),
    (lambda s: s.non_verbal.total_score < 40, "数理・論理思考力の向上"),
)

_INSIGHT_RULES: Sequence[Rule] = (
    (
        lambda s: s.personality.behavioral.leadership > 60 and s.personality.behavioral.teamwork > 60,
        "リーダーシップとチームワークのバランスが良く、組織の中核として活躍できる",
    ),
    (
        lambda s: s.personality.behavioral.initiative > 70 and s.personality.behavioral.persistence > 70,
        "高い積極性と継続力を持ち、困難な課題にも粘り強く取り組める",
    ),
    (
        lambda s: s.personality.cognitive.analytical > 60 and s.personality.cognitive.practical > 60,
        "分析力と実践力を兼ね備え、理論と実務の両面で力を発揮できる",
    ),
    (
        lambda s: s.personality.emotional.stability > 60 and s.personality.emotional.stress > 60,
        "情緒が安定しており、プレッシャーの多い環境でも冷静に対応できる",
    ),
    (
        lambda s: s.personality.behavioral.communication > 70 and s.personality.emotional.empathy > 60,
        "優れたコミュニケーション能力と共感性を持ち、対人関係を円滑に築ける",
    ),
    (
        lambda s: s.personality.cognitive.creative > 70 and s.personality.cognitive.analytical < 50,
        "創造性に富むが、分析的アプローチの強化が課題",
    ),
    (
        lambda s: s.personality.behavioral.leadership > 70 and s.personality.behavioral.teamwork < 50,
        "リーダーシップは高いが、チームメンバーとしての協調性に注意が必要",
    ),
)

_RISK_RULES: Sequence[Rule] = (
    (lambda s: s.personality.emotional.stability < 30, "情緒不安定性によるパフォーマンスの変動"),
    (lambda s: s.personality.emotional.stress < 30, "ストレス耐性の低さによる離職リスク"),
    (lambda s: s.personality.behavioral.teamwork < 30, "チームワーク不足による組織適応の困難"),
    (lambda s: s.personality.behavioral.communication < 30, "コミュニケーション不足による誤解や摩擦"),
    (lambda s: s.personality.behavioral.adaptability < 30, "変化への適応困難による業務効率の低下"),
    (lambda s: s.reliability == "low", "回答の信頼性が低く、結果の解釈に注意が必要"),
)

_GENERAL_RECOMMENDATION_RULES: Sequence[Rule] = (
    (lambda s: s.personality.behavioral.leadership > 60, "リーダーシップを活かせるプロジェクトや役割を早期に付与"),
    (lambda s: s.personality.cognitive.analytical > 60, "分析力を活かせる企画・戦略業務への参画機会を提供"),
    (lambda s: s.personality.behavioral.communication > 60, "対外折衝や社内調整役としての活用を検討"),
    (lambda s: s.personality.emotional.stress < 50, "ストレス管理研修やメンタルヘルスサポートの提供"),
    (lambda s: s.personality.behavioral.teamwork < 50, "チームビルディング研修やグループワークの機会を増加"),
    (lambda s: s.personality.cognitive.practical < 50, "実務経験を積める OJT や現場研修を重視"),
)

_JOB_RECOMMENDATIONS = {
    "fresh_sales": "営業基礎研修と先輩社員によるメンタリング制度の活用",
    "experienced_sales": "既存スキルを活かしつつ、社内文化への適応支援を重視",
    "engineer": "技術研修と並行して、コミュニケーション力向上の機会を提供",
    "specialist": "専門性を活かせる環境整備と、組織貢献の機会を創出",
    "part_time_base": "接客スキル研修と店舗運営の基礎知識習得を支援",
    "part_time_sales": "営業基礎研修と電話応対スキルの向上を重点的に支援",
}

_DEFAULT_ROLES = {
    "fresh_sales": "新卒営業職（基礎から育成）",
    "experienced_sales": "中途営業職（即戦力）",
    "engineer": "エンジニア職",
    "specialist": "専門職",
    "part_time_base": "アルバイトスタッフ（店舗・拠点）",
    "part_time_sales": "アルバイトスタッフ（営業サポート）",
}


def _matching(rules: Sequence[Rule], spi: SPIResults, limit: int) -> list[str]:
    return [label for predicate, label in rules if predicate(spi)][:limit]


def strength_areas(spi: SPIResults) -> list[str]:
    return _matching(_STRENGTH_RULES, spi, MAX_STRENGTHS)


def development_areas(spi: SPIResults) -> list[str]:
    return _matching(_DEVELOPMENT_RULES, spi, MAX_DEVELOPMENT_AREAS)


def personality_insights(spi: SPIResults) -> list[str]:
    return _matching(_INSIGHT_RULES, spi, MAX_INSIGHTS)


def risk_factors(spi: SPIResults) -> list[str]:
    return _matching(_RISK_RULES, spi, MAX_RISKS)


def recommendations(spi: SPIResults, job_type: str) -> list[str]:
    items = _matching(_GENERAL_RECOMMENDATION_RULES, spi, len(_GENERAL_RECOMMENDATION_RULES))
    if job_type in _JOB_RECOMMENDATIONS:
        items.append(_JOB_RECOMMENDATIONS[job_type])
    return items[:MAX_RECOMMENDATIONS]


def recommended_role(spi: SPIResults, job_type: str) -> str:
    """Role for the strongest job-fit area above 60, else a default for the job type."""
    fit = spi.personality.job_fit
    behavioral = spi.personality.behavioral
    top = max(fit.sales, fit.management, fit.technical, fit.creative, fit.service)
    if top > 60:
        # ties resolve in this order
        if fit.sales == top:
            return "営業チームリーダー・マネージャー" if behavioral.leadership > 60 else "営業スペシャリスト"
        if fit.management == top:
            return "プロジェクトマネージャー・管理職候補"
        if fit.technical == top:
            if spi.personality.cognitive.creative > 60:
                return "テクニカルスペシャリスト・イノベーター"
            return "エンジニア・技術者"
        if fit.creative == top:
            return "クリエイティブ・企画職"
        return "カスタマーサービス・サポート"
    return _DEFAULT_ROLES.get(job_type, "総合職・適性に応じた配置")


def team_fit(spi: SPIResults) -> str:
    behavioral = spi.personality.behavioral
    emotional = spi.personality.emotional
    score = (
        behavioral.teamwork * 0.3
        + behavioral.communication * 0.25
        + emotional.empathy * 0.2
        + behavioral.adaptability * 0.15
        + emotional.stability * 0.1
    )
    if score >= 65:
        return "high"
    if score >= 45:
        return "medium"
    return "low"


def management_potential(spi: SPIResults) -> int:
    behavioral = spi.personality.behavioral
    emotional = spi.personality.emotional
    score = (
        behavioral.leadership * 0.25
        + spi.personality.cognitive.strategic * 0.2
        + behavioral.communication * 0.15
        + emotional.stability * 0.15
        + spi.personality.job_fit.management * 0.1
        + behavioral.initiative * 0.1
        + emotional.stress * 0.05
    )
    return _clamp_percent(score)


def _ability_level(spi: SPIResults) -> str:
    average = ability_average(spi)
    if average >= 60:
        return "高い"
    if average >= 45:
        return "標準的な"
    return "基礎的な"


def _personality_type(spi: SPIResults) -> str:
    behavioral = spi.personality.behavioral
    cognitive = spi.personality.cognitive
    if behavioral.leadership > 60 and cognitive.strategic > 60:
        return "リーダーシップと戦略思考に優れた"
    if behavioral.teamwork > 60 and behavioral.communication > 60:
        return "チームワークとコミュニケーションに長けた"
    if cognitive.analytical > 60 and cognitive.practical > 60:
        return "分析力と実践力を兼ね備えた"
    if behavioral.initiative > 60 and behavioral.persistence > 60:
        return "積極的で粘り強い"
    return "バランスの取れた"


def spi_summary(spi: SPIResults) -> str:
    return (
        f"{_ability_level(spi)}の基礎能力を持ち、{_personality_type(spi)}な特性を示しています。"
        f"言語能力{_fmt(spi.language.total_score)}点、非言語能力{_fmt(spi.non_verbal.total_score)}点で、"
        f"全体的に{_fmt(spi.percentile)}パーセンタイルの位置にあります。"
    )


def analyze_spi(spi: SPIResults | None, job_type: str) -> SPIAnalysis | None:
    """Full SPI reading for ``job_type``; None when no results were recorded."""
    if spi is None:
        return None
    return SPIAnalysis(
        job_fit_score=job_fit_score(spi, job_type),
        strength_areas=strength_areas(spi),
        development_areas=development_areas(spi),
        personality_insights=personality_insights(spi),
        recommended_role=recommended_role(spi, job_type),
        team_fit=team_fit(spi),
        management_potential=management_potential(spi),
        risk_factors=risk_factors(spi),
        recommendations=recommendations(spi, job_type),
        summary=spi_summary(spi),
    )
