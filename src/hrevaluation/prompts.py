"""Prompt templates for the AI-assisted analyses.

Each builder is a pure function of domain data. Sections are rendered only
when the underlying data is present, and every prompt ends with the JSON-only
instruction so the response parser can rely on a single object.
"""

from __future__ import annotations

from typing import Iterable, Sequence

from .schemas import (
    Candidate,
    CompanyInfo,
    Evaluation,
    EvaluationCriterion,
    InterviewMinutes,
    JobPosting,
    JobTypeConfig,
    SPIResults,
)
from .schemas.candidate import CandidateDocuments
from .timeutil import format_date_ja

DOCUMENT_EXCERPT_CHARS = 1000
SHORT_DOCUMENT_EXCERPT_CHARS = 500
MAX_MINUTES = 3
MAX_MINUTES_QUESTIONS = 3

TRUNCATION_MARKER = "...(省略)"
JSON_ONLY_INSTRUCTION = "必ずJSON形式のみで回答し、JSONオブジェクト以外の文章は含めないでください。"

_PHASE_LABELS = {
    "casual": "カジュアル面談",
    "first": "1次面接",
    "second": "2次面接",
    "final": "最終面接",
}

_RECOMMENDATION_LABELS = {
    "strong_hire": "積極採用",
    "hire": "採用",
    "consider": "検討",
    "no_hire": "不採用",
}

_EMPLOYMENT_LABELS = {
    "full-time": "正社員",
    "part-time": "パート",
    "contract": "契約社員",
    "internship": "インターン",
}


def phase_label(phase: str) -> str:
    return _PHASE_LABELS.get(phase, phase)


def excerpt(text: str, limit: int) -> str:
    """Cut ``text`` to ``limit`` characters, marking the cut."""
    if len(text) <= limit:
        return text
    return text[:limit] + TRUNCATION_MARKER


def _bullets(items: Iterable[str]) -> str:
    return "\n".join(f"- {item}" for item in items)


def _join(parts: Iterable[str | None]) -> str:
    return "\n".join(part for part in parts if part)


def _yes_no(flag: bool, yes: str, no: str) -> str:
    return yes if flag else no


# --- shared sections -------------------------------------------------------


def job_section(job_config: JobTypeConfig) -> str:
    return f"## 応募職種\n{job_config.name}: {job_config.description}\n"


def company_section(company: CompanyInfo, *, include_environment: bool = False) -> str:
    lines = [
        "## 会社情報・評価基準",
        "### 企業概要",
        f"- 会社名: {company.company_name}",
        f"- ミッション: {company.mission}",
        f"- ビジョン: {company.vision}",
        f"- 企業文化: {company.culture}",
    ]
    if company.values:
        lines += ["", "### 企業価値観", _bullets(company.values)]
    if company.behavioral_guidelines:
        lines += ["", "### 行動指針", _bullets(company.behavioral_guidelines)]
    if company.hiring_criteria:
        lines += ["", "### 採用基準", _bullets(company.hiring_criteria)]
    if company.evaluation_philosophy:
        lines += ["", "### 評価哲学", company.evaluation_philosophy]
    if include_environment:
        lines += [
            "",
            "### 労働環境・組織文化",
            f"- 労働環境: {company.work_environment}",
            f"- リーダーシップスタイル: {company.leadership_style}",
            f"- チームダイナミクス: {company.team_dynamics}",
            f"- パフォーマンス期待値: {company.performance_expectations}",
            f"- キャリア開発: {company.career_development}",
            f"- ダイバーシティ＆インクルージョン: {company.diversity_inclusion}",
        ]
    if company.additional_context:
        lines += ["", "### 追加コンテキスト", company.additional_context]
    return "\n".join(lines) + "\n"


def posting_section(posting: JobPosting) -> str:
    req = posting.requirements
    conditions = posting.working_conditions
    salary = posting.salary_range
    lines = [
        "## 求人票情報",
        "### 職種詳細",
        f"- 職種名: {posting.title}",
        f"- 部署: {posting.department}",
        f"- 勤務地: {posting.location}",
        f"- 雇用形態: {_EMPLOYMENT_LABELS.get(posting.employment_type, posting.employment_type)}",
        f"- 給与範囲: {salary.min:,}〜{salary.max:,} {salary.currency}",
        "",
        "### 応募要件",
        f"**学歴要件**: {', '.join(req.education)}",
        f"**経験要件**: {', '.join(req.experience)}",
        f"**スキル要件**: {', '.join(req.skills)}",
        f"**資格要件**: {', '.join(req.qualifications)}",
        f"**語学要件**: {', '.join(req.languages)}",
    ]
    if posting.essential_requirements:
        lines += ["", "### 必須要件", _bullets(posting.essential_requirements)]
    if posting.preferred_requirements:
        lines += ["", "### 歓迎要件", _bullets(posting.preferred_requirements)]
    if posting.ideal_candidate:
        lines += ["", "### 求める人物像", _bullets(posting.ideal_candidate)]
    if posting.responsibilities:
        lines += ["", "### 主な業務内容", _bullets(posting.responsibilities)]
    lines += [
        "",
        "### 労働条件",
        f"- 勤務時間: {conditions.working_hours}",
        f"- 休日: {conditions.holidays}",
        f"- 残業: {conditions.overtime}",
        f"- リモートワーク: {_yes_no(conditions.remote_work, '可能', '不可')}",
        f"- 出張: {_yes_no(conditions.travel_required, 'あり', 'なし')}",
    ]
    if posting.company_info.culture:
        lines.append(f"- 企業文化: {posting.company_info.culture}")
    career = posting.career_path
    lines += [
        "",
        "### キャリアパス",
        f"**初期役職**: {career.initial_role}",
        f"**成長機会**: {', '.join(career.growth_opportunities)}",
        f"**研修制度**: {', '.join(career.training_programs)}",
    ]
    return "\n".join(lines) + "\n"


def candidate_section(candidate: Candidate, *, include_contact: bool = False) -> str:
    lines = ["## 候補者情報", "### 基本情報"]
    if candidate.name:
        lines.append(f"- 氏名: {candidate.name}")
    if candidate.age is not None:
        lines.append(f"- 年齢: {candidate.age}歳")
    lines.append(f"- 学歴: {candidate.education}")
    if candidate.major:
        lines.append(f"- 専攻: {candidate.major}")
    if include_contact:
        if candidate.email:
            lines.append(f"- メール: {candidate.email}")
        if candidate.phone:
            lines.append(f"- 電話: {candidate.phone}")
    lines += ["", "### 職歴・経験", candidate.experience, "", "### 自己PR", candidate.self_pr]
    if candidate.interview_notes:
        lines += ["", "### 面接メモ・追加情報", candidate.interview_notes]
    return "\n".join(lines) + "\n"


def documents_section(documents: CandidateDocuments | None, *, limit: int) -> str | None:
    if documents is None:
        return None
    parts = []
    if documents.resume and documents.resume.content:
        parts.append(f"### 履歴書\n{excerpt(documents.resume.content, limit)}\n")
    if documents.career_history and documents.career_history.content:
        parts.append(f"### 職務経歴書\n{excerpt(documents.career_history.content, limit)}\n")
    return "\n".join(parts) if parts else None


def _recent_minutes(minutes: Sequence[InterviewMinutes]) -> list[InterviewMinutes]:
    ordered = sorted(minutes, key=lambda m: m.interview_date)
    return ordered[-MAX_MINUTES:]


def minutes_section(minutes: Sequence[InterviewMinutes], *, detailed: bool = True) -> str | None:
    if not minutes:
        return None
    lines = ["### 面接議事録"]
    for record in _recent_minutes(minutes):
        lines.append(f"#### {phase_label(record.phase)} ({format_date_ja(record.interview_date)})")
        if detailed:
            lines += [
                f"面接官: {record.interviewer}",
                f"総合印象: {record.overall_impression}",
                f"評価: {record.rating}/5",
            ]
            if record.questions:
                lines.append("主な質問と回答:")
                for index, question in enumerate(record.questions[:MAX_MINUTES_QUESTIONS], start=1):
                    lines += [f"Q{index}: {question.question}", f"A: {question.response}"]
        if record.key_insights:
            lines.append(f"主な洞察: {', '.join(record.key_insights)}")
        if record.concerns:
            lines.append(f"懸念点: {', '.join(record.concerns)}")
        if record.strengths and not detailed:
            lines.append(f"強み: {', '.join(record.strengths)}")
    return "\n".join(lines) + "\n"


def spi_section(spi: SPIResults | None) -> str | None:
    if spi is None:
        return None
    behavioral = spi.personality.behavioral
    cognitive = spi.personality.cognitive
    emotional = spi.personality.emotional
    job_fit = spi.personality.job_fit
    return "\n".join(
        [
            "### SPI適性検査結果",
            f"- 受検日: {format_date_ja(spi.test_date)}",
            f"- 総合スコア: {spi.total_score} (パーセンタイル: {spi.percentile}%)",
            f"- 言語能力: {spi.language.total_score} (語彙: {spi.language.vocabulary}, 読解: {spi.language.reading})",
            f"- 非言語能力: {spi.non_verbal.total_score} (計算: {spi.non_verbal.calculation}, 論理: {spi.non_verbal.logic})",
            "",
            "#### 性格特性",
            f"- リーダーシップ: {behavioral.leadership}",
            f"- チームワーク: {behavioral.teamwork}",
            f"- 積極性: {behavioral.initiative}",
            f"- 適応性: {behavioral.adaptability}",
            f"- コミュニケーション: {behavioral.communication}",
            f"- 分析的思考: {cognitive.analytical}",
            f"- 創造的思考: {cognitive.creative}",
            f"- 情緒安定性: {emotional.stability}",
            f"- ストレス耐性: {emotional.stress}",
            "",
            "#### 職務適性",
            f"- 営業適性: {job_fit.sales}",
            f"- 管理適性: {job_fit.management}",
            f"- 技術適性: {job_fit.technical}",
        ]
    ) + "\n"


def current_evaluation_section(
    evaluation: Evaluation | None,
    criteria: Sequence[EvaluationCriterion],
) -> str | None:
    if evaluation is None:
        return None
    if not (evaluation.scores or evaluation.comments or evaluation.overall_comment):
        return None
    by_id = {criterion.id: criterion for criterion in criteria}
    lines = ["### 現在の評価状況"]
    scored = [(by_id[cid], score) for cid, score in evaluation.scores.items() if cid in by_id]
    if scored:
        lines.append("#### 評価スコア")
        lines += [f"- {criterion.name}: {score}/4" for criterion, score in scored]
    commented = [
        (by_id[cid], comment)
        for cid, comment in evaluation.comments.items()
        if cid in by_id and comment
    ]
    if commented:
        lines += ["", "#### 評価コメント"]
        lines += [f"- {criterion.name}: {comment}" for criterion, comment in commented]
    if evaluation.overall_comment:
        lines += ["", "#### 総合コメント", evaluation.overall_comment]
    return "\n".join(lines) + "\n"


def criteria_section(criteria: Sequence[EvaluationCriterion], *, detailed: bool = False) -> str:
    if detailed:
        blocks = [
            f"### {index}. {c.name} (ID: {c.id}, 重み: {c.weight}%, カテゴリ: {c.category.value})\n"
            f"**説明**: {c.description}\n"
            "**求められる要素**: この基準で高評価を得るために必要な具体的な要素や経験を考慮してください。"
            for index, c in enumerate(criteria, start=1)
        ]
        return "## 評価基準詳細\n以下の各基準について、候補者がどの程度マッチしているかを分析してください：\n\n" + "\n\n".join(blocks) + "\n"
    lines = [
        f"- {c.name} (ID: {c.id}, 重み: {c.weight}%, カテゴリ: {c.category.value}): {c.description}"
        for c in criteria
    ]
    return "## 評価基準\n" + "\n".join(lines) + "\n"


def _numbered(points: Sequence[str | None]) -> str:
    kept = [point for point in points if point]
    return "\n".join(f"{index}. {point}" for index, point in enumerate(kept, start=1))


def _context_sections(
    candidate: Candidate,
    job_config: JobTypeConfig,
    company: CompanyInfo | None,
    posting: JobPosting | None,
    current: Evaluation | None,
    *,
    doc_limit: int,
    detailed_company: bool,
    detailed_minutes: bool = True,
    include_contact: bool = False,
) -> list[str | None]:
    return [
        job_section(job_config),
        company_section(company, include_environment=detailed_company) if company else None,
        posting_section(posting) if posting else None,
        candidate_section(candidate, include_contact=include_contact),
        documents_section(candidate.documents, limit=doc_limit),
        minutes_section(candidate.interview_minutes, detailed=detailed_minutes),
        spi_section(candidate.spi_results),
        current_evaluation_section(current, job_config.evaluation_criteria),
    ]


# --- templates -------------------------------------------------------------

_EVALUATION_SCHEMA = """{
  "recommendedScore": 1-5の数値（小数点1桁まで）,
  "confidence": 0-1の数値（小数点2桁まで）,
  "reasoning": "判定理由の詳細説明（200文字以内）",
  "strengths": ["強み1", "強み2", "強み3"],
  "riskFactors": ["リスク要因1", "リスク要因2"],
  "recommendations": ["推奨事項1", "推奨事項2", "推奨事項3"]
}"""

_MATCHING_SCHEMA = """{
  "overallMatchingScore": 1-5の数値（小数点1桁まで）,
  "overallConfidence": 0-1の数値（小数点2桁まで）,
  "overallReasoning": "総合的なマッチング判定の理由（300文字以内）",
  "criteriaAnalysis": [
    {
      "criterionId": "評価基準のID",
      "criterionName": "評価基準名",
      "matchingScore": 1-5の数値（小数点1桁まで）,
      "confidence": 0-1の数値（小数点2桁まで）,
      "reasoning": "この基準に対するマッチング理由（200文字以内）",
      "evidences": ["根拠となる具体的な情報1", "根拠となる具体的な情報2"],
      "concerns": ["懸念点や不足している要素1", "懸念点や不足している要素2"],
      "recommendations": ["この基準を満たすための推奨事項1", "推奨事項2"]
    }
  ],
  "strengths": ["候補者の全体的な強み1", "強み2", "強み3"],
  "weaknesses": ["改善が必要な領域1", "領域2"],
  "recommendations": ["採用判定に関する推奨事項1", "推奨事項2", "推奨事項3"],
  "riskFactors": ["採用リスク要因1", "リスク要因2"]
}"""

_QUESTIONS_SCHEMA = """{
  "questions": [
    {
      "question": "質問文",
      "purpose": "この質問をする目的・理由（どのような素養や能力を評価するためか）",
      "targetCriteria": ["評価対象となる基準1", "評価対象となる基準2"],
      "expectedInsights": ["この質問から得られる洞察1", "洞察2"]
    }
  ]
}"""

_TURNOVER_SCHEMA = """{
  "riskLevel": "low" | "medium" | "high",
  "riskScore": 0-1の数値,
  "factors": ["リスク要因1", "リスク要因2"],
  "recommendations": ["対策1", "対策2", "対策3"]
}"""


def build_evaluation_prompt(
    *,
    candidate: Candidate,
    job_config: JobTypeConfig,
    company: CompanyInfo | None = None,
    posting: JobPosting | None = None,
    current: Evaluation | None = None,
) -> str:
    """Overall hiring recommendation with a 1-5 fit score."""
    viewpoints = _numbered(
        [
            "職種適性と経験の一致度",
            "成長ポテンシャルと学習意欲",
            "組織文化への適合性",
            "コミュニケーション能力",
            "長期的な活躍可能性",
            "SPI適性検査結果との整合性" if candidate.spi_results else None,
            "求人票要件との適合度" if posting else None,
            "企業価値観・文化との適合性" if company else None,
            "書類内容の一貫性と具体性" if candidate.documents else None,
            "面接でのパフォーマンスと回答内容" if candidate.interview_minutes else None,
        ]
    )
    return _join(
        [
            "あなたは経験豊富な人事採用コンサルタントです。以下の候補者情報を分析し、採用判定を行ってください。\n",
            *_context_sections(
                candidate,
                job_config,
                company,
                posting,
                current,
                doc_limit=DOCUMENT_EXCERPT_CHARS,
                detailed_company=False,
            ),
            criteria_section(job_config.evaluation_criteria),
            "## 分析要求\n以下の形式でJSONレスポンスを返してください：\n",
            _EVALUATION_SCHEMA + "\n",
            "## 評価観点\n" + viewpoints + "\n",
            JSON_ONLY_INSTRUCTION,
        ]
    )


def build_matching_prompt(
    *,
    candidate: Candidate,
    job_config: JobTypeConfig,
    company: CompanyInfo | None = None,
    posting: JobPosting | None = None,
    current: Evaluation | None = None,
) -> str:
    """Per-criterion matching analysis against the resolved criteria."""
    viewpoints = _numbered(
        [
            "**企業価値観との適合性**: 会社の価値観・行動指針と候補者の価値観の整合性",
            "**求人票との整合性**: 求人票の要件・業務内容・企業文化と候補者の適合度",
            "**具体的な根拠**: 候補者の経験、発言、行動から具体的な根拠を抽出",
            "**基準との整合性**: 各評価基準の要求事項と候補者の特性の整合性",
            "**成長ポテンシャル**: 現在のレベルだけでなく、将来的な成長可能性",
            "**文化適合性**: 組織文化や職種特性との適合度",
            "**リスク評価**: 採用後のパフォーマンスや定着に関するリスク",
            "**SPI整合性**: 適性検査結果と実際の経験・発言の整合性" if candidate.spi_results else None,
            "**労働条件適合性**: 勤務条件・キャリアパスへの適応可能性" if posting else None,
            "**企業文化適合性**: 企業文化・価値観・行動指針との適合度" if company else None,
            "**書類整合性**: 履歴書・職務経歴書の内容と面接での発言の整合性" if candidate.documents else None,
            "**面接パフォーマンス**: 面接での受け答えや態度の評価" if candidate.interview_minutes else None,
        ]
    )
    return _join(
        [
            "あなたは経験豊富な人事採用コンサルタントです。以下の候補者情報を詳細に分析し、各評価基準に対するマッチング度を判定してください。\n",
            *_context_sections(
                candidate,
                job_config,
                company,
                posting,
                current,
                doc_limit=DOCUMENT_EXCERPT_CHARS,
                detailed_company=True,
                include_contact=True,
            ),
            criteria_section(job_config.evaluation_criteria, detailed=True),
            "## 分析要求\n以下の形式でJSONレスポンスを返してください。criteriaAnalysisには上記のすべての評価基準を、記載のIDをcriterionIdとして含めてください：\n",
            _MATCHING_SCHEMA + "\n",
            "## 分析観点\n" + viewpoints + "\n",
            "各評価基準について具体的な根拠と懸念点を明確に示してください。会社情報と求人票の情報を十分に活用して、実際の職務要件と企業文化との適合度を詳細に分析してください。",
            JSON_ONLY_INSTRUCTION,
        ]
    )


def build_questions_prompt(
    *,
    candidate: Candidate,
    job_config: JobTypeConfig,
    company: CompanyInfo | None = None,
    posting: JobPosting | None = None,
    current: Evaluation | None = None,
    question_count: int = 5,
) -> str:
    """Interview questions tailored to the candidate and criteria."""
    return _join(
        [
            "候補者の情報に基づいて効果的な面接質問を生成してください。各質問には、その質問をする目的や、どのような素養や能力を評価するためのものかを明記してください。\n",
            *_context_sections(
                candidate,
                job_config,
                company,
                posting,
                current,
                doc_limit=SHORT_DOCUMENT_EXCERPT_CHARS,
                detailed_company=False,
                detailed_minutes=False,
            ),
            criteria_section(job_config.evaluation_criteria),
            "以下の形式でJSONレスポンスを返してください：",
            _QUESTIONS_SCHEMA + "\n",
            f"候補者の背景と職種要件、企業文化を踏まえた、具体的で深掘りできる質問を{question_count}つ生成してください。",
            "各質問は、特定の評価基準や素養を評価するために設計し、その目的を明確に説明してください。",
            JSON_ONLY_INSTRUCTION,
        ]
    )


def build_turnover_prompt(
    *,
    candidate: Candidate,
    job_config: JobTypeConfig,
    company: CompanyInfo | None = None,
    posting: JobPosting | None = None,
    current: Evaluation | None = None,
) -> str:
    """Risk that the candidate leaves within one year of joining."""
    return _join(
        [
            "以下の候補者情報を分析し、入社後1年以内の離職リスクを評価してください。\n",
            *_context_sections(
                candidate,
                job_config,
                company,
                posting,
                current,
                doc_limit=SHORT_DOCUMENT_EXCERPT_CHARS,
                detailed_company=True,
                detailed_minutes=False,
            ),
            criteria_section(job_config.evaluation_criteria),
            "離職リスクは、候補者の志向・キャリアプランと会社が提供できる環境や労働条件とのギャップ、ストレス耐性、過去の在籍期間の傾向を重視して判断してください。\n",
            "以下の形式でJSONレスポンスを返してください：",
            _TURNOVER_SCHEMA + "\n",
            JSON_ONLY_INSTRUCTION,
        ]
    )


_MINUTES_SCHEMA = """{
  "overallAssessment": "候補者の総合評価（300文字以内）",
  "strengthsIdentified": ["特定された強み1", "強み2", "強み3"],
  "concernsIdentified": ["特定された懸念点1", "懸念点2"],
  "skillsAssessment": {
    "communication": 1-5の数値,
    "technicalSkills": 1-5の数値,
    "problemSolving": 1-5の数値,
    "culturalFit": 1-5の数値,
    "motivation": 1-5の数値
  },
  "recommendedQuestions": ["次回面接での推奨質問1", "推奨質問2", "推奨質問3"],
  "redFlags": ["注意すべき点1", "注意すべき点2"],
  "positiveSignals": ["ポジティブなシグナル1", "ポジティブなシグナル2"],
  "confidenceLevel": 0-1の数値（分析の信頼度）
}"""

_MINUTES_VIEWPOINTS = (
    "回答内容の一貫性と具体性",
    "非言語的コミュニケーションと態度",
    "技術的・専門的スキルの実証",
    "文化適合性と価値観の一致",
    "モチベーションと長期的コミットメント",
    "問題解決能力と思考プロセス",
    "学習意欲と成長マインドセット",
)


def latest_minutes(minutes: Sequence[InterviewMinutes]) -> InterviewMinutes | None:
    ordered = _recent_minutes(minutes)
    return ordered[-1] if ordered else None


def _minutes_questions(record: InterviewMinutes) -> str:
    blocks = []
    for index, question in enumerate(record.questions, start=1):
        lines = [
            f"### 質問{index}: {question.question}",
            f"**目的**: {question.purpose}",
            f"**回答**: {question.response}",
            f"**面接官メモ**: {question.evaluator_notes or 'なし'}",
        ]
        if question.score is not None:
            lines.append(f"**評価**: {question.score}/5")
        blocks.append("\n".join(lines))
    return "\n\n".join(blocks) if blocks else "記録なし"


def build_minutes_prompt(
    *,
    candidate: Candidate,
    job_config: JobTypeConfig,
    company: CompanyInfo | None = None,
    posting: JobPosting | None = None,
    current: Evaluation | None = None,
    minutes: InterviewMinutes | None = None,
) -> str:
    """Analysis of one interview record; defaults to the candidate's latest."""
    record = minutes or latest_minutes(candidate.interview_minutes)
    if record is None:
        raise ValueError(f"candidate {candidate.id!r} has no interview minutes")
    duration = f"{record.duration}分" if record.duration is not None else "不明"
    info = [
        "## 面接情報",
        f"- 候補者: {candidate.name or candidate.id}",
        f"- 面接フェーズ: {phase_label(record.phase)}",
        f"- 面接日: {format_date_ja(record.interview_date)}",
        f"- 面接官: {record.interviewer}",
        f"- 所要時間: {duration}",
    ]
    if record.location:
        info.append(f"- 場所: {record.location}")
    assessment = [
        "## 面接官の評価",
        f"- 総合印象: {record.overall_impression}",
        f"- 評価: {record.rating}/5",
        f"- 推奨: {_RECOMMENDATION_LABELS.get(record.recommendation, record.recommendation)}",
    ]
    return _join(
        [
            "以下の面接議事録を分析し、候補者の評価を行ってください。\n",
            job_section(job_config),
            "\n".join(info) + "\n",
            f"## 面接アジェンダ\n{record.agenda or '記載なし'}\n",
            f"## 質問と回答\n{_minutes_questions(record)}\n",
            f"## 面接官の観察・印象\n{record.interviewer_observations or '記載なし'}\n",
            "\n".join(assessment) + "\n",
            "## 分析要求\n以下の形式でJSONレスポンスを返してください：\n",
            _MINUTES_SCHEMA + "\n",
            "## 分析観点\n" + _numbered(list(_MINUTES_VIEWPOINTS)) + "\n",
            JSON_ONLY_INSTRUCTION,
        ]
    )
