from __future__ import annotations

import io
import json
from pathlib import Path
from urllib import error

import pytest
from typer.testing import CliRunner

from hrevaluation import llm
from hrevaluation.cli import app


@pytest.fixture
def runner() -> CliRunner:
    return CliRunner()


@pytest.fixture(autouse=True)
def _no_env_key(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)


def write_json(path: Path, payload: object) -> None:
    path.write_text(json.dumps(payload, ensure_ascii=False), encoding="utf-8")


def _candidate_file(tmp_path: Path) -> Path:
    path = tmp_path / "candidate.json"
    write_json(
        path,
        {
            "id": "C-001",
            "name": "田中 太郎",
            "education": "大学卒",
            "experience": "SaaS開発 5年",
            "self_pr": "やり切る力があります",
            "applied_position": "engineer",
            "interview_minutes": [
                {
                    "id": "M-1",
                    "phase": "casual",
                    "interview_date": "2024-04-01T10:00:00+09:00",
                    "interviewer": "山田",
                    "rating": 4,
                }
            ],
        },
    )
    return path


class _FakeResponse:
    def __init__(self, payload: dict):
        self._body = json.dumps(payload, ensure_ascii=False).encode("utf-8")

    def read(self) -> bytes:
        return self._body

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        return False


def test_criteria_command_reports_source(tmp_path: Path, runner: CliRunner) -> None:
    store_path = tmp_path / "store.json"

    result = runner.invoke(app, ["criteria", "engineer", "--store", str(store_path)])

    assert result.exit_code == 0, result.output
    rendered = json.loads(result.stdout)
    assert rendered["source"] == "default"
    assert "logical_thinking" in [c["id"] for c in rendered["criteria"]]

    init = runner.invoke(app, ["company-init", "--store", str(store_path)])
    assert init.exit_code == 0, init.output
    assert "株式会社サンプル" in init.output

    after = runner.invoke(app, ["criteria", "engineer", "--store", str(store_path)])
    assert json.loads(after.stdout)["source"] == "company"


def test_criteria_command_rejects_unknown_job_type(runner: CliRunner) -> None:
    result = runner.invoke(app, ["criteria", "astronaut"])

    assert result.exit_code != 0


def test_score_command_weights_scored_criteria(tmp_path: Path, runner: CliRunner) -> None:
    scores_path = tmp_path / "scores.json"
    write_json(scores_path, {"logical_thinking": 3})

    result = runner.invoke(app, ["score", "engineer", "--scores", str(scores_path)])

    assert result.exit_code == 0, result.output
    rendered = json.loads(result.stdout)
    assert rendered["weighted_score"] == 3.0
    assert rendered["source"] == "default"


def test_analyze_without_credential_fails_before_network(
    tmp_path: Path, runner: CliRunner, monkeypatch: pytest.MonkeyPatch
) -> None:
    calls: list = []
    monkeypatch.setattr(llm.request, "urlopen", lambda *args, **kwargs: calls.append(args))

    result = runner.invoke(
        app,
        ["analyze", "turnover", "--candidate", str(_candidate_file(tmp_path)), "--store", str(tmp_path / "s.json")],
    )

    assert result.exit_code == 1
    assert "APIキーが設定されていません" in result.output
    assert calls == []


def test_analyze_uses_stored_key_and_prints_result(
    tmp_path: Path, runner: CliRunner, monkeypatch: pytest.MonkeyPatch
) -> None:
    store_path = tmp_path / "store.json"
    requests: list = []

    def fake_urlopen(req, timeout=None):
        requests.append(req)
        content = json.dumps({"recommendedScore": 9, "confidence": 0.7, "reasoning": "十分な経験"}, ensure_ascii=False)
        return _FakeResponse({"choices": [{"message": {"content": content}}]})

    monkeypatch.setattr(llm.request, "urlopen", fake_urlopen)

    stored = runner.invoke(app, ["set-api-key", "sk-stored", "--store", str(store_path)])
    assert stored.exit_code == 0, stored.output

    result = runner.invoke(
        app,
        [
            "analyze",
            "evaluation",
            "--candidate",
            str(_candidate_file(tmp_path)),
            "--store",
            str(store_path),
            "--log-level",
            "WARNING",
        ],
    )

    assert result.exit_code == 0, result.output
    assert '"recommendedScore": 5.0' in result.output
    assert "十分な経験" in result.output
    assert requests[0].get_header("Authorization") == "Bearer sk-stored"
    prompt = json.loads(requests[0].data.decode("utf-8"))["messages"][1]["content"]
    assert "カジュアル面談" in prompt


def test_analyze_reports_completion_errors(
    tmp_path: Path, runner: CliRunner, monkeypatch: pytest.MonkeyPatch
) -> None:
    def failing_urlopen(req, timeout=None):
        raise error.HTTPError(req.full_url, 429, "Too Many Requests", {}, io.BytesIO(b"{}"))

    monkeypatch.setattr(llm.request, "urlopen", failing_urlopen)

    result = runner.invoke(
        app,
        ["analyze", "matching", "--candidate", str(_candidate_file(tmp_path)), "--api-key", "sk-cli"],
    )

    assert result.exit_code == 1
    assert "API使用量の上限に達しました" in result.output


def test_set_api_key_requires_value(tmp_path: Path, runner: CliRunner) -> None:
    result = runner.invoke(app, ["set-api-key", "  ", "--store", str(tmp_path / "s.json")])

    assert result.exit_code != 0


def test_score_command_coerces_integral_values(tmp_path: Path, runner: CliRunner) -> None:
    scores_path = tmp_path / "scores.json"
    write_json(scores_path, {"logical_thinking": 3.0})

    result = runner.invoke(app, ["score", "engineer", "--scores", str(scores_path)])

    assert result.exit_code == 0, result.output
    assert json.loads(result.stdout)["weighted_score"] == 3.0

    write_json(scores_path, {"logical_thinking": "3"})
    as_text = runner.invoke(app, ["score", "engineer", "--scores", str(scores_path)])
    assert as_text.exit_code == 0, as_text.output
    assert json.loads(as_text.stdout)["weighted_score"] == 3.0


@pytest.mark.parametrize("value", [2.5, "high", 7, True, None])
def test_score_command_rejects_invalid_values(tmp_path: Path, runner: CliRunner, value) -> None:
    scores_path = tmp_path / "scores.json"
    write_json(scores_path, {"logical_thinking": value})

    result = runner.invoke(app, ["score", "engineer", "--scores", str(scores_path)])

    assert result.exit_code != 0
    assert "logical_thinking" in result.output


def test_analyze_minutes_with_unknown_record_fails_before_network(
    tmp_path: Path, runner: CliRunner, monkeypatch: pytest.MonkeyPatch
) -> None:
    calls: list = []
    monkeypatch.setattr(llm.request, "urlopen", lambda *args, **kwargs: calls.append(args))

    result = runner.invoke(
        app,
        [
            "analyze",
            "minutes",
            "--candidate",
            str(_candidate_file(tmp_path)),
            "--minutes-id",
            "M-404",
            "--api-key",
            "sk-cli",
        ],
    )

    assert result.exit_code == 1
    assert "面接議事録" in result.output
    assert calls == []


def test_spi_command_prints_analysis(tmp_path: Path, runner: CliRunner) -> None:
    path = tmp_path / "spi_candidate.json"
    write_json(
        path,
        {
            "id": "C-010",
            "applied_position": "engineer",
            "spi_results": {
                "test_date": "2024-03-01T00:00:00+09:00",
                "language": {"total_score": 70},
                "non_verbal": {"total_score": 65},
                "percentile": 80,
                "personality": {"job_fit": {"technical": 85}, "cognitive": {"analytical": 75}},
            },
        },
    )

    result = runner.invoke(app, ["spi", "--candidate", str(path)])

    assert result.exit_code == 0, result.output
    rendered = json.loads(result.stdout)
    assert rendered["recommended_role"] == "エンジニア・技術者"
    assert 0 <= rendered["job_fit_score"] <= 100
    assert "言語能力" in rendered["strength_areas"]


def test_spi_command_without_results_exits_nonzero(tmp_path: Path, runner: CliRunner) -> None:
    result = runner.invoke(app, ["spi", "--candidate", str(_candidate_file(tmp_path))])

    assert result.exit_code == 1
    assert "No SPI results" in result.output


def test_hiring_history_commands(tmp_path: Path, runner: CliRunner) -> None:
    store_path = tmp_path / "store.json"
    for index, name in enumerate(["佐藤", "鈴木"]):
        person = tmp_path / f"past{index}.json"
        write_json(
            person,
            {
                "id": f"P-{index}",
                "name": name,
                "education": "大学卒",
                "experience": "SaaS開発 5年",
                "self_pr": "やり切る力があります",
                "applied_position": "engineer",
            },
        )
        scorecard = tmp_path / f"eval{index}.json"
        write_json(
            scorecard,
            {"candidate_id": f"P-{index}", "job_type": "engineer", "scores": {"logical_thinking": 4}, "is_complete": True},
        )
        added = runner.invoke(
            app,
            ["add-candidate", "--candidate", str(person), "--evaluation", str(scorecard), "--store", str(store_path)],
        )
        assert added.exit_code == 0, added.output

    assert runner.invoke(app, ["decide", "P-0", "hired", "--store", str(store_path)]).exit_code == 0
    decided = runner.invoke(
        app, ["decide", "P-1", "rejected", "--store", str(store_path), "--performance-rating", "2"]
    )
    assert decided.exit_code == 0, decided.output
    assert "Recorded rejected for P-1." in decided.output

    stats = json.loads(runner.invoke(app, ["stats", "--store", str(store_path)]).stdout)
    assert (stats["total_evaluated"], stats["hired"], stats["rejected"]) == (2, 1, 1)
    assert stats["job_type_stats"]["engineer"]["rate"] == 50.0

    similar = runner.invoke(app, ["similar", "--candidate", str(_candidate_file(tmp_path)), "--store", str(store_path)])
    assert similar.exit_code == 0, similar.output
    matches = json.loads(similar.stdout)
    assert sorted(m["candidate_id"] for m in matches) == ["P-0", "P-1"]
    assert matches[0]["similarity_score"] == 100.0
    assert "同じ職種「エンジニア」に応募" in matches[0]["similarity_reasons"]

    predicted = runner.invoke(app, ["predict", "--candidate", str(_candidate_file(tmp_path)), "--store", str(store_path)])
    assert predicted.exit_code == 0, predicted.output
    prediction = json.loads(predicted.stdout)
    assert prediction["prediction"] == "hire"
    assert prediction["similar_count"] == 2


def test_decide_rejects_unknown_decision_and_unfinished_evaluations(tmp_path: Path, runner: CliRunner) -> None:
    store_path = tmp_path / "store.json"

    unknown = runner.invoke(app, ["decide", "C-001", "maybe", "--store", str(store_path)])
    missing = runner.invoke(app, ["decide", "C-001", "hired", "--store", str(store_path)])

    assert unknown.exit_code != 0
    assert missing.exit_code == 1
    assert "No finalized evaluation" in missing.output
