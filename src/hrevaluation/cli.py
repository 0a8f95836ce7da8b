"""Typer CLI entrypoint for the evaluation tool."""

from __future__ import annotations

import asyncio
import json
from pathlib import Path
from typing import Any, Optional, get_args

import typer
import yaml
from pydantic import ValidationError

from .container import EvaluationContainer, create_container
from .core import analyze_spi, completion_percentage, resolve_criteria, weighted_score
from .errors import AnalysisError
from .logging import configure_logging
from .schemas import AnalysisKind, Candidate, Evaluation
from .schemas.config import AppConfig, load_config
from .schemas.evaluation import FinalDecision
from .schemas.job import SCORE_LEVELS

app = typer.Typer(help="Candidate evaluation and AI-assisted analysis CLI.")

StoreOption = typer.Option(None, dir_okay=False, help="JSON file backing the local store.")


def _load_app_config(config: Path | None) -> AppConfig:
    if config is None:
        return AppConfig()
    with config.open("r", encoding="utf-8") as handle:
        loaded = yaml.safe_load(handle)
    try:
        return load_config(loaded)
    except ValidationError as exc:
        raise typer.BadParameter(f"Invalid config file: {exc}", param_hint="config") from exc


def _build_container(
    app_config: AppConfig,
    *,
    store: Path | None = None,
    api_key: str | None = None,
) -> EvaluationContainer:
    settings: dict[str, Any] = app_config.to_settings()
    if store is not None:
        settings["store"] = {"path": str(store)}
    if api_key:
        settings["api_key"] = api_key
    return create_container(settings=settings)


def _read_model(path: Path, model: type, param_name: str):
    try:
        return model.model_validate_json(path.read_text(encoding="utf-8"))
    except ValidationError as exc:
        raise typer.BadParameter(f"Invalid {param_name} file: {exc}", param_hint=param_name) from exc


def _coerce_scores(raw: dict[str, Any]) -> dict[str, int]:
    """Accept 1-4 as int, integral float or numeric string; reject anything else."""
    scores: dict[str, int] = {}
    for criterion_id, value in raw.items():
        number: Any = value
        if isinstance(value, str):
            try:
                number = float(value.strip())
            except ValueError:
                number = None
        if isinstance(number, bool) or not isinstance(number, (int, float)):
            number = None
        elif isinstance(number, float):
            number = int(number) if number.is_integer() else None
        if number not in SCORE_LEVELS:
            raise typer.BadParameter(
                f"Score for {criterion_id!r} must be an integer 1-4, got {value!r}", param_hint="scores"
            )
        scores[criterion_id] = number
    return scores


def _echo_json(payload: Any) -> None:
    typer.echo(json.dumps(payload, ensure_ascii=False, indent=2))


@app.command()
def analyze(
    kind: AnalysisKind = typer.Argument(..., help="Analysis to run."),
    candidate: Path = typer.Option(..., exists=True, readable=True, dir_okay=False, help="Candidate JSON path."),
    evaluation: Optional[Path] = typer.Option(
        None, exists=True, readable=True, dir_okay=False, help="In-progress evaluation JSON path."
    ),
    config: Optional[Path] = typer.Option(None, exists=True, readable=True, dir_okay=False, help="YAML config path."),
    store: Optional[Path] = StoreOption,
    api_key: Optional[str] = typer.Option(None, help="Completion API key (overrides environment and store)."),
    minutes_id: Optional[str] = typer.Option(None, help="Interview minutes record to analyze (latest when omitted)."),
    log_level: Optional[str] = typer.Option(None, help="Log level for structured logging."),
) -> None:
    """Run one AI-assisted analysis for a candidate."""
    app_config = _load_app_config(config)
    configure_logging(log_level or app_config.logging.level, json=app_config.logging.json_output)

    candidate_model: Candidate = _read_model(candidate, Candidate, "candidate")
    current: Evaluation | None = _read_model(evaluation, Evaluation, "evaluation") if evaluation else None

    container = _build_container(app_config, store=store, api_key=api_key)
    service = container.analysis_service()
    try:
        result = asyncio.run(service.run(kind, candidate_model, current, minutes_id=minutes_id))
    except AnalysisError as exc:
        typer.echo(exc.message, err=True)
        raise typer.Exit(code=1) from exc

    typer.echo(result.model_dump_json(by_alias=True, indent=2))


@app.command()
def criteria(
    job_type: str = typer.Argument(..., help="Job type key, e.g. engineer."),
    store: Optional[Path] = StoreOption,
) -> None:
    """Print the criteria in effect for a job type and where they come from."""
    container = _build_container(AppConfig(), store=store)
    catalog = container.catalog()
    if job_type not in catalog.job_types():
        raise typer.BadParameter(f"Unknown job type: {job_type}", param_hint="job_type")

    resolution = resolve_criteria(
        job_type,
        catalog=catalog,
        company=container.company_repo().get(),
        stored=container.criteria_repo().get(job_type),
    )
    _echo_json(
        {
            "job_type": job_type,
            "source": resolution.source,
            "criteria": [c.model_dump(mode="json") for c in resolution.criteria],
        }
    )


@app.command()
def score(
    job_type: str = typer.Argument(..., help="Job type key, e.g. engineer."),
    scores: Path = typer.Option(..., exists=True, readable=True, dir_okay=False, help="JSON object of criterion id to score."),
    store: Optional[Path] = StoreOption,
) -> None:
    """Compute the weighted score of a scorecard."""
    try:
        raw = json.loads(scores.read_text(encoding="utf-8"))
    except ValueError as exc:
        raise typer.BadParameter(f"Invalid scores file: {exc}", param_hint="scores") from exc
    if not isinstance(raw, dict):
        raise typer.BadParameter("Scores file must be a JSON object", param_hint="scores")
    scored = _coerce_scores(raw)

    container = _build_container(AppConfig(), store=store)
    catalog = container.catalog()
    if job_type not in catalog.job_types():
        raise typer.BadParameter(f"Unknown job type: {job_type}", param_hint="job_type")

    resolution = resolve_criteria(
        job_type,
        catalog=catalog,
        company=container.company_repo().get(),
        stored=container.criteria_repo().get(job_type),
    )
    _echo_json(
        {
            "job_type": job_type,
            "source": resolution.source,
            "weighted_score": round(weighted_score(resolution.criteria, scored), 2),
            "completion_percentage": completion_percentage(resolution.criteria, scored),
        }
    )


@app.command()
def spi(
    candidate: Path = typer.Option(..., exists=True, readable=True, dir_okay=False, help="Candidate JSON path."),
    job_type: Optional[str] = typer.Option(None, help="Job type to read the results against (defaults to the applied position)."),
) -> None:
    """Rule-based reading of the candidate's SPI results."""
    candidate_model: Candidate = _read_model(candidate, Candidate, "candidate")
    analysis = analyze_spi(candidate_model.spi_results, job_type or candidate_model.applied_position)
    if analysis is None:
        typer.echo(f"No SPI results recorded for candidate {candidate_model.id}.", err=True)
        raise typer.Exit(code=1)
    typer.echo(analysis.model_dump_json(indent=2))


@app.command("add-candidate")
def add_candidate(
    candidate: Path = typer.Option(..., exists=True, readable=True, dir_okay=False, help="Candidate JSON path."),
    evaluation: Optional[Path] = typer.Option(
        None, exists=True, readable=True, dir_okay=False, help="Evaluation JSON path for the candidate."
    ),
    store: Path = typer.Option(..., dir_okay=False, help="JSON file backing the local store."),
) -> None:
    """Save a candidate, and optionally its evaluation, in the local store."""
    candidate_model: Candidate = _read_model(candidate, Candidate, "candidate")
    container = _build_container(AppConfig(), store=store)
    container.candidate_repo().save(candidate_model)
    if evaluation is not None:
        evaluation_model: Evaluation = _read_model(evaluation, Evaluation, "evaluation")
        if evaluation_model.candidate_id != candidate_model.id:
            raise typer.BadParameter("Evaluation belongs to another candidate", param_hint="evaluation")
        try:
            container.evaluation_repo().save(evaluation_model)
        except ValueError as exc:
            typer.echo(str(exc), err=True)
            raise typer.Exit(code=1) from exc
    typer.echo(f"Candidate {candidate_model.id} saved.")


@app.command()
def decide(
    candidate_id: str = typer.Argument(..., help="Candidate whose outcome is recorded."),
    decision: str = typer.Argument(..., help="hired, rejected or pending."),
    store: Path = typer.Option(..., dir_okay=False, help="JSON file backing the local store."),
    performance_rating: Optional[int] = typer.Option(None, min=1, max=5, help="Post-hire performance rating 1-5."),
) -> None:
    """Record the actual hiring outcome for a finalized evaluation."""
    if decision not in get_args(FinalDecision):
        raise typer.BadParameter(f"Unknown decision: {decision}", param_hint="decision")
    container = _build_container(AppConfig(), store=store)
    try:
        container.evaluation_repo().record_decision(
            candidate_id, decision, performance_rating=performance_rating
        )
    except ValueError as exc:
        typer.echo(str(exc), err=True)
        raise typer.Exit(code=1) from exc
    typer.echo(f"Recorded {decision} for {candidate_id}.")


@app.command()
def similar(
    candidate: Path = typer.Option(..., exists=True, readable=True, dir_okay=False, help="Candidate JSON path."),
    store: Path = typer.Option(..., dir_okay=False, help="JSON file backing the local store."),
    limit: int = typer.Option(5, min=1, help="Maximum number of matches."),
) -> None:
    """List decided past candidates most similar to this one."""
    candidate_model: Candidate = _read_model(candidate, Candidate, "candidate")
    finder = _build_container(AppConfig(), store=store).similar_finder()
    _echo_json(
        [
            {
                "candidate_id": match.candidate.id,
                "name": match.candidate.name,
                "final_decision": match.evaluation.final_decision,
                "similarity_score": round(match.similarity_score, 1),
                "similarity_reasons": match.similarity_reasons,
            }
            for match in finder.find(candidate_model, limit=limit)
        ]
    )


@app.command()
def predict(
    candidate: Path = typer.Option(..., exists=True, readable=True, dir_okay=False, help="Candidate JSON path."),
    evaluation: Optional[Path] = typer.Option(
        None, exists=True, readable=True, dir_okay=False, help="In-progress evaluation JSON path."
    ),
    store: Path = typer.Option(..., dir_okay=False, help="JSON file backing the local store."),
) -> None:
    """Predict the hiring outcome from similar past candidates."""
    candidate_model: Candidate = _read_model(candidate, Candidate, "candidate")
    current: Evaluation | None = _read_model(evaluation, Evaluation, "evaluation") if evaluation else None
    finder = _build_container(AppConfig(), store=store).similar_finder()
    typer.echo(finder.predict(candidate_model, current).model_dump_json(indent=2))


@app.command()
def stats(
    store: Path = typer.Option(..., dir_okay=False, help="JSON file backing the local store."),
) -> None:
    """Hiring statistics over decided evaluations."""
    finder = _build_container(AppConfig(), store=store).similar_finder()
    typer.echo(finder.statistics().model_dump_json(indent=2))


@app.command("company-init")
def company_init(
    store: Optional[Path] = StoreOption,
    user_id: str = typer.Option("", help="Recorded as the company info's last editor."),
) -> None:
    """Store the default company profile when none exists."""
    container = _build_container(AppConfig(), store=store)
    info = container.company_repo().ensure_exists(user_id)
    typer.echo(f"Company info ready: {info.company_name}")


@app.command("set-api-key")
def set_api_key(
    key: str = typer.Argument(..., help="Completion API key to store."),
    store: Path = typer.Option(..., dir_okay=False, help="JSON file backing the local store."),
) -> None:
    """Persist a completion API key override in the local store."""
    if not key.strip():
        raise typer.BadParameter("API key must not be empty", param_hint="key")
    container = _build_container(AppConfig(), store=store)
    container.credential_repo().set(key)
    typer.echo(f"API key stored in {store}.")


def main() -> None:
    app()


if __name__ == "__main__":
    main()
