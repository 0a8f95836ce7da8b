"""Dependency injection container for the evaluation tool."""

from __future__ import annotations

from typing import Any

from dependency_injector import containers, providers

from .analysis import AnalysisBoard, AnalysisService
from .config import ConfigManager
from .core import JobTypeCatalog, SimilarCandidateFinder
from .llm import CompletionClient, CompletionSettings, resolve_api_key
from .schemas.config import CompletionConfig
from .store import (
    CandidateRepository,
    CompanyInfoRepository,
    CredentialRepository,
    CriteriaRepository,
    DraftRepository,
    EvaluationRepository,
    InMemoryStore,
    JobPostingRepository,
    JsonFileStore,
    KeyValueStore,
)


def build_store(path: str | None = None) -> KeyValueStore:
    return JsonFileStore(path) if path else InMemoryStore()


def build_completion_settings(
    raw: dict[str, Any] | None,
    api_key: str | None,
    credentials: CredentialRepository,
) -> CompletionSettings:
    config = CompletionConfig.model_validate(raw or {})
    return CompletionSettings(
        api_key=resolve_api_key(api_key, credentials=credentials),
        **config.model_dump(),
    )


class EvaluationContainer(containers.DeclarativeContainer):
    """Dependency-injector container definition."""

    config = providers.Configuration()

    config_manager = providers.Singleton(ConfigManager)

    store = providers.Singleton(build_store, path=config.store.path)

    criteria_repo = providers.Singleton(CriteriaRepository, store=store)
    company_repo = providers.Singleton(CompanyInfoRepository, store=store, config=config_manager)
    posting_repo = providers.Singleton(JobPostingRepository, store=store)
    draft_repo = providers.Singleton(DraftRepository, store=store)
    evaluation_repo = providers.Singleton(EvaluationRepository, store=store)
    candidate_repo = providers.Singleton(
        CandidateRepository,
        store=store,
        evaluations=evaluation_repo,
        drafts=draft_repo,
    )
    credential_repo = providers.Singleton(CredentialRepository, store=store)

    catalog = providers.Singleton(JobTypeCatalog.from_config, manager=config_manager)

    similar_finder = providers.Singleton(
        SimilarCandidateFinder,
        candidates=candidate_repo,
        evaluations=evaluation_repo,
        job_label=catalog.provided.label,
    )

    completion_settings = providers.Singleton(
        build_completion_settings,
        raw=config.completion,
        api_key=config.api_key,
        credentials=credential_repo,
    )
    completion_client = providers.Singleton(CompletionClient, settings=completion_settings)

    analysis_service = providers.Singleton(
        AnalysisService,
        client=completion_client,
        catalog=catalog,
        company_repo=company_repo,
        criteria_repo=criteria_repo,
        posting_repo=posting_repo,
    )

    analysis_board = providers.Factory(AnalysisBoard, service=analysis_service)


def create_container(
    *,
    settings: dict | None = None,
    store: KeyValueStore | None = None,
) -> EvaluationContainer:
    """Instantiate container with optional overrides."""

    container = EvaluationContainer()

    if settings and isinstance(settings, dict):
        container.config.override(settings)

    if store is not None:
        container.store.override(providers.Object(store))

    return container
