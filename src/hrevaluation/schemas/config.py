"""Pydantic configuration schema for CLI YAML input."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field, ValidationError

DEFAULT_COMPLETION_ENDPOINT = "https://api.openai.com/v1/chat/completions"


class CompletionConfig(BaseModel):
    endpoint: str = DEFAULT_COMPLETION_ENDPOINT
    model: str = "gpt-4o-mini"
    temperature: float = Field(default=0.3, ge=0.0, le=2.0)
    max_tokens: int = Field(default=3000, gt=0)
    timeout: float = Field(default=60.0, gt=0)


class StoreConfig(BaseModel):
    path: str | None = None


class LoggingConfig(BaseModel):
    level: str = "INFO"
    json_output: bool = True


class AppConfig(BaseModel):
    completion: CompletionConfig = Field(default_factory=CompletionConfig)
    store: StoreConfig = Field(default_factory=StoreConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    def to_settings(self) -> dict[str, Any]:
        settings: dict[str, Any] = {"completion": self.completion.model_dump()}
        if self.store.path:
            settings["store"] = self.store.model_dump(exclude_none=True)
        return settings


def load_config(raw: Any) -> AppConfig:
    if raw is None:
        return AppConfig()
    if not isinstance(raw, dict):
        raise ValidationError.from_exception_data(
            "AppConfig",
            [{"type": "dict_type", "loc": ("config",), "input": raw}],
        )
    return AppConfig.model_validate(raw)
