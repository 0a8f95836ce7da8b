"""Chat-completion client and credential resolution."""

from __future__ import annotations

import json
import os
from dataclasses import dataclass
from typing import Any, Callable, Mapping, Protocol, runtime_checkable
from urllib import error, request

import structlog

from .errors import CompletionError, ErrorKind, NotConfiguredError, classify_status
from .schemas.config import DEFAULT_COMPLETION_ENDPOINT
from .store import CredentialRepository

API_KEY_ENV = "OPENAI_API_KEY"

SYSTEM_PROMPT = (
    "あなたは経験豊富な人事採用コンサルタントです。"
    "客観的で建設的な評価を行い、必ずJSON形式で回答してください。"
    "具体的な根拠に基づいて分析し、実用的な推奨事項を提供してください。"
)


@dataclass(slots=True)
class CompletionSettings:
    """Parameters of every completion request, including the credential."""

    api_key: str | None = None
    endpoint: str = DEFAULT_COMPLETION_ENDPOINT
    model: str = "gpt-4o-mini"
    temperature: float = 0.3
    max_tokens: int = 3000
    timeout: float = 60.0

    @property
    def configured(self) -> bool:
        return bool(self.api_key and self.api_key.strip())


@runtime_checkable
class Completer(Protocol):
    """Anything that turns a prompt into completion text."""

    @property
    def configured(self) -> bool:
        ...

    def complete(self, prompt: str) -> str:
        ...


def resolve_api_key(
    explicit: str | None = None,
    *,
    env: Mapping[str, str] | None = None,
    credentials: CredentialRepository | None = None,
) -> str | None:
    """Explicit value, then ``OPENAI_API_KEY``, then the stored override."""
    environ = os.environ if env is None else env
    for candidate in (explicit, environ.get(API_KEY_ENV)):
        if candidate and candidate.strip():
            return candidate.strip()
    if credentials is not None:
        return credentials.get()
    return None


def build_request_body(prompt: str, settings: CompletionSettings) -> dict[str, Any]:
    return {
        "model": settings.model,
        "messages": [
            {"role": "system", "content": SYSTEM_PROMPT},
            {"role": "user", "content": prompt},
        ],
        "temperature": settings.temperature,
        "max_tokens": settings.max_tokens,
    }


Opener = Callable[..., Any]


class CompletionClient:
    """Single-shot HTTP client for the chat-completion endpoint.

    Failures are raised as :class:`CompletionError` classified by status code.
    There is no retry; callers decide whether to re-issue a request.
    """

    def __init__(self, settings: CompletionSettings, *, opener: Opener | None = None):
        self._settings = settings
        self._open = opener or request.urlopen
        self._logger = structlog.get_logger(__name__)

    @property
    def settings(self) -> CompletionSettings:
        return self._settings

    @property
    def configured(self) -> bool:
        return self._settings.configured

    def complete(self, prompt: str) -> str:
        if not self.configured:
            raise NotConfiguredError()
        settings = self._settings
        data = json.dumps(build_request_body(prompt, settings), ensure_ascii=False).encode("utf-8")
        headers = {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {settings.api_key.strip()}",
        }
        req = request.Request(settings.endpoint, data=data, headers=headers, method="POST")
        try:
            with self._open(req, timeout=settings.timeout) as resp:
                body = resp.read().decode("utf-8")
        except error.HTTPError as exc:
            detail = _error_detail(exc)
            kind = classify_status(exc.code)
            self._logger.warning(
                "completion.request_failed", status=exc.code, kind=kind.value, detail=detail
            )
            raise CompletionError(kind, status=exc.code, detail=detail) from exc
        except (error.URLError, TimeoutError, OSError) as exc:
            self._logger.warning("completion.request_failed", kind=ErrorKind.UNKNOWN.value, error=str(exc))
            raise CompletionError(ErrorKind.UNKNOWN, detail=str(exc)) from exc
        except UnicodeDecodeError as exc:
            self._logger.warning("completion.undecodable_body", error=str(exc))
            raise CompletionError(ErrorKind.UNKNOWN, detail="response body is not valid UTF-8") from exc

        content = _message_content(body)
        self._logger.info("completion.received", model=settings.model, chars=len(content))
        return content


def _error_detail(exc: error.HTTPError) -> str | None:
    try:
        raw = exc.read().decode("utf-8")
    except (OSError, AttributeError, UnicodeDecodeError):
        return exc.reason if isinstance(exc.reason, str) else None
    try:
        payload = json.loads(raw) if raw else {}
    except (ValueError, RecursionError):
        return raw or None
    info = payload.get("error") if isinstance(payload, dict) else None
    message = info.get("message") if isinstance(info, dict) else None
    if isinstance(message, str) and message:
        return message
    return exc.reason if isinstance(exc.reason, str) else None


def _message_content(body: str) -> str:
    """Extract the first choice's message text; empty when absent."""
    try:
        payload = json.loads(body) if body else {}
    except (ValueError, RecursionError):
        return ""
    if not isinstance(payload, dict):
        return ""
    choices = payload.get("choices")
    if not isinstance(choices, list) or not choices or not isinstance(choices[0], dict):
        return ""
    message = choices[0].get("message")
    if not isinstance(message, dict):
        return ""
    content = message.get("content")
    return content if isinstance(content, str) else ""


__all__ = [
    "API_KEY_ENV",
    "SYSTEM_PROMPT",
    "Completer",
    "CompletionClient",
    "CompletionSettings",
    "build_request_body",
    "resolve_api_key",
]
