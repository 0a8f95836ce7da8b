"""Error taxonomy for AI-assisted analyses."""

from __future__ import annotations

from enum import Enum


class ErrorKind(str, Enum):
    NOT_CONFIGURED = "not_configured"
    UNAUTHENTICATED = "unauthenticated"
    FORBIDDEN = "forbidden"
    RATE_LIMITED = "rate_limited"
    SERVICE_UNAVAILABLE = "service_unavailable"
    MISSING_INPUT = "missing_input"
    UNKNOWN = "unknown"


_MESSAGES: dict[ErrorKind, str] = {
    ErrorKind.NOT_CONFIGURED: (
        "OpenAI APIキーが設定されていません。設定画面からAPIキーを入力してください。"
    ),
    ErrorKind.UNAUTHENTICATED: "APIキーが無効です。正しいOpenAI APIキーを設定してください。",
    ErrorKind.FORBIDDEN: "APIアクセスが拒否されました。アカウントの権限をご確認ください。",
    ErrorKind.RATE_LIMITED: (
        "API使用量の上限に達しました。OpenAIアカウントの使用状況と請求詳細をご確認ください。"
        "詳細: https://platform.openai.com/account/usage"
    ),
    ErrorKind.SERVICE_UNAVAILABLE: (
        "OpenAIサーバーに一時的な問題が発生しています。しばらく時間をおいて再試行してください。"
    ),
    ErrorKind.MISSING_INPUT: "分析対象の面接議事録がありません。面接議事録を登録してから再度お試しください。",
}

_SERVICE_UNAVAILABLE_STATUSES = frozenset({500, 502, 503, 504})


class AnalysisError(Exception):
    """Failure scoped to a single analysis action."""

    def __init__(self, kind: ErrorKind, message: str, *, detail: str | None = None):
        super().__init__(message)
        self.kind = kind
        self.message = message
        self.detail = detail


class NotConfiguredError(AnalysisError):
    """Raised before any network call when no API credential is available."""

    def __init__(self) -> None:
        super().__init__(ErrorKind.NOT_CONFIGURED, localized_message(ErrorKind.NOT_CONFIGURED))


class MissingInputError(AnalysisError):
    """Raised before any network call when the analysis has nothing to analyze."""

    def __init__(self, detail: str | None = None) -> None:
        super().__init__(ErrorKind.MISSING_INPUT, localized_message(ErrorKind.MISSING_INPUT), detail=detail)


class CompletionError(AnalysisError):
    """Raised when the chat-completion call fails."""

    def __init__(
        self,
        kind: ErrorKind,
        *,
        status: int | None = None,
        detail: str | None = None,
        operation: str = "AI分析",
    ):
        super().__init__(
            kind,
            localized_message(kind, operation=operation, detail=detail),
            detail=detail,
        )
        self.status = status

    def for_operation(self, operation: str) -> "CompletionError":
        """Return a copy whose message names the given action."""
        return CompletionError(self.kind, status=self.status, detail=self.detail, operation=operation)


def classify_status(status: int | None) -> ErrorKind:
    """Map an HTTP status code onto the completion error taxonomy."""
    if status == 401:
        return ErrorKind.UNAUTHENTICATED
    if status == 403:
        return ErrorKind.FORBIDDEN
    if status == 429:
        return ErrorKind.RATE_LIMITED
    if status in _SERVICE_UNAVAILABLE_STATUSES:
        return ErrorKind.SERVICE_UNAVAILABLE
    return ErrorKind.UNKNOWN


def localized_message(
    kind: ErrorKind,
    *,
    operation: str = "AI分析",
    detail: str | None = None,
) -> str:
    if kind is ErrorKind.UNKNOWN:
        return f"{operation}中にエラーが発生しました: {detail or '不明なエラー'}"
    return _MESSAGES[kind]


__all__ = [
    "AnalysisError",
    "CompletionError",
    "ErrorKind",
    "MissingInputError",
    "NotConfiguredError",
    "classify_status",
    "localized_message",
]
