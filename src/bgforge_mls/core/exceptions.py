"""Custom exceptions for bgforge_mls."""

from __future__ import annotations

from typing import Any


class MlsError(Exception):
    """Base exception for all bgforge_mls errors."""

    def __init__(self, message: str, context: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.context = context or {}

    def __str__(self) -> str:
        if self.context:
            ctx = ", ".join(f"{k}={v}" for k, v in self.context.items())
            return f"{self.message} ({ctx})"
        return self.message


class ConfigurationError(MlsError):
    """Error in configuration."""

    pass


class HeaderLoadError(MlsError):
    """External header directory cannot be used."""

    def __init__(self, headers_dir: str, reason: str) -> None:
        super().__init__(f"Cannot load headers from {headers_dir}: {reason}", {"headers_dir": headers_dir})
        self.headers_dir = headers_dir
        self.reason = reason


class CompileError(MlsError):
    """Compiler process could not be started."""

    pass
