from __future__ import annotations

from typing import Any


class NotemancyError(RuntimeError):
    """Base error carrying a machine-readable ``code`` plus free-form context."""

    def __init__(self, code: str, **context: Any) -> None:
        super().__init__(code)
        self.code = code
        self.context = context

    def __str__(self) -> str:
        if not self.context:
            return self.code
        details = ", ".join(f"{k}={v!r}" for k, v in sorted(self.context.items()))
        return f"{self.code} ({details})"


class IOFailure(NotemancyError):
    pass


class ParseFailure(NotemancyError):
    pass


class EmptyVault(NotemancyError):
    pass


class NotReady(NotemancyError):
    pass


class RemoteTaskFailure(NotemancyError):
    pass


class PathError(NotemancyError, ValueError):
    pass
