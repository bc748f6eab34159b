"""Uniform result of every operation."""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True)
class Outcome:
    success: bool
    message: str
    outputs: dict[str, str] = field(default_factory=dict)
    error: str | None = None
    error_type: str | None = None

    @classmethod
    def ok(cls, message: str, outputs: dict[str, str] | None = None) -> "Outcome":
        return cls(success=True, message=message, outputs=dict(outputs or {}))

    @classmethod
    def failure(cls, error: Exception | str, message: str | None = None) -> "Outcome":
        """Failed outcome; ``message`` defaults to the error text."""
        text = str(error)
        return cls(
            success=False,
            message=message if message is not None else text,
            error=text,
            error_type=type(error).__name__ if isinstance(error, Exception) else None,
        )
