from __future__ import annotations


class CLIError(Exception):
    """A user-facing CLI failure, rendered without a traceback."""

    def __init__(
        self,
        message: str,
        *,
        exit_code: int = 2,
        error_type: str = "usage_error",
        hint: str | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.exit_code = exit_code
        self.error_type = error_type
        self.hint = hint
