"""Exceptions raised by the lineup engine."""


class LineupError(Exception):
    """Base exception for all lineup engine errors."""

    def __init__(self, message: str, *args, **kwargs):
        self.message = message
        super().__init__(message, *args, **kwargs)


class UnknownRowError(LineupError, KeyError):
    """Raised when a row or insert id is not in the store."""

    def __init__(self, row_id: str):
        self.row_id = row_id
        super().__init__(f"No such row: {row_id}")

    def __str__(self) -> str:
        return self.message


class DiscontiguousPagesError(LineupError):
    """Raised when a page set cannot be expressed as one inclusive range."""

    def __init__(self, message: str, pages: set[int] | None = None):
        self.pages = set(pages or ())
        super().__init__(message)


class PickerStateError(LineupError):
    """Raised when a picker operation is called in the wrong state."""

    pass


class SaveError(LineupError):
    """Raised when a save could not be completed.

    The working set is left intact so the save can be retried.
    """

    def __init__(self, message: str, step: str | None = None):
        self.step = step
        super().__init__(message)
