"""Exception types raised by esgdash operations."""


class EsgError(Exception):
    """Base class for all esgdash errors."""


class StoreError(EsgError):
    """The backing store failed. The original exception is chained."""


class ValidationError(EsgError):
    """Input rejected before any store call was made."""


class SubmissionError(EsgError):
    """A submission operation failed."""


class SubmissionNotFound(SubmissionError):
    """No submission exists with the given id."""

    def __init__(self, submission_id: int):
        super().__init__(f"Submission {submission_id} not found")
        self.submission_id = submission_id


class InvalidTransition(SubmissionError):
    """Requested status change is not allowed from the current status."""

    def __init__(self, submission_id: int, current: str, target: str):
        super().__init__(
            f"Submission {submission_id} cannot move from '{current}' to '{target}'"
        )
        self.submission_id = submission_id
        self.current = current
        self.target = target


class CatalogConfigError(EsgError):
    """Catalog parameters do not line up with the detail-table columns."""

    def __init__(self, message: str, unmapped: list | None = None, duplicates: dict | None = None):
        super().__init__(message)
        self.unmapped = unmapped or []
        self.duplicates = duplicates or {}


class UserNotFound(EsgError):
    """No user exists with the given id."""
