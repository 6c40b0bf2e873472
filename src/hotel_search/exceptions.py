"""Domain exceptions raised while loading reference data and searching.

Every error is fatal to the operation in progress. Callers branch on the
exception class rather than parsing messages; structured attributes carry
the details (offending argument, source file, line number, missing id).
"""

import os


class DomainError(Exception):
    """Base class for all domain exceptions."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class InvalidArgumentError(DomainError):
    """Raised when a required input is missing or blank."""

    def __init__(self, argument: str, reason: str = "is required") -> None:
        self.argument = argument
        self.reason = reason
        super().__init__(f"{argument} {reason}")


class InvalidDateRangeError(DomainError):
    """Raised when a date range starts after it ends."""

    def __init__(self, date_range: object) -> None:
        self.date_range = date_range
        super().__init__(f"Invalid date range: {date_range}")


class ReferenceDataError(DomainError):
    """Base class for failures while loading reference data."""


class MalformedRecordError(ReferenceDataError):
    """Raised when a row has the wrong shape or a field fails to parse."""

    def __init__(self, source: str | os.PathLike[str], line_number: int, reason: str) -> None:
        self.source = os.fspath(source)
        self.line_number = line_number
        self.reason = reason
        super().__init__(f"{self.source}:{line_number}: {reason}")


class ResourceUnavailableError(ReferenceDataError):
    """Raised when a reference data source cannot be opened or read."""

    def __init__(self, source: str | os.PathLike[str], reason: str) -> None:
        self.source = os.fspath(source)
        self.reason = reason
        super().__init__(f"{self.source} is not readable: {reason}")


class UnresolvedReferenceError(DomainError):
    """Raised when an id referenced by one dataset is absent from another."""

    def __init__(self, entity: str, identifier: object, context: str | None = None) -> None:
        self.entity = entity
        self.identifier = identifier
        self.context = context
        message = f"{entity} with id {identifier} not found"
        if context:
            message = f"{message} ({context})"
        super().__init__(message)
