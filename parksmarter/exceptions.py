"""Exception hierarchy for the parking search engine."""


class ParkSmarterError(Exception):
    """Base exception for all parksmarter errors."""


class InvalidInput(ParkSmarterError):
    """A required request field is missing, non-numeric or out of range."""

    def __init__(self, field: str, message: str | None = None):
        self.field = field
        super().__init__(message or f"{field} is required")


class DependencyFailure(ParkSmarterError):
    """The candidate store could not be reached or returned malformed data."""


class DatasetError(DependencyFailure):
    """A parking or transit dataset file could not be loaded."""

    def __init__(self, source: str, detail: str):
        self.source = source
        super().__init__(f"Could not load dataset {source}: {detail}")
