"""
Error taxonomy for the calendar service.

Every business-rule failure is a ``CalendarError`` carrying the HTTP status it
maps to; the handler in ``main.py`` renders it as
``{"success": false, "message": [...]}``.
"""


class CalendarError(Exception):
    status_code = 400

    def __init__(self, message: str | list[str]):
        self.messages = [message] if isinstance(message, str) else list(message)
        super().__init__("; ".join(self.messages))

    @property
    def message(self) -> str:
        return self.messages[0] if self.messages else ""


class ValidationError(CalendarError):
    """User input is malformed or a required field is missing."""


class MissingPetsError(ValidationError):
    def __init__(self, message: str = "pets is required for request type"):
        super().__init__(message)


class MissingReasonError(ValidationError):
    def __init__(self, message: str = "reason is required for request type"):
        super().__init__(message)


class WrongTypeError(ValidationError):
    def __init__(self, message: str = "Entry is not a request"):
        super().__init__(message)


class InvalidDateError(CalendarError):
    def __init__(self, value):
        self.value = value
        super().__init__(f"Invalid date: {value!r}")


class OverlappingEntryError(CalendarError):
    def __init__(self, message: str = "You already have an entry for this time period."):
        super().__init__(message)


class NotFoundError(CalendarError):
    status_code = 404

    def __init__(self, message: str = "Calendar entry not found"):
        super().__init__(message)


class StorageError(CalendarError):
    """The database failed underneath us. Not retried here."""
    status_code = 500
