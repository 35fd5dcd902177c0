from typing import Any, Dict, Optional


class ImporterError(Exception):
    """Root of every error raised by the importer.

    ``message`` is what a failed invocation reports in its ``error`` field;
    ``context`` is only appended to the string form, for logs.

    Attributes:
        message: Human-readable error message
        original_error: The botocore, pydantic or parsing error behind this one
        context: Key/value details such as the table name
    """

    def __init__(self, message: str, original_error: Optional[Exception] = None, context: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.original_error = original_error
        self.context = dict(context or {})

    @property
    def error_type(self) -> str:
        return type(self).__name__

    def to_response_fields(self) -> Dict[str, str]:
        """The error fields of a failed invocation's response body."""
        return {'error': self.message, 'errorType': self.error_type}

    def __str__(self) -> str:
        if not self.context:
            return self.message
        details = ", ".join(f"{k}={v}" for k, v in self.context.items())
        return f"{self.message} (Context: {details})"

    def __repr__(self) -> str:
        return f"{self.error_type}({self.message!r}, context={self.context!r})"
