class OutageError(Exception):
    """Base exception for outage calculation errors."""

    def __init__(
        self,
        code: str,
        message: str,
        details: dict | None = None,
    ):
        self.code = code
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> dict:
        result = {
            "error": {
                "code": self.code,
                "message": self.message,
            }
        }
        if self.details:
            result["error"]["details"] = self.details
        return result


class DataQualityError(OutageError):
    """The input data cannot be processed as given. Aborts the affected host or run."""


class ContractViolationError(OutageError):
    """An internal precondition was broken. Always propagates."""


class MalformedDurationError(DataQualityError):
    def __init__(self, message: str = "Duration text could not be parsed.", details: dict | None = None):
        super().__init__(code="malformed_duration", message=message, details=details)


class MissingImputationBasisError(DataQualityError):
    def __init__(
        self,
        message: str = "Event requires imputation but carries no duration hint.",
        details: dict | None = None,
    ):
        super().__init__(code="missing_imputation_basis", message=message, details=details)


class InputFormatError(DataQualityError):
    def __init__(self, message: str = "Input file has an unexpected layout.", details: dict | None = None):
        super().__init__(code="input_format", message=message, details=details)


class TrapParseError(DataQualityError):
    def __init__(self, message: str = "Trap message could not be interpreted.", details: dict | None = None):
        super().__init__(code="trap_parse", message=message, details=details)


class NonAlternatingEventsError(ContractViolationError):
    def __init__(self, message: str = "Got two events with the same state in a row.", details: dict | None = None):
        super().__init__(code="non_alternating_events", message=message, details=details)
