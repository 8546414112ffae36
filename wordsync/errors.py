class WordSyncError(Exception):
    """Root class for all distinguished errors raised by this library.

    Args:
        msg: Error message
        retryable: Whether the operation that caused this error can be retried
    """

    def __init__(self, *, msg: str, retryable: bool = True) -> None:
        super().__init__(msg)
        self._retryable = retryable

    @property
    def retryable(self) -> bool:
        """Whether this error indicates a retryable operation."""
        return self._retryable


class ConfigurationError(WordSyncError):
    """Error for invalid configuration values.

    Args:
        key: Name of the offending configuration key
        reason: Why the value was rejected
    """

    def __init__(self, *, key: str, reason: str) -> None:
        super().__init__(msg=f"Invalid configuration for '{key}': {reason}", retryable=False)
        self.key = key


# Data Processing Errors
class DataProcessingError(WordSyncError):
    """Base class for data processing errors."""


class InputValidationError(DataProcessingError):
    """Error for structurally invalid alignment input.

    Args:
        field_name: Name of the field that failed validation
        field_value: Value that failed validation
        constraint: The validation constraint that was violated
        expected_format: Description of expected format
    """

    def __init__(
        self,
        *,
        field_name: str,
        field_value: object,
        constraint: str,
        expected_format: str | None = None,
    ) -> None:
        msg = f"Validation failed for field '{field_name}' with value '{field_value}': {constraint}"
        if expected_format:
            msg += f". Expected format: {expected_format}"
        super().__init__(msg=msg, retryable=False)
        self.field_name = field_name
        self.field_value = field_value


class InvalidTimingError(InputValidationError):
    """Error for an audio interval that is non-finite, starts below zero or ends before it starts.

    Args:
        start: Start time in seconds
        end: End time in seconds
    """

    def __init__(self, *, start: float, end: float) -> None:
        super().__init__(
            field_name="timing",
            field_value=f"{start}-{end}",
            constraint="start must be >= 0 and end must be >= start",
        )
        self.start = start
        self.end = end


class SerializationError(DataProcessingError):
    """Error during data serialization/deserialization.

    Args:
        data_type: Type of data being processed
        operation: Whether serializing or deserializing
        error_details: Additional error information
    """

    def __init__(self, *, data_type: str, operation: str, error_details: str) -> None:
        msg = f"Failed to {operation} {data_type}: {error_details}"
        super().__init__(msg=msg, retryable=False)
        self.data_type = data_type
        self.operation = operation
