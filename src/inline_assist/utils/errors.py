"""
Custom exception hierarchy for inline-assist.

Provides domain-specific exceptions for the background relay, the message
runtime and page-context script execution.
"""


class InlineAssistError(Exception):
    """
    Base exception for all inline-assist errors.

    All application errors should inherit from this class.
    """

    def __init__(self, message: str, error_code: str | None = None) -> None:
        """
        Initialize an inline-assist error.

        Args:
            message: Human-readable error message
            error_code: Optional error code for categorization
        """
        super().__init__(message)
        self.message = message
        self.error_code = error_code or self.__class__.__name__


class ConfigurationError(InlineAssistError):
    """
    Raised when there's an error in application configuration.

    Typically thrown while a session is being created with invalid settings.
    """


class ChannelError(InlineAssistError):
    """
    Raised when a message cannot be delivered between execution contexts.

    Covers a missing background listener and tabs with no connected
    content listener.
    """


class ReplyAlreadySentError(ChannelError):
    """Raised when a reply handle is used more than once."""

    def __init__(self, action: str | None = None) -> None:
        label = action or "unknown"
        super().__init__(
            f"Reply for action '{label}' was already sent",
            error_code="REPLY_ALREADY_SENT",
        )
        self.action = action


class InjectionError(InlineAssistError):
    """
    Raised when a page-context function cannot be executed in a tab.

    Wraps both unknown tab ids and exceptions raised by the injected function.
    """

    def __init__(self, message: str, tab_id: int | None = None) -> None:
        super().__init__(message, error_code="INJECTION_FAILED")
        self.tab_id = tab_id


class DecodeError(InlineAssistError):
    """
    Raised when one event line of a completion stream cannot be decoded.

    Recovered by the wire decoder: the line is dropped and the stream continues.
    """

    def __init__(self, line: str, reason: str) -> None:
        super().__init__(f"Could not decode stream line: {reason}", error_code="DECODE_ERROR")
        self.line = line
        self.reason = reason


class ExternalServiceError(InlineAssistError):
    """
    Raised when an external service (e.g., the completion endpoint) encounters an error.

    Wraps errors from third-party services with context.
    """

    def __init__(
        self,
        message: str,
        service_name: str,
        status_code: int | None = None,
        error_code: str | None = None,
    ) -> None:
        """
        Initialize an external service error.

        Args:
            message: Human-readable error message
            service_name: Name of the external service
            status_code: Optional HTTP status code
            error_code: Optional error code from the service
        """
        super().__init__(message, error_code)
        self.service_name = service_name
        self.status_code = status_code


class HttpStatusError(ExternalServiceError):
    """Raised when the completion endpoint answers with a non-success status."""

    def __init__(self, status_code: int, service_name: str = "completion-endpoint") -> None:
        super().__init__(
            message=f"Request failed: {status_code}",
            service_name=service_name,
            status_code=status_code,
            error_code="HTTP_STATUS_ERROR",
        )


class TransportError(ExternalServiceError):
    """Raised when the connection to the endpoint fails or breaks mid-stream."""

    def __init__(self, message: str = "Connection failed", service_name: str = "completion-endpoint") -> None:
        super().__init__(
            message=message,
            service_name=service_name,
            status_code=None,
            error_code="TRANSPORT_ERROR",
        )
