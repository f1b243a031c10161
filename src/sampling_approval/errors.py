"""Error taxonomy for the sampling approval channel.

Transport failures on the stream are retried internally and only surfaced
once the reconnect budget is spent. Parse and decision failures are always
surfaced to the consumer.
"""


class SamplingApprovalError(Exception):
    """Base class for all sampling approval errors."""


class ConfigurationError(SamplingApprovalError):
    """Backend endpoint or auth token is unavailable. Not retried."""


class ParseError(SamplingApprovalError):
    """Inbound event could not be decoded into a SamplingRequest."""


class TransportError(SamplingApprovalError):
    """Connection to the backend failed, errored or was closed."""


class ConnectionExhaustedError(SamplingApprovalError):
    """Reconnect budget spent; a manual reconnect is required.

    Attributes:
        attempts: Number of automatic reconnects that were made
    """

    def __init__(self, attempts: int) -> None:
        super().__init__(
            f"Failed to connect to sampling stream after {attempts} reconnect attempts"
        )
        self.attempts = attempts


class RemoteRejectionError(SamplingApprovalError):
    """Backend answered a call with a non-success status.

    Attributes:
        request_id: Sampling request id the call addressed (None for list calls)
        status_code: HTTP status code
        status_text: HTTP reason phrase
    """

    def __init__(self, request_id: str | None, status_code: int, status_text: str) -> None:
        target = f" for request {request_id}" if request_id else ""
        super().__init__(f"Backend rejected call{target}: {status_code} {status_text}".rstrip())
        self.request_id = request_id
        self.status_code = status_code
        self.status_text = status_text
