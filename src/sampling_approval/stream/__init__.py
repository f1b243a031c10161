"""Push stream of sampling requests from the backend."""

from .client import ConnectionState, SamplingStreamClient, StreamPhase
from .sse import ServerSentEvent, SSEDecoder

__all__ = [
    "ConnectionState",
    "SamplingStreamClient",
    "StreamPhase",
    "ServerSentEvent",
    "SSEDecoder",
]
