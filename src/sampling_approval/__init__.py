"""Sampling Approval - operator approval channel for LLM sampling requests.

This package lets a host application surface sampling requests emitted by a
backend (an extension asking to invoke a language model) and lets a human
operator approve or deny each one.

Core pieces:
    SamplingStreamClient keeps a self-healing Server-Sent Events connection
    to the backend and exposes the single pending request.
    DecisionSubmitter posts the operator's decision for a request id.
    SamplingApproval wires both together for a consumer.

Example:
    >>> from sampling_approval import SamplingApproval
    >>> async with SamplingApproval() as approval:
    ...     request = await approval.wait_for_request()
    ...     await approval.approve(request.id)
"""

from .approval import SamplingApproval
from .config import Settings, configure_logging
from .decisions import DecisionSubmitter
from .endpoint import EndpointProvider, SettingsEndpointProvider
from .errors import (
    ConfigurationError,
    ConnectionExhaustedError,
    ParseError,
    RemoteRejectionError,
    SamplingApprovalError,
    TransportError,
)
from .models.requests import (
    ContentBlock,
    ModelHint,
    ModelPreferences,
    SamplingMessage,
    SamplingRequest,
)
from .stream.client import ConnectionState, SamplingStreamClient, StreamPhase

__version__ = "0.1.0"
__license__ = "MIT"

__all__ = [
    "__version__",
    "SamplingApproval",
    "Settings",
    "configure_logging",
    "DecisionSubmitter",
    "EndpointProvider",
    "SettingsEndpointProvider",
    "SamplingStreamClient",
    "StreamPhase",
    "ConnectionState",
    "SamplingRequest",
    "SamplingMessage",
    "ContentBlock",
    "ModelPreferences",
    "ModelHint",
    "SamplingApprovalError",
    "ConfigurationError",
    "ParseError",
    "TransportError",
    "ConnectionExhaustedError",
    "RemoteRejectionError",
]
