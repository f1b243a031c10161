"""Submission of operator decisions for sampling requests."""

import json
import logging
from urllib.parse import quote

import httpx

from .config import Settings
from .endpoint import EndpointProvider, SettingsEndpointProvider, resolve_endpoint
from .errors import ParseError, RemoteRejectionError, TransportError
from .models.requests import SamplingRequest

logger = logging.getLogger(__name__)


class DecisionSubmitter:
    """Sends approve/deny decisions to the backend.

    Each submit() is a single POST; failures are raised to the caller and
    never retried here. The submitter does not know which request is
    current; clearing it after success is the caller's job.

    Attributes:
        settings: Client settings
        provider: Endpoint/credential provider
    """

    def __init__(
        self,
        provider: EndpointProvider | None = None,
        settings: Settings | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize submitter.

        Args:
            provider: Endpoint/credential provider (defaults to settings-backed)
            settings: Client settings
            transport: Optional httpx transport, mainly for tests
        """
        self.settings = settings or Settings()
        self.provider = provider or SettingsEndpointProvider(self.settings)
        self._transport = transport
        self._http: httpx.AsyncClient | None = None

    async def submit(self, request_id: str, approved: bool) -> None:
        """Submit a decision for one sampling request.

        Args:
            request_id: Id of the request being decided
            approved: True to approve, False to deny

        Raises:
            ConfigurationError: If endpoint or token is unavailable (no call is made)
            RemoteRejectionError: If the backend answers with a non-2xx status
            TransportError: If the call could not be completed
        """
        base_url, token = await resolve_endpoint(self.provider)
        url = f"{base_url}/sampling/{quote(request_id, safe='')}/approve"
        verb = "approve" if approved else "deny"

        try:
            response = await self._get_http_client().post(
                url,
                json={"approved": approved},
                headers={self.settings.auth_header: token},
            )
        except httpx.HTTPError as e:
            logger.error(f"[DecisionSubmitter] Failed to {verb} request {request_id}: {e}")
            raise TransportError(f"Failed to {verb} request {request_id}: {e}") from e

        if not response.is_success:
            logger.error(
                f"[DecisionSubmitter] Backend refused to {verb} request {request_id}: "
                f"{response.status_code} {response.reason_phrase}"
            )
            raise RemoteRejectionError(request_id, response.status_code, response.reason_phrase)

        logger.info(f"[DecisionSubmitter] Request {'approved' if approved else 'denied'}: {request_id}")

    async def approve(self, request_id: str) -> None:
        await self.submit(request_id, True)

    async def deny(self, request_id: str) -> None:
        await self.submit(request_id, False)

    async def pending_requests(self) -> list[SamplingRequest]:
        """Fetch requests the backend still holds open.

        Returns:
            Pending requests, in no guaranteed order

        Raises:
            ConfigurationError: If endpoint or token is unavailable
            RemoteRejectionError: If the backend answers with a non-2xx status
            TransportError: If the call could not be completed
            ParseError: If the body is not a list of requests
        """
        base_url, token = await resolve_endpoint(self.provider)
        url = f"{base_url}{self.settings.pending_path}"

        try:
            response = await self._get_http_client().get(
                url, headers={self.settings.auth_header: token}
            )
        except httpx.HTTPError as e:
            raise TransportError(f"Failed to fetch pending requests: {e}") from e

        if not response.is_success:
            raise RemoteRejectionError(None, response.status_code, response.reason_phrase)

        try:
            data = response.json()
        except json.JSONDecodeError as e:
            raise ParseError(f"Invalid JSON in pending requests: {e}") from e
        if not isinstance(data, list):
            raise ParseError("Pending requests must be a JSON list")

        requests = [SamplingRequest.from_dict(item) for item in data]
        logger.info(f"[DecisionSubmitter] Backend reports {len(requests)} pending request(s)")
        return requests

    async def aclose(self) -> None:
        if self._http is not None:
            await self._http.aclose()
            self._http = None

    async def __aenter__(self) -> "DecisionSubmitter":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    def _get_http_client(self) -> httpx.AsyncClient:
        if self._http is None:
            self._http = httpx.AsyncClient(
                transport=self._transport,
                timeout=self.settings.request_timeout_seconds,
            )
        return self._http
