"""Consumer-facing facade over the stream client and decision submitter."""

import logging
from typing import Callable

import httpx

from .config import Settings
from .decisions import DecisionSubmitter
from .endpoint import EndpointProvider, SettingsEndpointProvider
from .errors import SamplingApprovalError
from .models.requests import SamplingRequest
from .stream.client import (
    ConnectionState,
    SamplingStreamClient,
    Scheduler,
    StateListener,
)

logger = logging.getLogger(__name__)


class SamplingApproval:
    """Approval session: one stream client plus one decision submitter.

    Start it when the host component activates and stop it at teardown.
    The operator-facing code reads current_request and calls approve() or
    deny(); the request is cleared only after the backend accepted the
    decision.

    Attributes:
        stream: Push stream client
        submitter: Decision submitter
    """

    def __init__(
        self,
        provider: EndpointProvider | None = None,
        settings: Settings | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        scheduler: Scheduler | None = None,
    ) -> None:
        settings = settings or Settings()
        provider = provider or SettingsEndpointProvider(settings)

        self.stream = SamplingStreamClient(
            provider=provider,
            settings=settings,
            transport=transport,
            scheduler=scheduler,
        )
        self.submitter = DecisionSubmitter(
            provider=provider,
            settings=settings,
            transport=transport,
        )
        self._decision_error: Exception | None = None

    @property
    def current_request(self) -> SamplingRequest | None:
        return self.stream.current_request

    @property
    def state(self) -> ConnectionState:
        return self.stream.state

    @property
    def is_connected(self) -> bool:
        return self.stream.is_connected

    @property
    def error(self) -> Exception | None:
        """Latest error from a failed decision or from the stream."""
        return self._decision_error or self.stream.state.last_error

    async def start(self) -> None:
        await self.stream.connect()

    async def stop(self) -> None:
        await self.stream.aclose()
        await self.submitter.aclose()

    async def __aenter__(self) -> "SamplingApproval":
        await self.start()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.stop()

    async def reconnect(self) -> None:
        await self.stream.reconnect()

    def add_listener(self, listener: StateListener) -> Callable[[], None]:
        return self.stream.add_listener(listener)

    async def wait_for_request(self, timeout: float | None = None) -> SamplingRequest:
        return await self.stream.wait_for_request(timeout)

    def clear_current_request(self) -> None:
        """Discard the current request without deciding."""
        self.stream.clear_current_request()

    async def approve(self, request_id: str | None = None) -> None:
        await self._decide(request_id, True)

    async def deny(self, request_id: str | None = None) -> None:
        await self._decide(request_id, False)

    async def resync(self) -> SamplingRequest | None:
        """Adopt a pending request the stream may have missed while down.

        Only a single pending request is adopted. The backend keeps pending
        requests unordered, so with several of them there is no way to tell
        which one is newest and none is adopted.

        Returns:
            The adopted request, or None if nothing was adopted
        """
        if self.current_request is not None:
            return None

        pending = await self.submitter.pending_requests()
        if not pending:
            return None

        # The stream may have delivered a request while the GET was in flight
        if self.current_request is not None:
            logger.info(
                f"[SamplingApproval] Stream delivered {self.current_request.id} "
                "during resync, keeping it"
            )
            return None

        if len(pending) > 1:
            logger.warning(
                f"[SamplingApproval] {len(pending)} pending requests, not adopting any: "
                f"{', '.join(r.id for r in pending)}"
            )
            return None

        request = pending[0]
        logger.info(f"[SamplingApproval] Resynced pending request {request.id}")
        self.stream.adopt_request(request)
        return request

    async def _decide(self, request_id: str | None, approved: bool) -> None:
        if request_id is None:
            current = self.current_request
            if current is None:
                raise ValueError("No sampling request to decide")
            request_id = current.id

        try:
            await self.submitter.submit(request_id, approved)
        except SamplingApprovalError as e:
            self._decision_error = e
            raise

        self._decision_error = None
        self.stream.clear_current_request(request_id)
