"""Self-healing push stream client for sampling requests.

The client keeps one Server-Sent Events connection to the backend's
sampling stream and republishes the latest decoded request as the single
"current" request. Transport failures are retried with exponential backoff
up to a fixed budget; after that a manual reconnect is required.

All transitions run on the event loop thread. Every teardown bumps a
generation counter, and handlers belonging to an older generation are
ignored, so a cancelled connection can never resurrect stale state.
"""

import asyncio
import logging
from dataclasses import dataclass, replace
from enum import Enum
from typing import Callable, Protocol

import httpx

from ..config import Settings
from ..endpoint import EndpointProvider, SettingsEndpointProvider, resolve_endpoint
from ..errors import (
    ConfigurationError,
    ConnectionExhaustedError,
    ParseError,
    TransportError,
)
from ..models.requests import SamplingRequest
from .sse import ServerSentEvent, SSEDecoder

logger = logging.getLogger(__name__)


class StreamPhase(Enum):
    """Lifecycle phase of the stream connection."""

    IDLE = "idle"
    CONNECTING = "connecting"
    CONNECTED = "connected"
    FAILED = "failed"
    EXHAUSTED = "exhausted"


@dataclass(frozen=True)
class ConnectionState:
    """Snapshot of stream connectivity.

    Attributes:
        phase: Current lifecycle phase
        last_error: Most recent error (transport, parse, configuration)
        reconnect_attempts: Automatic reconnects made since the last success
    """

    phase: StreamPhase = StreamPhase.IDLE
    last_error: Exception | None = None
    reconnect_attempts: int = 0

    @property
    def connected(self) -> bool:
        return self.phase is StreamPhase.CONNECTED


class TimerHandle(Protocol):
    def cancel(self) -> None: ...


Scheduler = Callable[[float, Callable[[], None]], TimerHandle]
StateListener = Callable[[ConnectionState, SamplingRequest | None], None]


class SamplingStreamClient:
    """Owns the push stream lifecycle and the current sampling request.

    Exactly one instance should be active per backend; the live connection
    task and the pending reconnect timer are owned by the instance and only
    changed through connect(), reconnect() and disconnect().

    Attributes:
        settings: Client settings (routes, backoff, timeouts)
        provider: Endpoint/credential provider
    """

    def __init__(
        self,
        provider: EndpointProvider | None = None,
        settings: Settings | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        scheduler: Scheduler | None = None,
    ) -> None:
        """Initialize stream client.

        Args:
            provider: Endpoint/credential provider (defaults to settings-backed)
            settings: Client settings
            transport: Optional httpx transport, mainly for tests
            scheduler: Optional timer factory (delay_seconds, callback) -> handle;
                defaults to the running loop's call_later
        """
        self.settings = settings or Settings()
        self.provider = provider or SettingsEndpointProvider(self.settings)
        self._transport = transport
        self._scheduler = scheduler
        self._http: httpx.AsyncClient | None = None

        self._state = ConnectionState()
        self._current_request: SamplingRequest | None = None
        self._request_ready = asyncio.Event()
        self._listeners: list[StateListener] = []

        # Owned handles
        self._generation = 0
        self._connection_task: asyncio.Task | None = None
        self._reconnect_handle: TimerHandle | None = None
        self._reconnect_task: asyncio.Task | None = None

    # =========================================================================
    # STATE
    # =========================================================================

    @property
    def state(self) -> ConnectionState:
        return self._state

    @property
    def is_connected(self) -> bool:
        return self._state.connected

    @property
    def current_request(self) -> SamplingRequest | None:
        return self._current_request

    def add_listener(self, listener: StateListener) -> Callable[[], None]:
        """Register a callback invoked after every state change.

        Args:
            listener: Called with (state, current_request)

        Returns:
            Function that removes the listener
        """
        self._listeners.append(listener)

        def remove() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return remove

    def clear_current_request(self, request_id: str | None = None) -> bool:
        """Drop the current request.

        Args:
            request_id: Only clear if the current request has this id

        Returns:
            True if a request was cleared
        """
        current = self._current_request
        if current is None:
            return False
        if request_id is not None and current.id != request_id:
            logger.info(
                f"[SamplingStream] Keeping request {current.id}, "
                f"it superseded {request_id}"
            )
            return False

        self._current_request = None
        self._request_ready.clear()
        self._notify()
        return True

    def adopt_request(self, request: SamplingRequest) -> None:
        """Publish a request obtained outside the stream (e.g. resync).

        Args:
            request: Request to make current
        """
        self._publish(request)

    async def wait_for_request(self, timeout: float | None = None) -> SamplingRequest:
        """Wait until a request is current and return it.

        Args:
            timeout: Seconds to wait, None waits forever

        Returns:
            The current SamplingRequest

        Raises:
            asyncio.TimeoutError: If no request arrived in time
        """

        async def _wait() -> SamplingRequest:
            while self._current_request is None:
                await self._request_ready.wait()
            return self._current_request

        return await asyncio.wait_for(_wait(), timeout)

    # =========================================================================
    # LIFECYCLE
    # =========================================================================

    async def connect(self) -> None:
        """Open a new stream connection, replacing any existing one.

        Raises:
            ConfigurationError: If endpoint or token is unavailable; no retry
                is scheduled for this failure
        """
        generation = self._teardown()
        self._update(phase=StreamPhase.CONNECTING)

        try:
            base_url, token = await resolve_endpoint(self.provider)
        except ConfigurationError as e:
            if generation == self._generation:
                logger.error(f"[SamplingStream] Failed to connect to SSE stream: {e}")
                self._update(phase=StreamPhase.IDLE, last_error=e)
            raise

        if generation != self._generation:
            logger.debug("[SamplingStream] Connect superseded while resolving endpoint")
            return

        url = f"{base_url}{self.settings.stream_path}"
        logger.info(f"[SamplingStream] Connecting to {url}")
        self._connection_task = asyncio.create_task(
            self._run_connection(generation, url, token),
            name=f"sampling-stream-{generation}",
        )

    async def reconnect(self) -> None:
        """Manual reconnect: reset the attempt budget and connect again."""
        logger.info("[SamplingStream] Manual reconnect requested")
        self._update(reconnect_attempts=0)
        await self.connect()

    def disconnect(self) -> None:
        """Cancel pending reconnects and close the stream. Idempotent."""
        self._teardown()
        if self._reconnect_task is not None:
            self._reconnect_task.cancel()
            self._reconnect_task = None

        if self._state.phase is not StreamPhase.IDLE:
            logger.info("[SamplingStream] Disconnected")
        self._update(phase=StreamPhase.IDLE, reconnect_attempts=0)

    async def aclose(self) -> None:
        """Disconnect and release the HTTP client."""
        tasks = [t for t in (self._connection_task, self._reconnect_task) if t is not None]
        self.disconnect()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)

        if self._http is not None:
            await self._http.aclose()
            self._http = None

    async def __aenter__(self) -> "SamplingStreamClient":
        await self.connect()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    # =========================================================================
    # CONNECTION
    # =========================================================================

    async def _run_connection(self, generation: int, url: str, token: str) -> None:
        """Connection task body; every exit path reports a failure."""
        try:
            await self._consume(generation, url, token)
        except TransportError as e:
            self._handle_failure(generation, e)
        except Exception as e:
            logger.exception("[SamplingStream] Unexpected error on sampling stream")
            error = TransportError(f"Unexpected stream error: {e}")
            error.__cause__ = e
            self._handle_failure(generation, error)

    async def _consume(self, generation: int, url: str, token: str) -> None:
        headers = {
            "Accept": "text/event-stream",
            "Cache-Control": "no-cache",
            self.settings.auth_header: token,
        }

        try:
            async with self._get_http_client().stream("GET", url, headers=headers) as response:
                if not response.is_success:
                    raise TransportError(
                        f"Sampling stream returned {response.status_code} {response.reason_phrase}"
                    )

                self._handle_open(generation)

                decoder = SSEDecoder()
                async for line in response.aiter_lines():
                    event = decoder.feed(line)
                    if event is not None:
                        self._handle_event(generation, event)
        except httpx.HTTPError as e:
            raise TransportError(f"Sampling stream connection failed: {e}") from e

        raise TransportError("Sampling stream closed by server")

    def _get_http_client(self) -> httpx.AsyncClient:
        if self._http is None:
            timeout = httpx.Timeout(
                self.settings.request_timeout_seconds,
                read=self.settings.stream_read_timeout_seconds,
            )
            self._http = httpx.AsyncClient(transport=self._transport, timeout=timeout)
        return self._http

    # =========================================================================
    # EVENT HANDLERS
    # =========================================================================

    def _handle_open(self, generation: int) -> None:
        if generation != self._generation:
            return

        logger.info("[SamplingStream] SSE connection established")
        self._update(phase=StreamPhase.CONNECTED, last_error=None, reconnect_attempts=0)

    def _handle_event(self, generation: int, event: ServerSentEvent) -> None:
        if generation != self._generation:
            return

        if event.event != "message":
            logger.debug(f"[SamplingStream] Ignoring '{event.event}' event")
            return

        try:
            request = SamplingRequest.from_json(event.data)
        except ParseError as e:
            # A single malformed event does not cost the connection
            logger.error(f"[SamplingStream] Failed to parse sampling request: {e}")
            self._update(last_error=e)
            return

        logger.info(
            f"[SamplingStream] Received sampling request {request.id} "
            f"from {request.extension_name}"
        )
        self._publish(request)

    def _handle_failure(self, generation: int, error: TransportError) -> None:
        if generation != self._generation:
            return

        logger.error(f"[SamplingStream] SSE connection error: {error}")
        self._connection_task = None

        attempts = self._state.reconnect_attempts
        max_attempts = self.settings.max_reconnect_attempts

        if attempts < max_attempts:
            delay = self.settings.reconnect_delay(attempts)
            logger.info(
                f"[SamplingStream] Reconnecting in {delay:.2f}s "
                f"(attempt {attempts + 1}/{max_attempts})"
            )
            self._reconnect_handle = self._schedule(delay, self._on_reconnect_timer)
            self._update(phase=StreamPhase.FAILED, last_error=error)
        else:
            logger.error("[SamplingStream] Max reconnection attempts reached")
            exhausted = ConnectionExhaustedError(attempts)
            exhausted.__cause__ = error
            self._update(phase=StreamPhase.EXHAUSTED, last_error=exhausted)

    def _on_reconnect_timer(self) -> None:
        self._reconnect_handle = None
        self._update(reconnect_attempts=self._state.reconnect_attempts + 1)
        self._reconnect_task = asyncio.create_task(self._reconnect_from_timer())

    async def _reconnect_from_timer(self) -> None:
        try:
            await self.connect()
        except ConfigurationError:
            # Recorded in state by connect(); not transient, so no retry
            logger.error("[SamplingStream] Automatic reconnect stopped: endpoint unavailable")
        finally:
            if self._reconnect_task is asyncio.current_task():
                self._reconnect_task = None

    # =========================================================================
    # HELPERS
    # =========================================================================

    def _teardown(self) -> int:
        """Drop the pending timer and live connection; return the new generation."""
        if self._reconnect_handle is not None:
            self._reconnect_handle.cancel()
            self._reconnect_handle = None

        if self._connection_task is not None:
            self._connection_task.cancel()
            self._connection_task = None

        self._generation += 1
        return self._generation

    def _schedule(self, delay: float, callback: Callable[[], None]) -> TimerHandle:
        if self._scheduler is not None:
            return self._scheduler(delay, callback)
        return asyncio.get_running_loop().call_later(delay, callback)

    def _publish(self, request: SamplingRequest) -> None:
        previous = self._current_request
        if previous is not None and previous.id != request.id:
            logger.warning(
                f"[SamplingStream] Request {previous.id} superseded by {request.id}"
            )

        self._current_request = request
        self._request_ready.set()
        self._notify()

    def _update(self, **changes: object) -> None:
        new_state = replace(self._state, **changes)
        if new_state == self._state:
            return
        self._state = new_state
        self._notify()

    def _notify(self) -> None:
        for listener in list(self._listeners):
            try:
                listener(self._state, self._current_request)
            except Exception:
                logger.exception("[SamplingStream] State listener failed")
