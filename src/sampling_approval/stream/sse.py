"""Server-Sent Events framing for the sampling stream."""

from dataclasses import dataclass


@dataclass
class ServerSentEvent:
    """A single dispatched SSE event.

    Attributes:
        data: Event payload (data lines joined with newlines)
        event: Event type, "message" when the server sent none
        id: Last event id seen on the stream
        retry: Reconnection time hint in milliseconds, if sent
    """

    data: str
    event: str = "message"
    id: str | None = None
    retry: int | None = None


class SSEDecoder:
    """Incremental SSE decoder fed one line at a time.

    Lines must arrive without their terminator. A blank line dispatches the
    buffered event; an event cut off by end of stream is never dispatched.

    Examples:
        >>> decoder = SSEDecoder()
        >>> decoder.feed('data: {"id": "r1"}') is None
        True
        >>> decoder.feed("").data
        '{"id": "r1"}'
    """

    def __init__(self) -> None:
        self._data: list[str] = []
        self._event: str | None = None
        self._last_event_id: str | None = None
        self._retry: int | None = None

    @property
    def last_event_id(self) -> str | None:
        return self._last_event_id

    def feed(self, line: str) -> ServerSentEvent | None:
        """Process one line.

        Args:
            line: Line from the stream, without line terminator

        Returns:
            ServerSentEvent when the line completes an event, None otherwise
        """
        line = line.rstrip("\r\n")

        if not line:
            return self._dispatch()

        if line.startswith(":"):
            # Comment / keepalive
            return None

        name, sep, value = line.partition(":")
        if sep and value.startswith(" "):
            value = value[1:]

        if name == "data":
            self._data.append(value)
        elif name == "event":
            self._event = value
        elif name == "id":
            if "\0" not in value:
                self._last_event_id = value
        elif name == "retry":
            if value.isascii() and value.isdigit():
                self._retry = int(value)

        return None

    def _dispatch(self) -> ServerSentEvent | None:
        if not self._data:
            self._event = None
            return None

        event = ServerSentEvent(
            data="\n".join(self._data),
            event=self._event or "message",
            id=self._last_event_id,
            retry=self._retry,
        )
        self._data = []
        self._event = None
        return event
