"""
Scripted transport for testing.

``MockTransport`` answers round trips from a queue of canned replies,
records every request it receives and keeps the streams it handed out
so tests can check that none is left open.
"""

from collections import deque
from dataclasses import dataclass, field
from typing import Deque, Iterable, List, Optional, Tuple, Union

from .http_primitives import RawResponse, RequestOptions
from .streams import ByteStream
from .transport import Transport


@dataclass(frozen=True)
class MockReply:
    """One canned response."""

    status: int
    header_lines: Tuple[bytes, ...] = ()
    body: bytes = b""
    version: Tuple[int, int] = (1, 1)

    @classmethod
    def create(
        cls,
        status: int,
        headers: Optional[Iterable[Tuple[str, str]]] = None,
        body: Union[bytes, str] = b"",
        version: Tuple[int, int] = (1, 1),
    ) -> "MockReply":
        lines = tuple(f"{name}: {value}".encode("latin-1") for name, value in headers or ())
        if isinstance(body, str):
            body = body.encode("utf-8")
        return cls(status=status, header_lines=lines, body=body, version=version)

    @classmethod
    def redirect(cls, location: str, status: int = 302) -> "MockReply":
        return cls.create(status, headers=[("Location", location)])


@dataclass(frozen=True)
class RecordedRequest:
    uri: str
    options: RequestOptions


class MockTransport(Transport):
    """
    Transport that plays back queued replies in order.

    Queuing an exception makes the corresponding round trip raise it.
    """

    def __init__(self, replies: Iterable[Union[MockReply, BaseException]] = ()) -> None:
        self._replies: Deque[Union[MockReply, BaseException]] = deque(replies)
        self.requests: List[RecordedRequest] = []
        self.streams: List[ByteStream] = []

    def add(self, reply: Union[MockReply, BaseException]) -> "MockTransport":
        self._replies.append(reply)
        return self

    async def open_once(self, uri: str, options: RequestOptions) -> RawResponse:
        self.requests.append(RecordedRequest(uri=uri, options=options))
        if not self._replies:
            raise AssertionError(f"Unexpected request to {uri}: no reply queued")

        reply = self._replies.popleft()
        if isinstance(reply, BaseException):
            raise reply

        stream = ByteStream(reply.body)
        self.streams.append(stream)
        return RawResponse(
            status=reply.status,
            header_lines=reply.header_lines,
            version=reply.version,
            stream=stream,
        )

    @property
    def open_streams(self) -> List[ByteStream]:
        return [stream for stream in self.streams if not stream.closed]

    @property
    def pending(self) -> int:
        return len(self._replies)
