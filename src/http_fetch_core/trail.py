"""
Communication trail for http_fetch_core.

Every transport round trip of a fetch produces one immutable
``HopMetadata`` record. The records are collected, oldest first, in a
``CommunicationTrail`` that stays available to the caller on success
and on every kind of failure.
"""

from dataclasses import dataclass, field, replace
from types import MappingProxyType
from typing import Any, Iterator, Mapping, Optional, Tuple, Union, overload

from .headers import GroupedHeaders
from .status import StatusClass, classify_status
from .streams import StreamInterface

Version = Tuple[int, int]


@dataclass(frozen=True)
class HopMetadata:
    """
    Immutable record of one transport round trip.

    Only the final hop of a successful fetch carries a stream.
    """

    uri: str
    status: int
    headers: Mapping[str, Tuple[str, ...]]
    version: Version = (1, 1)
    elapsed: float = 0.0
    stream: Optional[StreamInterface] = field(default=None, compare=False)

    @classmethod
    def create(
        cls,
        uri: str,
        status: int,
        headers: Optional[GroupedHeaders] = None,
        version: Version = (1, 1),
        elapsed: float = 0.0,
    ) -> "HopMetadata":
        """Create a hop record, freezing the header mapping."""
        frozen = MappingProxyType(dict(headers or {}))
        return cls(uri=uri, status=status, headers=frozen, version=version, elapsed=elapsed)

    def with_stream(self, stream: StreamInterface) -> "HopMetadata":
        return replace(self, stream=stream)

    @property
    def status_class(self) -> StatusClass:
        return classify_status(self.status)

    def header(self, name: str) -> Tuple[str, ...]:
        """All values received for a header (case-insensitive), possibly empty."""
        return self.headers.get(name.lower(), ())

    def get(self, key: str) -> Any:
        """
        Look up a metadata field by name.

        Raises:
            KeyError: If the key is not a metadata field
        """
        fields = {
            "uri": self.uri,
            "status": self.status,
            "headers": self.headers,
            "version": {"major": self.version[0], "minor": self.version[1]},
            "time": self.elapsed,
            "elapsed": self.elapsed,
        }
        return fields[key]


class CommunicationTrail:
    """
    Ordered, append-only record of all hops of one fetch.

    The trail is frozen when the fetch completes; afterwards it
    can be read but not extended.
    """

    def __init__(self) -> None:
        self._hops: list = []
        self._frozen = False

    def append(self, hop: HopMetadata) -> None:
        if self._frozen:
            raise RuntimeError("Cannot append to a frozen communication trail")
        self._hops.append(hop)

    def attach_stream(self, stream: StreamInterface) -> None:
        """Record the body stream delivered with the most recent hop."""
        if self._frozen:
            raise RuntimeError("Cannot modify a frozen communication trail")
        if not self._hops:
            raise RuntimeError("No hop to attach a stream to")
        self._hops[-1] = self._hops[-1].with_stream(stream)

    def freeze(self) -> "CommunicationTrail":
        self._frozen = True
        return self

    @property
    def frozen(self) -> bool:
        return self._frozen

    @property
    def last(self) -> HopMetadata:
        """
        The most recent hop.

        Raises:
            IndexError: If no hop has been recorded
        """
        return self._hops[-1]

    @property
    def uris(self) -> Tuple[str, ...]:
        return tuple(hop.uri for hop in self._hops)

    @property
    def statuses(self) -> Tuple[int, ...]:
        return tuple(hop.status for hop in self._hops)

    def get(self, key: str) -> Any:
        """Metadata field of the final hop."""
        return self.last.get(key)

    def header(self, name: str) -> Tuple[str, ...]:
        """Header values of the final hop."""
        return self.last.header(name)

    def __len__(self) -> int:
        return len(self._hops)

    def __iter__(self) -> Iterator[HopMetadata]:
        return iter(tuple(self._hops))

    @overload
    def __getitem__(self, index: int) -> HopMetadata: ...

    @overload
    def __getitem__(self, index: slice) -> Tuple[HopMetadata, ...]: ...

    def __getitem__(self, index: Union[int, slice]) -> Union[HopMetadata, Tuple[HopMetadata, ...]]:
        if isinstance(index, slice):
            return tuple(self._hops[index])
        return self._hops[index]

    def __repr__(self) -> str:
        hops = ", ".join(f"{hop.status} {hop.uri}" for hop in self._hops)
        return f"<CommunicationTrail [{hops}]>"
