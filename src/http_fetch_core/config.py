"""
Fetch configuration and per-fetch bookkeeping.

``FetchConfig`` is created once per top-level fetch and never mutated.
``FetchState`` is owned by a single in-flight fetch and passed explicitly
through the hop sequence.
"""

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Set, Tuple, Union


class Compression(Enum):
    """Content codings understood by the decompression wrapper."""
    NONE = "none"
    DEFLATE = "deflate"
    GZIP = "gzip"

    @classmethod
    def from_value(cls, value: Union[str, "Compression", None]) -> "Compression":
        """
        Convert an option or a Content-Encoding value to a Compression.

        Raises:
            ValueError: If the coding is not supported
        """
        if value is None:
            return cls.NONE
        if isinstance(value, cls):
            return value
        normalized = value.strip().lower()
        if normalized in ("", "identity"):
            return cls.NONE
        if normalized == "x-gzip":
            return cls.GZIP
        try:
            return cls(normalized)
        except ValueError:
            raise ValueError(f"Unsupported compression: {value!r}") from None


@dataclass(frozen=True)
class FetchConfig:
    """
    Immutable configuration for one top-level fetch.

    ``max_redirects`` of None means redirects are unbounded.
    ``max_retries`` is the number of extra attempts made after a
    4xx/5xx response, so a fetch makes at most ``max_retries + 1``
    attempts against the same URI.
    """

    DEFAULT_MAX_REDIRECTS = 5
    DEFAULT_MAX_RETRIES = 1

    max_redirects: Optional[int] = DEFAULT_MAX_REDIRECTS
    max_retries: int = DEFAULT_MAX_RETRIES
    parse_headers: bool = False
    compression: Compression = Compression.NONE
    base_uri: Optional[str] = None

    def __post_init__(self) -> None:
        if self.max_redirects is not None:
            if not isinstance(self.max_redirects, int) or self.max_redirects < 0:
                raise ValueError("max_redirects must be a non-negative int or None")
        if not isinstance(self.max_retries, int) or self.max_retries < 0:
            raise ValueError("max_retries must be a non-negative int")
        if not isinstance(self.compression, Compression):
            raise ValueError("compression must be a Compression member")

    @classmethod
    def create(
        cls,
        max_redirects: Union[int, float, None] = DEFAULT_MAX_REDIRECTS,
        max_retries: int = DEFAULT_MAX_RETRIES,
        parse_headers: bool = False,
        compression: Union[str, Compression, None] = None,
        base_uri: Optional[str] = None,
    ) -> "FetchConfig":
        """
        Create a FetchConfig with proper type conversion.

        Args:
            max_redirects: Redirect bound; None or ``math.inf`` for unbounded
            max_retries: Retries allowed after error statuses
            parse_headers: Use the strict header grammar
            compression: ``none``, ``deflate`` or ``gzip``
            base_uri: Override for the base URI reported with the result
        """
        if isinstance(max_redirects, float):
            if not math.isinf(max_redirects):
                raise ValueError("max_redirects must be an int, None or math.inf")
            max_redirects = None
        return cls(
            max_redirects=max_redirects,
            max_retries=max_retries,
            parse_headers=parse_headers,
            compression=Compression.from_value(compression),
            base_uri=base_uri,
        )

    @property
    def unbounded_redirects(self) -> bool:
        return self.max_redirects is None


@dataclass
class FetchState:
    """
    Mutable bookkeeping for the hops of one fetch.

    ``visited`` is ordered most recent first and is seeded with the
    URI the fetch started from, so ``redirect_count`` always equals
    ``len(visited) - 1``.
    """

    visited: List[str]
    redirect_count: int = 0
    retry_count: int = 0
    authenticated: Set[str] = field(default_factory=set)

    @classmethod
    def start(cls, uri: str) -> "FetchState":
        return cls(visited=[uri])

    @property
    def current_uri(self) -> str:
        return self.visited[0]

    @property
    def traversal(self) -> Tuple[str, ...]:
        """Visited URIs in the order they were requested."""
        return tuple(reversed(self.visited))

    def record_redirect(self, uri: str) -> None:
        self.visited.insert(0, uri)
        self.redirect_count += 1

    def redirect_limit_exceeded(self, max_redirects: Optional[int]) -> bool:
        if max_redirects is None:
            return False
        return len(self.visited) - 1 > max_redirects

    def is_redirect_loop(self, uri: str) -> bool:
        return self.visited.count(uri) >= 2
