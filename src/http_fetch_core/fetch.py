"""
Fetch state machine for http_fetch_core.

A fetch resolves one logical resource into either an open byte stream
with its communication trail, or a classified ``FetchError``. It may
take several hops to get there: redirects are followed explicitly,
4xx/5xx statuses are retried against the same URI, and 401 challenges
are handed to an optional auth resolver.

Hops run strictly in sequence and exactly one response stream is open
at any time. Every exit path closes the most recent stream unless it is
the one handed back to the caller.
"""

import asyncio
import errno
import logging
import socket
import time
from dataclasses import dataclass
from typing import (
    Any,
    Awaitable,
    Callable,
    Iterable,
    Iterator,
    Optional,
    Tuple,
    Union,
)
from urllib.parse import urldefrag, urljoin, urlsplit

from .auth import AuthResolver
from .config import Compression, FetchConfig, FetchState
from .exceptions import (
    AuthenticationError,
    AuthResolutionError,
    ClientOrServerError,
    FatalTransportError,
    HeaderParseError,
    HTTPCoreError,
    MalformedHeaderError,
    RedirectLimitExceeded,
    RedirectLoopError,
    TransientCondition,
    TransientTransportError,
)
from .headers import parse_headers
from .http_primitives import RawResponse, RequestOptions
from .status import StatusClass, classify_status, is_auth_error, is_http_scheme, status_label
from .streams import StreamInterface, decompress
from .trail import CommunicationTrail, HopMetadata
from .transport import HTTP11Transport, Transport

logger = logging.getLogger(__name__)

Consumer = Callable[[StreamInterface, CommunicationTrail], Awaitable[Any]]

# errno values that identify a transient condition on a plain OSError
_TRANSIENT_ERRNOS = {
    errno.ECONNRESET: TransientCondition.CONNECTION_RESET,
    errno.ETIMEDOUT: TransientCondition.TIMED_OUT,
    errno.EAGAIN: TransientCondition.TRY_AGAIN,
}


def _exception_chain(exc: BaseException) -> Iterator[BaseException]:
    seen = set()
    pending = [exc]
    while pending:
        current = pending.pop(0)
        if current is None or id(current) in seen:
            continue
        seen.add(id(current))
        yield current
        pending.extend(
            [getattr(current, "cause", None), current.__cause__, current.__context__]
        )


def classify_transport_exception(exc: BaseException) -> Optional[TransientCondition]:
    """
    Recognize transient transport conditions.

    The exception and everything it wraps are inspected. Returns None
    when no transient condition is found, i.e. the failure is fatal.
    """
    for error in _exception_chain(exc):
        if isinstance(error, socket.gaierror):
            if error.errno == getattr(socket, "EAI_AGAIN", None):
                return TransientCondition.TRY_AGAIN
            continue
        if isinstance(error, ConnectionResetError):
            return TransientCondition.CONNECTION_RESET
        if isinstance(error, (asyncio.TimeoutError, TimeoutError)):
            return TransientCondition.TIMED_OUT
        if isinstance(error, OSError) and error.errno in _TRANSIENT_ERRNOS:
            return _TRANSIENT_ERRNOS[error.errno]
    return None


def _check_uri(uri: str) -> None:
    parts = urlsplit(uri)
    if not parts.scheme or not parts.netloc:
        raise ValueError(f"URI must be absolute: {uri!r}")
    if not is_http_scheme(parts.scheme):
        raise ValueError(f"Unsupported URI scheme {parts.scheme!r} in {uri!r}")


async def _ensure_closed(stream: StreamInterface) -> None:
    if not stream.closed:
        await stream.aclose()


@dataclass(frozen=True)
class FetchResult:
    """
    Successful outcome of a fetch.

    Usable as an async context manager that closes the stream on exit.
    """

    stream: StreamInterface
    trail: CommunicationTrail
    base_uri: str
    redirect_count: int = 0
    retry_count: int = 0
    visited: Tuple[str, ...] = ()

    @property
    def status(self) -> int:
        return self.trail.last.status

    @property
    def uri(self) -> str:
        """The URI the stream was finally read from."""
        return self.trail.last.uri

    def header(self, name: str) -> Tuple[str, ...]:
        return self.trail.header(name)

    async def aread(self) -> bytes:
        return await self.stream.aread()

    async def aclose(self) -> None:
        await _ensure_closed(self.stream)

    async def __aenter__(self) -> "FetchResult":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.aclose()


# Next hop to take: the URI and the options to request it with
_NextHop = Tuple[str, RequestOptions]


class Fetcher:
    """
    Drives the hop sequence of a fetch.

    A Fetcher holds no per-fetch state, so one instance may serve any
    number of concurrent fetches.
    """

    ERROR_BODY_LIMIT = 4096

    def __init__(
        self,
        transport: Optional[Transport] = None,
        auth_resolver: Optional[AuthResolver] = None,
        config: Optional[FetchConfig] = None,
    ) -> None:
        """
        Initialize the fetcher.

        Args:
            transport: Performs single round trips; defaults to HTTP11Transport
            auth_resolver: Consulted when a hop answers 401
            config: Default configuration for fetches that pass none
        """
        self._transport = transport or HTTP11Transport()
        self._auth_resolver = auth_resolver
        self._config = config or FetchConfig()

    async def fetch(
        self,
        uri: str,
        config: Optional[FetchConfig] = None,
        options: Optional[RequestOptions] = None,
    ) -> FetchResult:
        """
        Open ``uri`` for reading.

        Args:
            uri: Absolute http or https URI
            config: Per-call configuration, defaults to the fetcher's
            options: Request options for the first hop

        Returns:
            The open (possibly decoded) stream with the frozen trail

        Raises:
            ValueError: If the URI is not an absolute http(s) URI
            AuthenticationError: A 401 persisted after resolution and retries
            ClientOrServerError: A 4xx/5xx persisted after all retries
            RedirectLoopError: A redirect target was visited before
            RedirectLimitExceeded: More redirects than ``max_redirects``
            TransientTransportError: A recognized transient transport failure
            FatalTransportError: Any other transport failure
        """
        _check_uri(uri)
        config = config or self._config
        options = options or RequestOptions()
        state = FetchState.start(uri)
        trail = CommunicationTrail()
        current = uri

        while True:
            raw, elapsed = await self._open(current, options, trail)
            try:
                outcome = await self._dispatch(
                    current, raw, elapsed, options, config, state, trail
                )
            except BaseException:
                await _ensure_closed(raw.stream)
                raise

            if isinstance(outcome, FetchResult):
                return outcome
            current, options = outcome

    async def _open(
        self, uri: str, options: RequestOptions, trail: CommunicationTrail
    ) -> Tuple[RawResponse, float]:
        start_time = time.time()
        try:
            raw = await self._transport.open_once(uri, options.for_hop())
        except Exception as e:
            duration = time.time() - start_time
            trail.freeze()
            condition = classify_transport_exception(e)
            if condition is not None:
                logger.warning(
                    f"Transient transport failure for {uri}: {condition.value} "
                    f"({duration:.3f}s)"
                )
                raise TransientTransportError(uri, condition, trail, cause=e) from e
            logger.error(f"Transport failure for {uri}: {e!r} ({duration:.3f}s)")
            raise FatalTransportError(uri, str(e) or type(e).__name__, trail, cause=e) from e
        return raw, time.time() - start_time

    async def _dispatch(
        self,
        uri: str,
        raw: RawResponse,
        elapsed: float,
        options: RequestOptions,
        config: FetchConfig,
        state: FetchState,
        trail: CommunicationTrail,
    ) -> Union[FetchResult, _NextHop]:
        try:
            headers = parse_headers(raw.header_lines, strict=config.parse_headers)
        except HeaderParseError as e:
            raise MalformedHeaderError(uri, trail.freeze(), e) from e

        hop = HopMetadata.create(
            uri=uri,
            status=raw.status,
            headers=headers,
            version=raw.version,
            elapsed=elapsed,
        )
        trail.append(hop)
        logger.debug(
            f"Hop {len(trail)}: {uri} -> {hop.status} "
            f"HTTP/{hop.version[0]}.{hop.version[1]} ({elapsed:.3f}s)"
        )

        try:
            status_class = classify_status(raw.status)
        except ValueError as e:
            raise FatalTransportError(uri, str(e), trail.freeze(), cause=e) from e

        stream: Optional[StreamInterface] = raw.stream

        if (
            status_class is StatusClass.AUTH_ERROR
            and self._auth_resolver is not None
            and uri not in state.authenticated
        ):
            await raw.stream.aclose()
            stream = None
            state.authenticated.add(uri)
            try:
                revised = await self._auth_resolver.resolve(uri, hop.headers, options)
            except AuthResolutionError as e:
                logger.info(f"Could not resolve authentication challenge for {uri}: {e}")
            else:
                logger.debug(f"Retrying {uri} with resolved credentials")
                return uri, revised

        if status_class.is_error:
            await self._log_error_response(hop, stream)
            if stream is not None:
                await stream.aclose()
            state.retry_count += 1
            if state.retry_count > config.max_retries:
                trail.freeze()
                if is_auth_error(hop.status):
                    raise AuthenticationError(uri, hop.status, trail)
                raise ClientOrServerError(uri, hop.status, trail)
            logger.info(
                f"Retrying {uri} after HTTP {hop.status} "
                f"(retry {state.retry_count} of {config.max_retries})"
            )
            return uri, options

        if status_class is StatusClass.REDIRECT:
            await raw.stream.aclose()
            return self._follow_redirect(uri, hop, options, config, state, trail)

        return self._succeed(uri, hop, raw.stream, config, state, trail)

    def _follow_redirect(
        self,
        uri: str,
        hop: HopMetadata,
        options: RequestOptions,
        config: FetchConfig,
        state: FetchState,
        trail: CommunicationTrail,
    ) -> _NextHop:
        locations = hop.header("location")
        if not locations:
            raise FatalTransportError(
                uri, f"HTTP {hop.status} without Location header", trail.freeze()
            )

        target = urljoin(uri, locations[0])
        state.record_redirect(target)
        if state.redirect_limit_exceeded(config.max_redirects):
            raise RedirectLimitExceeded(target, config.max_redirects, trail.freeze())
        if state.is_redirect_loop(target):
            raise RedirectLoopError(target, trail.freeze())
        if not is_http_scheme(urlsplit(target).scheme):
            raise FatalTransportError(
                target, "redirect to unsupported scheme", trail.freeze()
            )

        logger.debug(f"Redirect {state.redirect_count}: {uri} -> {target} ({hop.status})")
        return target, options.for_redirect(hop.status, uri, target)

    def _succeed(
        self,
        uri: str,
        hop: HopMetadata,
        stream: StreamInterface,
        config: FetchConfig,
        state: FetchState,
        trail: CommunicationTrail,
    ) -> FetchResult:
        compression = self._select_compression(config, hop)
        if compression is not Compression.NONE:
            stream = decompress(stream, compression)

        trail.attach_stream(stream)
        trail.freeze()
        base_uri = config.base_uri or urldefrag(state.traversal[0]).url
        return FetchResult(
            stream=stream,
            trail=trail,
            base_uri=base_uri,
            redirect_count=state.redirect_count,
            retry_count=state.retry_count,
            visited=state.traversal,
        )

    def _select_compression(self, config: FetchConfig, hop: HopMetadata) -> Compression:
        if config.compression is not Compression.NONE:
            return config.compression
        encodings = hop.header("content-encoding")
        if not encodings:
            return Compression.NONE
        try:
            return Compression.from_value(encodings[-1])
        except ValueError:
            logger.debug(f"Leaving unsupported content encoding {encodings[-1]!r} undecoded")
            return Compression.NONE

    async def _log_error_response(
        self, hop: HopMetadata, stream: Optional[StreamInterface]
    ) -> None:
        label = status_label(hop.status) or "No Label"
        logger.warning(f"HTTP ERROR: {hop.status} ({label}) for {hop.uri}")
        if not logger.isEnabledFor(logging.DEBUG):
            return

        for name, values in hop.headers.items():
            logger.debug(f"  {name}: {', '.join(values)}")
        if stream is None:
            return

        chunks = []
        size = 0
        try:
            async for chunk in stream:
                chunks.append(chunk)
                size += len(chunk)
                if size >= self.ERROR_BODY_LIMIT:
                    break
        except (HTTPCoreError, OSError) as e:
            logger.debug(f"Could not read error response body: {e}")
            return
        content = b"".join(chunks)[:self.ERROR_BODY_LIMIT]
        logger.debug(f"Message content:\n{content.decode('utf-8', errors='replace')}")


async def fetch(
    uri: str,
    config: Optional[FetchConfig] = None,
    *,
    transport: Optional[Transport] = None,
    auth_resolver: Optional[AuthResolver] = None,
    options: Optional[RequestOptions] = None,
) -> FetchResult:
    """Open ``uri`` for reading with a one-off Fetcher."""
    fetcher = Fetcher(transport=transport, auth_resolver=auth_resolver)
    return await fetcher.fetch(uri, config=config, options=options)


async def _log_response(stream: StreamInterface, trail: CommunicationTrail) -> bytes:
    for hop in trail:
        logger.info(f"{hop.status} {hop.uri} ({hop.elapsed:.3f}s)")
    body = await stream.aread()
    logger.info(body.decode("utf-8", errors="replace"))
    return body


async def _call_on_stream(
    uri: str,
    consumer: Optional[Consumer],
    config: Optional[FetchConfig],
    options: RequestOptions,
    transport: Optional[Transport],
    auth_resolver: Optional[AuthResolver],
) -> Any:
    result = await fetch(
        uri,
        config,
        transport=transport,
        auth_resolver=auth_resolver,
        options=options,
    )
    async with result:
        return await (consumer or _log_response)(result.stream, result.trail)


async def http_get(
    uri: str,
    consumer: Optional[Consumer] = None,
    config: Optional[FetchConfig] = None,
    *,
    headers: Iterable[Tuple[str, str]] = (),
    transport: Optional[Transport] = None,
    auth_resolver: Optional[AuthResolver] = None,
) -> Any:
    """
    GET ``uri`` and hand the open stream to ``consumer``.

    The consumer is awaited with ``(stream, trail)`` and its result is
    returned; the stream is closed afterwards. Without a consumer the
    trail and body are logged and the body is returned.
    """
    options = RequestOptions(method="GET", headers=tuple(headers))
    return await _call_on_stream(uri, consumer, config, options, transport, auth_resolver)


async def http_post(
    uri: str,
    data: Union[bytes, str],
    consumer: Optional[Consumer] = None,
    config: Optional[FetchConfig] = None,
    *,
    content_type: str = "application/octet-stream",
    headers: Iterable[Tuple[str, str]] = (),
    transport: Optional[Transport] = None,
    auth_resolver: Optional[AuthResolver] = None,
) -> Any:
    """POST ``data`` to ``uri``; otherwise behaves like :func:`http_get`."""
    if isinstance(data, str):
        data = data.encode("utf-8")
    options = RequestOptions(method="POST", headers=tuple(headers), body=data)
    options = options.with_header("Content-Type", content_type)
    return await _call_on_stream(uri, consumer, config, options, transport, auth_resolver)
