"""Lazy, cursor-paginated streams over Manifold list endpoints.

Manifold list endpoints (``/markets``, ``/users``, ``/bets``) return a JSON array
ordered newest first and accept a ``before=<id>`` parameter to continue after
the item with that id. :class:`PaginatedStream` turns those page requests into
one iterator of typed items:

* a page is fetched only when the items of the previous page have been consumed,
* the next cursor is the ``id`` of the last *raw* element of the page,
* an empty page ends the stream cleanly,
* any failure is raised once from ``next()`` and ends the stream for good.
"""

from __future__ import annotations

import enum
import itertools
import logging
from collections import deque
from collections.abc import Callable, Iterable, Iterator, Mapping, Sequence
from dataclasses import dataclass
from typing import Any, Generic, Protocol, TypeVar

import requests
from pydantic import TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from manifold.errors import (
    EXPECTED_ARRAY,
    MISSING_ID,
    DecodeError,
    ManifoldError,
    OtherError,
    SchemaViolationError,
    TransportError,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

CURSOR_PARAM = "before"
ID_FIELD = "id"

Params = tuple[tuple[str, str], ...]


class PageTransport(Protocol):
    """Anything able to GET one page: ``fetch(path, params) -> decoded JSON``.

    Implementations raise :class:`TransportError` for network and HTTP failures.
    """

    def __call__(self, path: str, params: Sequence[tuple[str, str]]) -> Any: ...


class Phase(enum.Enum):
    START = "start"
    HAS_CURSOR = "has_cursor"
    DONE = "done"


@dataclass(frozen=True)
class StreamState:
    phase: Phase = Phase.START
    cursor: str | None = None

    @classmethod
    def initial(cls, before: str | None = None) -> StreamState:
        if before is None:
            return cls(Phase.START)
        return cls(Phase.HAS_CURSOR, before)

    @classmethod
    def done(cls) -> StreamState:
        return cls(Phase.DONE)

    @property
    def is_done(self) -> bool:
        return self.phase is Phase.DONE

    def request_params(self, base: Params) -> list[tuple[str, str]]:
        """Return a fresh parameter list for the next request."""
        params = list(base)
        if self.phase is Phase.HAS_CURSOR:
            params.append((CURSOR_PARAM, self.cursor))
        return params


def _format_value(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def normalize_params(
    params: Mapping[str, Any] | Iterable[tuple[str, Any]] | None,
) -> Params:
    """Freeze caller parameters into an ordered tuple of string pairs.

    ``None`` values are dropped. The reserved cursor name is rejected because
    the stream owns it.
    """
    if params is None:
        return ()
    pairs = params.items() if isinstance(params, Mapping) else params
    frozen: list[tuple[str, str]] = []
    for name, value in pairs:
        if name == CURSOR_PARAM:
            raise ValueError(
                f"'{CURSOR_PARAM}' is reserved for the pagination cursor; "
                "pass it as the `before` argument instead"
            )
        if value is None:
            continue
        frozen.append((str(name), _format_value(value)))
    return tuple(frozen)


def last_item_id(page: list[Any]) -> str:
    """Return the string ``id`` of the last raw element of a non-empty page."""
    last = page[-1]
    item_id = last.get(ID_FIELD) if isinstance(last, dict) else None
    if not isinstance(item_id, str):
        raise SchemaViolationError(MISSING_ID, value=last, detail="last item has no string 'id'")
    return item_id


def make_decoder(item_type: Any) -> Callable[[Any], Any]:
    """Build a function validating one raw JSON element as ``item_type``.

    Validation errors and ``TypeError`` raised by custom validators both become
    a :class:`DecodeError` carrying the raw element.
    """
    adapter = TypeAdapter(item_type)
    type_name = getattr(item_type, "__name__", repr(item_type))

    def decode(raw: Any) -> Any:
        try:
            return adapter.validate_python(raw)
        except PydanticValidationError as e:
            raise DecodeError(
                f"Failed to decode item as {type_name}: {e.error_count()} validation error(s)",
                value=raw,
                original_error=e,
            ) from e
        except TypeError as e:
            raise DecodeError(
                f"Failed to decode item as {type_name}: {e}", value=raw, original_error=e
            ) from e

    return decode


def advance(
    state: StreamState, page: Any, decode: Callable[[Any], T]
) -> tuple[StreamState, list[T]]:
    """Apply one fetched page to ``state``.

    Returns the new state and the decoded items of the page. The whole page is
    rejected if a single element fails to decode, so no item of a bad page is
    ever handed out.

    Raises:
        SchemaViolationError: the page is not an array, or its last element has no id
        DecodeError: an element does not validate as the requested type
    """
    if state.is_done:
        raise ValueError("Cannot advance a finished stream")
    if not isinstance(page, list):
        raise SchemaViolationError(
            EXPECTED_ARRAY, value=page, detail=f"got {type(page).__name__}"
        )
    if not page:
        return StreamState.done(), []

    cursor = last_item_id(page)
    items = [decode(raw) for raw in page]
    return StreamState(Phase.HAS_CURSOR, cursor), items


class PaginatedStream(Generic[T]):
    """Single-pass iterator over every item of a cursor-paginated endpoint.

    Memory is bounded to one buffered page. The stream is not restartable:
    build a new one (optionally with ``before=`` set to the last id you
    processed) to read again or to resume after an error.
    """

    def __init__(
        self,
        fetch_page: PageTransport,
        path: str,
        params: Mapping[str, Any] | Iterable[tuple[str, Any]] | None = None,
        item_type: type[T] | Any = dict[str, Any],
        before: str | None = None,
    ) -> None:
        self._fetch_page = fetch_page
        self.path = path
        self.params = normalize_params(params)
        self.item_type = item_type
        self._decode = make_decoder(item_type)
        self._state = StreamState.initial(before)
        self._buffer: deque[T] = deque()
        self._last_cursor = before
        self.pages_fetched = 0

    @property
    def cursor(self) -> str | None:
        """Id of the last raw item of the most recent non-empty page.

        Kept after the stream ends so it can seed a resumed stream.
        """
        return self._last_cursor

    @property
    def exhausted(self) -> bool:
        return self._state.is_done and not self._buffer

    def __iter__(self) -> PaginatedStream[T]:
        return self

    def __next__(self) -> T:
        while not self._buffer:
            if self._state.is_done:
                raise StopIteration
            self._fetch_next_page()
        return self._buffer.popleft()

    def _fetch_next_page(self) -> None:
        params = self._state.request_params(self.params)
        logger.debug(f"Fetching page {self.pages_fetched + 1} of {self.path} params={params}")
        try:
            page = self._fetch_page(self.path, params)
            self.pages_fetched += 1
            self._state, items = advance(self._state, page, self._decode)
        except ManifoldError as e:
            self._state = StreamState.done()
            logger.warning(f"Stream {self.path} stopped after {self.pages_fetched} page(s): {e}")
            raise
        except requests.RequestException as e:
            self._state = StreamState.done()
            logger.warning(f"Stream {self.path} stopped on transport failure: {e}")
            raise TransportError(f"Request failed: {e}", original_error=e) from e
        except Exception as e:
            self._state = StreamState.done()
            logger.warning(f"Stream {self.path} stopped on unexpected failure: {e!r}")
            raise OtherError(f"Page fetch failed: {e}", original_error=e) from e

        if self._state.cursor is not None:
            self._last_cursor = self._state.cursor
        if not items:
            logger.debug(f"Stream {self.path} reached end after {self.pages_fetched} page(s)")
        self._buffer.extend(items)

    def __repr__(self) -> str:
        return (
            f"PaginatedStream(path={self.path!r}, phase={self._state.phase.value}, "
            f"cursor={self.cursor!r}, buffered={len(self._buffer)})"
        )


def take(stream: Iterable[T], n: int) -> Iterator[T]:
    """Lazily yield at most ``n`` items; no page beyond the ``n``-th item is fetched."""
    if n < 0:
        raise ValueError("n must be non-negative")
    return itertools.islice(stream, n)


def collect_until_error(
    stream: Iterable[T], limit: int | None = None
) -> tuple[list[T], ManifoldError | None]:
    """Drain a stream, returning the items read and the terminal error, if any.

    A clean end of data returns ``(items, None)``.
    """
    items: list[T] = []
    source = stream if limit is None else take(stream, limit)
    try:
        for item in source:
            items.append(item)
    except ManifoldError as e:
        return items, e
    return items, None
