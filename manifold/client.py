from __future__ import annotations

import logging
import os
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass
from typing import Any, TypeVar

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from .auth import API_URL, ManifoldAuthorization, build_auth_headers
from .errors import DecodeError, TransportError
from .streams import PaginatedStream
from .types import Bet, LiteMarket, User
from .utils.env import load_env_file_if_present

logger = logging.getLogger(__name__)

T = TypeVar("T")


RETRY_STATUSES = (429, 500, 502, 503, 504)


def _retry_policy(total: int, backoff: float) -> Retry:
    # GET only: list pages are the sole requests this client makes.
    return Retry(
        total=total,
        connect=total,
        read=total,
        status=total,
        backoff_factor=backoff,
        status_forcelist=RETRY_STATUSES,
        allowed_methods=frozenset({"GET"}),
        respect_retry_after_header=True,
        raise_on_status=False,
    )


def _session_with_retries(total: int = 0, backoff: float = 0.5) -> requests.Session:
    adapter = HTTPAdapter(max_retries=_retry_policy(total, backoff))
    sess = requests.Session()
    for prefix in ("https://", "http://"):
        sess.mount(prefix, adapter)
    return sess


@dataclass
class ManifoldClient:
    auth: ManifoldAuthorization | None = None
    api_url: str = API_URL
    timeout: float = 30.0
    retries: int = 0

    def __post_init__(self) -> None:
        self.api_url = self.api_url.rstrip("/")
        self.session = _session_with_retries(total=self.retries)
        self.headers = build_auth_headers(self.auth)

    @classmethod
    def from_api_key(cls, key: str, **kwargs: Any) -> ManifoldClient:
        return cls(auth=ManifoldAuthorization.api_key(key), **kwargs)

    @classmethod
    def from_env(cls, dotenv: bool = True) -> ManifoldClient:
        """Build a client from ``MANIFOLD_API_KEY``, ``MANIFOLD_API_URL`` and ``MANIFOLD_TIMEOUT``.

        The API key is optional: list endpoints can be read anonymously.
        """
        if dotenv:
            load_env_file_if_present()
        key = os.getenv("MANIFOLD_API_KEY")
        return cls(
            auth=ManifoldAuthorization.api_key(key) if key else None,
            api_url=os.getenv("MANIFOLD_API_URL", API_URL),
            timeout=float(os.getenv("MANIFOLD_TIMEOUT", "30")),
        )

    def get(self, path: str, params: Sequence[tuple[str, str]] | None = None) -> requests.Response:
        url = f"{self.api_url}{path}"
        res = self.session.get(url, params=params or [], headers=self.headers, timeout=self.timeout)
        return res

    def get_page(self, path: str, params: Sequence[tuple[str, str]] | None = None) -> Any:
        """GET one page and return its decoded JSON body.

        Raises:
            TransportError: network failure, timeout or non-2xx status
            DecodeError: the body is not valid JSON
        """
        url = f"{self.api_url}{path}"
        try:
            res = self.get(path, params=params)
        except requests.RequestException as e:
            raise TransportError(f"Request to {url} failed: {e}", url=url, original_error=e) from e

        if not res.ok:
            body = res.text[:500]
            logger.debug(f"HTTP {res.status_code} from {url}: {body[:200]}")
            raise TransportError(
                f"HTTP {res.status_code} from {url}",
                url=url,
                status_code=res.status_code,
                body=body,
            )

        try:
            return res.json()
        except ValueError as e:
            raise DecodeError(
                f"Response from {url} is not valid JSON", value=res.text[:500], original_error=e
            ) from e

    def stream_paginated(
        self,
        path: str,
        item_type: type[T] | Any,
        params: Mapping[str, Any] | Iterable[tuple[str, Any]] | None = None,
        before: str | None = None,
    ) -> PaginatedStream[T]:
        """Lazily iterate every item of a ``before``-paginated list endpoint."""
        return PaginatedStream(self.get_page, path, params=params, item_type=item_type, before=before)

    def stream_markets(self, before: str | None = None) -> PaginatedStream[LiteMarket]:
        return self.stream_paginated("/markets", LiteMarket, before=before)

    def stream_users(self, before: str | None = None) -> PaginatedStream[User]:
        return self.stream_paginated("/users", User, before=before)

    def stream_bets(
        self,
        user_id: str | None = None,
        username: str | None = None,
        contract_id: str | None = None,
        contract_slug: str | None = None,
        before: str | None = None,
    ) -> PaginatedStream[Bet]:
        params = {
            "userId": user_id,
            "username": username,
            "contractId": contract_id,
            "contractSlug": contract_slug,
        }
        return self.stream_paginated("/bets", Bet, params=params, before=before)
