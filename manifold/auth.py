from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Literal

from manifold.errors import AuthError
from manifold.utils.env import load_env_file_if_present

API_URL = "https://manifold.markets/api"
USER_AGENT = "manifold-python/0.1.0"


@dataclass(frozen=True)
class ManifoldAuthorization:
    """Credentials sent with every request.

    Manifold accepts either a personal API key (``Authorization: Key <key>``)
    or a Firebase JWT (``Authorization: Bearer <token>``).
    """

    scheme: Literal["api_key", "jwt"]
    token: str

    @classmethod
    def api_key(cls, key: str) -> ManifoldAuthorization:
        return cls(scheme="api_key", token=key)

    @classmethod
    def jwt(cls, token: str) -> ManifoldAuthorization:
        return cls(scheme="jwt", token=token)

    def header_value(self) -> str:
        if not self.token:
            raise AuthError("Empty credential")
        if self.scheme == "api_key":
            return f"Key {self.token}"
        if self.scheme == "jwt":
            return f"Bearer {self.token}"
        raise AuthError(f"Unknown authorization scheme: {self.scheme}")

    def __repr__(self) -> str:
        return f"ManifoldAuthorization(scheme={self.scheme!r}, token='***')"


def load_api_key(env_key: str = "MANIFOLD_API_KEY", dotenv: bool = True) -> str:
    """Return the Manifold API key from the environment or .env.

    Raises AuthError if missing.
    """
    if dotenv:
        load_env_file_if_present()
    key = os.getenv(env_key)
    if not key:
        raise AuthError(f"Missing API key. Set {env_key} in environment or .env")
    return key


def build_auth_headers(auth: ManifoldAuthorization | None = None) -> dict[str, str]:
    headers = {"Accept": "application/json", "User-Agent": USER_AGENT}
    if auth is not None:
        headers["Authorization"] = auth.header_value()
    return headers
