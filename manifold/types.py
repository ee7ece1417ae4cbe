"""Typed records for Manifold API resources.

Only the fields needed to identify and display a resource are declared; any
other field the API sends is kept as an extra attribute, so the models do not
break when the API grows new fields. Wire names are camelCase and map to
snake_case attributes (``createdTime`` -> ``created_time``).
"""

from __future__ import annotations

import time
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class ManifoldModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="allow",
        frozen=True,
    )

    id: str


class OutcomeType(str, Enum):
    BINARY = "BINARY"
    FREE_RESPONSE = "FREE_RESPONSE"
    MULTIPLE_CHOICE = "MULTIPLE_CHOICE"
    PSEUDO_NUMERIC = "PSEUDO_NUMERIC"
    NUMERIC = "NUMERIC"


class ProfitCached(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    all_time: float
    daily: float
    weekly: float
    monthly: float


class User(ManifoldModel):
    created_time: int
    name: str
    username: str
    url: str | None = None
    avatar_url: str | None = None
    balance: float = 0.0
    total_deposits: float = 0.0
    profit_cached: ProfitCached | None = None


class LiteMarket(ManifoldModel):
    """Market summary as returned by the ``/markets`` listing."""

    creator_id: str | None = None
    creator_username: str | None = None
    creator_name: str | None = None
    created_time: int
    close_time: int | None = None
    question: str
    url: str | None = None
    # Unknown outcome types are kept as plain strings.
    outcome_type: OutcomeType | str = Field(union_mode="left_to_right")
    mechanism: str | None = None
    probability: float | None = None
    pool: dict[str, float] = Field(default_factory=dict)
    volume: float = 0.0
    volume_24_hours: float = Field(default=0.0, alias="volume24Hours")
    is_resolved: bool = False
    resolution: str | None = None
    resolution_time: int | None = None

    def is_active(self, now_ms: int | None = None) -> bool:
        """True while the market is unresolved and not past its close time."""
        if self.is_resolved:
            return False
        if self.close_time is None:
            return True
        now_ms = int(time.time() * 1000) if now_ms is None else now_ms
        return self.close_time > now_ms


class Bet(ManifoldModel):
    user_id: str | None = None
    contract_id: str
    created_time: int
    amount: float
    shares: float | None = None
    outcome: str
    prob_before: float | None = None
    prob_after: float | None = None
    is_cancelled: bool = False
