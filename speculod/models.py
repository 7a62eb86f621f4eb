"""Data types, constants and validation of the prediction module."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from enum import IntEnum

from speculod.errors import InvalidRequestError

MODULE_NAME = "prediction"
STORE_KEY = MODULE_NAME
GOV_MODULE_NAME = "gov"
PARAMS_KEY = b"p_prediction"

EVENT_TYPE_CREATE_MARKET = "create_market"
EVENT_TYPE_BUY_POSITION = "buy_position"
EVENT_TYPE_SELL_POSITION = "sell_position"

ATTRIBUTE_KEY_MARKET_ID = "market_id"
ATTRIBUTE_KEY_CREATOR = "creator"
ATTRIBUTE_KEY_BUYER = "buyer"
ATTRIBUTE_KEY_SELLER = "seller"
ATTRIBUTE_KEY_OUTCOME_INDEX = "outcome_index"
ATTRIBUTE_KEY_AMOUNT = "amount"
ATTRIBUTE_KEY_QUESTION = "question"
ATTRIBUTE_KEY_OUTCOMES = "outcomes"

_MAX_LENGTH_PREFIXED = 255


@dataclass(frozen=True)
class Coin:
    """A non-negative integer amount of one denomination."""

    denom: str
    amount: int = 0

    def __post_init__(self) -> None:
        if self.amount < 0:
            raise ValueError(f"negative coin amount: {self.amount}")

    def _check_denom(self, other: Coin) -> None:
        if self.denom != other.denom:
            raise ValueError(f"invalid coin denominations; {self.denom}, {other.denom}")

    def add(self, other: Coin) -> Coin:
        self._check_denom(other)
        return Coin(self.denom, self.amount + other.amount)

    def sub(self, other: Coin) -> Coin:
        self._check_denom(other)
        return Coin(self.denom, self.amount - other.amount)

    def __str__(self) -> str:
        return f"{self.amount}{self.denom}"


class OrderSide(IntEnum):
    UNSPECIFIED = 0
    BUY = 1
    SELL = 2


class OrderStatus(IntEnum):
    UNSPECIFIED = 0
    OPEN = 1
    PARTIALLY_FILLED = 2
    FILLED = 3
    CANCELLED = 4


@dataclass
class Params:
    """Module parameters; the module currently has none."""

    def validate(self) -> None:
        """Check the parameters; there is nothing that can be wrong yet."""

    def to_dict(self) -> dict:
        return {}


def default_params() -> Params:
    return Params()


@dataclass
class GenesisState:
    params: Params = field(default_factory=default_params)

    def validate(self) -> None:
        self.params.validate()

    def to_json(self) -> str:
        return json.dumps({"params": self.params.to_dict()})

    @classmethod
    def from_json(cls, data: str | bytes) -> GenesisState:
        raw = json.loads(data)
        if not isinstance(raw, dict):
            raise ValueError("genesis state must be a JSON object")
        unknown = set(raw) - {"params"}
        if unknown:
            raise ValueError(f"unknown genesis fields: {', '.join(sorted(unknown))}")
        params = raw.get("params", {})
        if params is None:
            params = {}
        if not isinstance(params, dict):
            raise ValueError("params must be a JSON object")
        if params:
            raise ValueError(f"unknown params fields: {', '.join(sorted(params))}")
        return cls(params=Params())


def default_genesis() -> GenesisState:
    return GenesisState(params=default_params())


@dataclass
class PredictionMarket:
    id: int = 0
    question: str = ""
    outcomes: list[str] = field(default_factory=list)
    group_id: int = 0
    deadline: int = 0
    status: str = ""
    creator: str = ""
    created_at: int = 0


@dataclass
class Order:
    id: int = 0
    market_id: int = 0
    creator: str = ""
    side: OrderSide = OrderSide.UNSPECIFIED
    outcome_index: int = 0
    price: str = ""
    amount: Coin | None = None
    filled_amount: Coin | None = None
    status: OrderStatus = OrderStatus.UNSPECIFIED
    created_at: int = 0

    def remaining(self) -> Coin:
        """Return the part of the order that is not filled yet."""
        if self.amount is None:
            raise ValueError("order has no amount")
        filled = self.filled_amount or Coin(self.amount.denom, 0)
        return self.amount.sub(filled)


@dataclass
class Trade:
    trade_id: int = 0
    market_id: int = 0
    outcome_index: int = 0
    buyer: str = ""
    seller: str = ""
    price: str = ""
    amount: Coin | None = None
    timestamp: int = 0


@dataclass
class Position:
    market_id: int = 0
    owner: str = ""
    amount: Coin | None = None
    is_buy: bool = False


@dataclass
class OrderBook:
    market_id: int = 0
    outcome_index: int = 0
    bids: list[Order] = field(default_factory=list)
    asks: list[Order] = field(default_factory=list)


@dataclass
class OrderBookEntry:
    price: str = ""
    total_amount: Coin | None = None
    order_count: int = 0


@dataclass
class OutcomeResult:
    """The final resolved outcome of a market."""

    market_id: int = 0
    winning_index: int = 0


def validate_outcome(outcomes: list[str], vote: str) -> None:
    """Raise unless ``vote`` names one of ``outcomes``, ignoring case."""
    wanted = vote.casefold()
    if any(outcome.casefold() == wanted for outcome in outcomes):
        return
    raise InvalidRequestError(f"invalid vote: {vote} not in outcomes")


def position_key(market_id: int, user: str) -> bytes:
    """Build the store key of a user's position in a market."""
    body = f"{market_id}/{user}".encode()
    if len(body) > _MAX_LENGTH_PREFIXED:
        raise ValueError(f"length-prefixed address too long: {len(body)}")
    return b"position/" + bytes([len(body)]) + body