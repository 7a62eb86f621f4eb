"""State keeping and order matching for prediction markets."""

from __future__ import annotations

import copy
import re
from dataclasses import dataclass
from decimal import Decimal
from typing import Any

from speculod.address import Bech32Codec
from speculod.models import (
    Coin,
    GenesisState,
    Order,
    OrderSide,
    OrderStatus,
    Position,
    PredictionMarket,
    Trade,
    default_genesis,
    validate_outcome,
)

POSITION_KEY_PREFIX = b"positions"
_OWNER_LENGTH = 42
_DECIMAL_PRECISION = 18
_PRICE_PATTERN = re.compile(r"-?[0-9]+(?:\.[0-9]{1,%d})?" % _DECIMAL_PRECISION)


@dataclass
class Context:
    """Block information a keeper call runs under."""

    block_height: int = 0
    block_time: int = 0


@dataclass(frozen=True)
class PositionKey:
    market_id: int
    owner: str
    outcome_index: int


class PositionKeyCodec:
    """Binary encoding of position keys with a fixed-width owner."""

    def encode(self, key: PositionKey) -> bytes:
        return (
            key.market_id.to_bytes(8, "big")
            + key.owner.encode()
            + key.outcome_index.to_bytes(8, "big")
        )

    def decode(self, data: bytes) -> tuple[PositionKey, bytes]:
        if len(data) < 8:
            raise ValueError("not enough bytes for market id")
        market_id = int.from_bytes(data[:8], "big")
        data = data[8:]
        if len(data) < _OWNER_LENGTH + 8:
            raise ValueError("not enough bytes for owner+outcome")
        owner = data[:_OWNER_LENGTH].decode()
        data = data[_OWNER_LENGTH:]
        outcome_index = int.from_bytes(data[:8], "big") & 0xFFFFFFFF
        return PositionKey(market_id, owner, outcome_index), data[8:]

    def size(self, key: PositionKey) -> int:
        return 8 + _OWNER_LENGTH + 8


def position_composite_key(market_id: int, owner: str, outcome_index: int) -> str:
    return f"{market_id}/{owner}/{outcome_index}"


def parse_price(price_str: str) -> Decimal:
    """Parse a decimal price; anything unparsable counts as zero."""
    if not _PRICE_PATTERN.fullmatch(price_str):
        return Decimal(0)
    return Decimal(price_str)


def _buyer(new_order: Order, resting: Order) -> str:
    return new_order.creator if new_order.side == OrderSide.BUY else resting.creator


def _seller(new_order: Order, resting: Order) -> str:
    return new_order.creator if new_order.side == OrderSide.SELL else resting.creator


def _status_after_fill(filled: Coin, amount: Coin) -> OrderStatus:
    if filled.amount == amount.amount:
        return OrderStatus.FILLED
    return OrderStatus.PARTIALLY_FILLED


class Keeper:
    """Holds markets, orders, positions and params of the prediction module."""

    def __init__(self, address_codec: Bech32Codec, authority: bytes, bank_keeper: Any = None) -> None:
        try:
            address_codec.bytes_to_string(authority)
        except ValueError as exc:
            raise ValueError(f"invalid authority address {authority!r}: {exc}") from exc
        self.address_codec = address_codec
        self.authority = authority
        self.bank_keeper = bank_keeper
        self.params = None
        self.markets: dict[int, PredictionMarket] = {}
        self.orders: dict[int, Order] = {}
        self.positions: dict[str, Position] = {}
        self._market_seq = 0
        self._order_seq = 0

    def init_genesis(self, ctx: Context, gen_state: GenesisState) -> None:
        self.params = copy.deepcopy(gen_state.params)

    def export_genesis(self, ctx: Context) -> GenesisState:
        if self.params is None:
            raise LookupError("params not found")
        genesis = default_genesis()
        genesis.params = copy.deepcopy(self.params)
        return genesis

    def append_market(self, ctx: Context, creator: str) -> int:
        market_id = self._market_seq
        self._market_seq += 1
        return market_id

    def set_prediction_market(self, ctx: Context, market: PredictionMarket) -> None:
        self.markets[market.id] = copy.deepcopy(market)

    def get_prediction_market(self, ctx: Context, market_id: int) -> PredictionMarket | None:
        market = self.markets.get(market_id)
        return copy.deepcopy(market) if market is not None else None

    def validate_outcome(self, outcomes: list[str], vote: str) -> None:
        validate_outcome(outcomes, vote)

    def get_position(self, ctx: Context, market_id: int, owner: str, outcome_index: int) -> Position | None:
        position = self.positions.get(position_composite_key(market_id, owner, outcome_index))
        return copy.deepcopy(position) if position is not None else None

    def set_position(self, ctx: Context, position: Position, outcome_index: int) -> None:
        key = position_composite_key(position.market_id, position.owner, outcome_index)
        self.positions[key] = copy.deepcopy(position)

    def add_to_position(self, ctx: Context, market_id: int, owner: str, outcome_index: int, amount: Coin) -> None:
        position = self.get_position(ctx, market_id, owner, outcome_index)
        if position is None:
            position = Position(market_id=market_id, owner=owner, amount=amount, is_buy=True)
        elif position.amount is None:
            position.amount = Coin(amount.denom, amount.amount)
        else:
            position.amount = position.amount.add(amount)
        self.set_position(ctx, position, outcome_index)

    def append_order(self, ctx: Context) -> int:
        order_id = self._order_seq
        self._order_seq += 1
        return order_id

    def set_order(self, ctx: Context, order: Order) -> None:
        self.orders[order.id] = copy.deepcopy(order)

    def get_order(self, ctx: Context, order_id: int) -> Order | None:
        order = self.orders.get(order_id)
        return copy.deepcopy(order) if order is not None else None

    def all_orders(self, ctx: Context) -> list[Order]:
        return [copy.deepcopy(self.orders[order_id]) for order_id in sorted(self.orders)]

    def orders_by_market_and_outcome(self, ctx: Context, market_id: int, outcome_index: int) -> list[Order]:
        return [
            order
            for order in self.all_orders(ctx)
            if order.market_id == market_id and order.outcome_index == outcome_index
        ]

    def match_order(self, ctx: Context, new_order: Order) -> list[Trade]:
        """Match an order against resting opposite orders by price, then time."""
        new_order = copy.deepcopy(new_order)
        new_price = parse_price(new_order.price)
        is_buy = new_order.side == OrderSide.BUY

        def crosses(resting: Order) -> bool:
            price = parse_price(resting.price)
            if new_order.side == OrderSide.BUY:
                return price <= new_price
            if new_order.side == OrderSide.SELL:
                return price >= new_price
            return False

        candidates = [
            order
            for order in self.orders_by_market_and_outcome(ctx, new_order.market_id, new_order.outcome_index)
            if order.status == OrderStatus.OPEN and order.side != new_order.side and crosses(order)
        ]
        candidates.sort(
            key=lambda o: (parse_price(o.price) if is_buy else -parse_price(o.price), o.created_at)
        )

        trades: list[Trade] = []
        remaining = new_order.amount.amount
        for candidate in candidates:
            if remaining == 0:
                break
            resting = self.get_order(ctx, candidate.id)
            if resting is None or resting.status != OrderStatus.OPEN:
                continue
            resting_filled = resting.filled_amount or Coin(resting.amount.denom, 0)
            fill = min(remaining, resting.amount.amount - resting_filled.amount)
            if fill <= 0:
                continue

            trades.append(
                Trade(
                    trade_id=self.append_trade(ctx),
                    market_id=new_order.market_id,
                    outcome_index=new_order.outcome_index,
                    buyer=_buyer(new_order, resting),
                    seller=_seller(new_order, resting),
                    price=resting.price,
                    amount=Coin(new_order.amount.denom, fill),
                    timestamp=ctx.block_time,
                )
            )

            resting.filled_amount = Coin(resting_filled.denom, resting_filled.amount + fill)
            resting.status = _status_after_fill(resting.filled_amount, resting.amount)
            self.set_order(ctx, resting)

            if new_order.filled_amount is None:
                new_order.filled_amount = Coin(new_order.amount.denom, fill)
            else:
                new_order.filled_amount = Coin(
                    new_order.filled_amount.denom, new_order.filled_amount.amount + fill
                )
            new_order.status = _status_after_fill(new_order.filled_amount, new_order.amount)
            remaining -= fill

        self.set_order(ctx, new_order)
        return trades

    def fill_order(self, ctx: Context, order: Order, filler: str, amount: Coin) -> list[Trade]:
        """Fill up to ``amount`` of an order directly and record the trade."""
        order = copy.deepcopy(order)
        filled = order.filled_amount or Coin(order.amount.denom, 0)
        remaining = order.amount.amount - filled.amount
        fill_amount = min(amount.amount, remaining)

        trade = Trade(
            trade_id=self.append_trade(ctx),
            market_id=order.market_id,
            outcome_index=order.outcome_index,
            buyer=filler,
            seller=order.creator,
            price=order.price,
            amount=Coin(amount.denom, fill_amount),
            timestamp=ctx.block_time,
        )

        order.filled_amount = Coin(filled.denom, filled.amount + fill_amount)
        order.status = _status_after_fill(order.filled_amount, order.amount)
        self.set_order(ctx, order)
        return [trade]

    def append_trade(self, ctx: Context) -> int:
        return ctx.block_height