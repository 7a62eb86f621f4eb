"""Transaction handlers of the prediction module."""

from __future__ import annotations

import copy
from dataclasses import dataclass, field

from speculod.errors import (
    InvalidAmountError,
    InvalidOutcomeError,
    InvalidRequestError,
    InvalidSignerError,
    MarketNotFoundError,
    OrderNotFoundError,
    OrderStateError,
)
from speculod.keeper import Context, Keeper
from speculod.models import (
    Coin,
    Order,
    OrderSide,
    OrderStatus,
    Params,
    PredictionMarket,
    Trade,
)

MARKET_STATUS_OPEN = "open"
_SIDES = {"BUY": OrderSide.BUY, "SELL": OrderSide.SELL}


@dataclass
class MsgCreateMarket:
    creator: str = ""
    question: str = ""
    outcomes: list[str] = field(default_factory=list)
    group_id: int = 0
    deadline: int = 0


@dataclass
class MsgCreateMarketResponse:
    market_id: int = 0
    status: str = ""


@dataclass
class MsgPostOrder:
    creator: str = ""
    market_id: int = 0
    outcome_index: int = 0
    side: str = ""
    price: str = ""
    amount: Coin | None = None


@dataclass
class MsgPostOrderResponse:
    order_id: int = 0
    status: str = ""
    trades: list[Trade] = field(default_factory=list)


@dataclass
class MsgCancelOrder:
    creator: str = ""
    order_id: int = 0


@dataclass
class MsgCancelOrderResponse:
    status: str = ""


@dataclass
class MsgFillOrder:
    filler: str = ""
    order_id: int = 0
    amount: Coin | None = None


@dataclass
class MsgFillOrderResponse:
    status: str = ""
    trades: list[Trade] = field(default_factory=list)


@dataclass
class MsgUpdateParams:
    authority: str = ""
    params: Params = field(default_factory=Params)


class MsgServer:
    """Validates and executes the module's messages against a keeper."""

    def __init__(self, keeper: Keeper) -> None:
        self.keeper = keeper

    def create_market(self, ctx: Context, msg: MsgCreateMarket) -> MsgCreateMarketResponse:
        if len(msg.outcomes) < 2:
            raise InvalidRequestError("at least two outcomes required")
        if not msg.question:
            raise InvalidRequestError("question cannot be empty")
        if msg.deadline <= ctx.block_time:
            raise InvalidRequestError("deadline must be in the future")
        seen: set[str] = set()
        for outcome in msg.outcomes:
            if not outcome:
                raise InvalidRequestError("outcome cannot be empty")
            if outcome in seen:
                raise InvalidRequestError("duplicate outcome")
            seen.add(outcome)

        market_id = self.keeper.append_market(ctx, msg.creator)
        market = PredictionMarket(
            id=market_id,
            question=msg.question,
            outcomes=list(msg.outcomes),
            group_id=msg.group_id,
            deadline=msg.deadline,
            status=MARKET_STATUS_OPEN,
            creator=msg.creator,
            created_at=ctx.block_time,
        )
        self.keeper.set_prediction_market(ctx, market)
        return MsgCreateMarketResponse(market_id=market_id, status=MARKET_STATUS_OPEN)

    def post_order(self, ctx: Context, msg: MsgPostOrder) -> MsgPostOrderResponse:
        market = self.keeper.get_prediction_market(ctx, msg.market_id)
        if market is None:
            raise MarketNotFoundError(f"market {msg.market_id} not found")
        if msg.outcome_index >= len(market.outcomes):
            raise InvalidOutcomeError(f"outcome index {msg.outcome_index} out of range")
        side = _SIDES.get(msg.side)
        if side is None:
            raise InvalidRequestError("side must be BUY or SELL")
        if not msg.price:
            raise InvalidRequestError("price cannot be empty")
        if msg.amount is None or msg.amount.amount == 0:
            raise InvalidAmountError("amount cannot be zero")

        order_id = self.keeper.append_order(ctx)
        order = Order(
            id=order_id,
            market_id=msg.market_id,
            creator=msg.creator,
            side=side,
            outcome_index=msg.outcome_index,
            price=msg.price,
            amount=msg.amount,
            filled_amount=Coin(msg.amount.denom, 0),
            status=OrderStatus.OPEN,
            created_at=ctx.block_time,
        )
        self.keeper.set_order(ctx, order)
        trades = self.keeper.match_order(ctx, order)
        return MsgPostOrderResponse(order_id=order_id, status="posted", trades=trades)

    def cancel_order(self, ctx: Context, msg: MsgCancelOrder) -> MsgCancelOrderResponse:
        order = self.keeper.get_order(ctx, msg.order_id)
        if order is None:
            raise OrderNotFoundError(f"order {msg.order_id} not found")
        if order.creator != msg.creator:
            raise OrderStateError("only order creator can cancel")
        if order.status in (OrderStatus.FILLED, OrderStatus.CANCELLED):
            raise OrderStateError("order cannot be canceled")

        order.status = OrderStatus.CANCELLED
        self.keeper.set_order(ctx, order)
        return MsgCancelOrderResponse(status="cancelled")

    def fill_order(self, ctx: Context, msg: MsgFillOrder) -> MsgFillOrderResponse:
        order = self.keeper.get_order(ctx, msg.order_id)
        if order is None:
            raise OrderNotFoundError(f"order {msg.order_id} not found")
        if order.status not in (OrderStatus.OPEN, OrderStatus.PARTIALLY_FILLED):
            raise OrderStateError("order cannot be filled")
        if msg.amount is None or msg.amount.amount == 0:
            raise InvalidAmountError("amount cannot be zero")
        if msg.amount.amount > order.remaining().amount:
            raise InvalidAmountError("fill amount exceeds remaining amount")

        self.keeper.fill_order(ctx, order, msg.filler, msg.amount)
        return MsgFillOrderResponse(status="filled", trades=[])

    def update_params(self, ctx: Context, msg: MsgUpdateParams) -> None:
        codec = self.keeper.address_codec
        try:
            authority = codec.string_to_bytes(msg.authority)
        except ValueError as exc:
            raise ValueError(f"invalid authority address: {exc}") from exc
        if authority != self.keeper.authority:
            expected = codec.bytes_to_string(self.keeper.authority)
            raise InvalidSignerError(
                f"invalid authority; expected {expected}, got {msg.authority}"
            )
        msg.params.validate()
        self.keeper.params = copy.deepcopy(msg.params)