"""Read-only queries of the prediction module."""

from __future__ import annotations

import copy

from speculod.errors import MarketNotFoundError, OrderNotFoundError
from speculod.keeper import Context, Keeper
from speculod.models import Order, OrderBook, OrderSide, OrderStatus, Params, PredictionMarket

_ACTIVE = (OrderStatus.OPEN, OrderStatus.PARTIALLY_FILLED)


class QueryServer:
    """Answers queries from a keeper's state."""

    def __init__(self, keeper: Keeper) -> None:
        self.keeper = keeper

    def params(self, ctx: Context) -> Params:
        """Return the params, or empty params when none are stored."""
        if self.keeper.params is None:
            return Params()
        return copy.deepcopy(self.keeper.params)

    def markets(self, ctx: Context) -> list[PredictionMarket]:
        return [
            copy.deepcopy(self.keeper.markets[market_id])
            for market_id in sorted(self.keeper.markets)
        ]

    def market(self, ctx: Context, market_id: int) -> PredictionMarket:
        market = self.keeper.get_prediction_market(ctx, market_id)
        if market is None:
            raise MarketNotFoundError(f"market {market_id}")
        return market

    def order(self, ctx: Context, order_id: int) -> Order:
        order = self.keeper.get_order(ctx, order_id)
        if order is None:
            raise OrderNotFoundError(f"order {order_id} not found")
        return order

    def orders(self, ctx: Context, market_id: int, outcome_index: int) -> list[Order]:
        """Return the open and partially filled orders of one outcome."""
        return [
            order
            for order in self.keeper.orders_by_market_and_outcome(ctx, market_id, outcome_index)
            if order.status in _ACTIVE
        ]

    def order_book(self, ctx: Context, market_id: int, outcome_index: int) -> OrderBook:
        book = OrderBook(market_id=market_id, outcome_index=outcome_index)
        for order in self.orders(ctx, market_id, outcome_index):
            if order.side == OrderSide.BUY:
                book.bids.append(order)
            elif order.side == OrderSide.SELL:
                book.asks.append(order)
        return book

    def user_orders(self, ctx: Context, user: str) -> list[Order]:
        return [order for order in self.keeper.all_orders(ctx) if order.creator == user]