# speculod

The state machine of a prediction market, as a plain Python library with no
dependencies. It stores markets, takes buy and sell orders on a market
outcome, matches them with price-time priority, tracks positions, and
exports and imports the module's genesis state as JSON. All state is held in
memory by a `Keeper`.

## Installation

```
pip install .
```

With the test dependencies:

```
pip install ".[test]"
```

## Modules

- `speculod.keeper`: `Keeper` holds params, markets, orders and positions
  in dictionaries. It hands out market and order ids from counters that start
  at 0 (`append_market`, `append_order`), matches orders (`match_order`),
  fills an order directly (`fill_order`), and adds to positions
  (`add_to_position`). `Context` carries the `block_height` and `block_time`
  that a call runs under. `parse_price` turns a decimal price string into a
  `Decimal` and gives zero for anything it cannot parse. `PositionKeyCodec`
  and `position_composite_key` build position keys.
- `speculod.msg_server`: `MsgServer` checks and executes the messages
  `MsgCreateMarket`, `MsgPostOrder`, `MsgCancelOrder`, `MsgFillOrder` and
  `MsgUpdateParams`.
- `speculod.query`: `QueryServer` offers read-only views: `params`,
  `markets`, `market`, `order`, `orders` (the open and partially filled
  orders of one outcome), `order_book` (those orders split into bids and
  asks) and `user_orders`.
- `speculod.module`: `AppModule` produces, validates, loads and exports the
  genesis state as JSON. It also provides `generate_genesis_state` for
  simulations and `consensus_version`.
- `speculod.models`: `Coin`, `OrderSide`, `OrderStatus`, `Order`, `Trade`,
  `PredictionMarket`, `Position`, `OrderBook`, `OrderBookEntry`,
  `OutcomeResult`, `Params` and `GenesisState`. It also has
  `validate_outcome` (a case-insensitive match of a vote against the
  outcomes) and `position_key`.
- `speculod.address`: `Bech32Codec` converts address bytes to and from
  bech32 text. `module_address` gives a module's account address, and
  `acc_address` gives a random sample address with the `cosmos` prefix.
- `speculod.errors`: `PredictionError` and its subclasses.

## Example

```python
from speculod.address import Bech32Codec, module_address
from speculod.keeper import Context, Keeper
from speculod.models import Coin
from speculod.msg_server import MsgCreateMarket, MsgPostOrder, MsgServer
from speculod.query import QueryServer

codec = Bech32Codec("cosmos")
keeper = Keeper(codec, module_address("gov"), None)
server = MsgServer(keeper)
queries = QueryServer(keeper)

ctx = Context(block_height=1, block_time=1_700_000_000)

market = server.create_market(ctx, MsgCreateMarket(
    creator="alice",
    question="Will it rain tomorrow?",
    outcomes=["yes", "no"],
    deadline=1_800_000_000,
))

server.post_order(ctx, MsgPostOrder(
    creator="bob", market_id=market.market_id, outcome_index=0,
    side="SELL", price="99", amount=Coin("stake", 50),
))
result = server.post_order(ctx, MsgPostOrder(
    creator="charlie", market_id=market.market_id, outcome_index=0,
    side="BUY", price="101", amount=Coin("stake", 200),
))

for trade in result.trades:
    print(trade.buyer, trade.seller, trade.price, trade.amount)  # charlie bob 99 50stake

book = queries.order_book(ctx, market.market_id, 0)
print(len(book.bids), len(book.asks))  # 1 0
```

## Matching

When an order is posted, it is matched against the resting orders on the
same market and outcome. A resting order is a candidate if it is on the other
side, has status `OPEN`, and crosses the new order's price. Candidates are
ranked best price first: the lowest ask for a buy and the highest bid for a
sell. Among candidates at the same price, the one with the earlier
`created_at` goes first. Each trade is made at the resting order's price.
Both orders become `PARTIALLY_FILLED` or `FILLED`.

A trade's id is the context's block height, so trades made in the same
block share an id. `MsgServer.fill_order` records the fill on the order, but
it returns an empty `trades` list. In that fill, the filler is always the
buyer.

## Errors

The checks on messages raise subclasses of `speculod.errors.PredictionError`:

- `InvalidRequestError`
- `MarketNotFoundError`
- `InvalidOutcomeError`
- `InvalidAmountError`
- `InvalidSignerError`
- `OrderNotFoundError`
- `OrderStateError`

Some failures raise plain built-in exceptions instead:

| Failure | Exception |
| --- | --- |
| Authority string that cannot be decoded in `update_params` | `ValueError` |
| Negative or mismatched `Coin` amounts | `ValueError` |
| Malformed genesis JSON | `ValueError` |
| Exporting genesis before params are set, from the keeper | `LookupError` |
| Exporting genesis before params are set, from `AppModule` | `RuntimeError` |

## What this package does not do

- It keeps all state in memory and does not persist it. Save it through
  `AppModule.export_genesis` if you need it later.
- It moves no funds. The `bank_keeper` passed to `Keeper` is stored but
  never called, and cancelling an order refunds nothing.
- It has no command-line tool, no network server and no consensus or
  block production. You supply the block height and time through `Context`.

## Running the tests

```
pytest
```