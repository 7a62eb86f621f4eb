import pytest

from speculod.address import Bech32Codec, acc_address, module_address
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
from speculod.models import Coin, OrderSide, OrderStatus, Params, default_genesis, default_params
from speculod.msg_server import (
    MsgCancelOrder,
    MsgCreateMarket,
    MsgFillOrder,
    MsgPostOrder,
    MsgServer,
    MsgUpdateParams,
)


@pytest.fixture
def keeper():
    k = Keeper(Bech32Codec("cosmos"), module_address("gov"))
    k.init_genesis(Context(), default_genesis())
    return k


@pytest.fixture
def server(keeper):
    return MsgServer(keeper)


def _market(server, ctx=None):
    ctx = ctx or Context(block_height=1, block_time=100)
    resp = server.create_market(
        ctx,
        MsgCreateMarket(creator="alice", question="Will it rain?", outcomes=["yes", "no"], deadline=1000),
    )
    return resp.market_id


def _post(server, creator, side, price, amount, block_height=1, block_time=100, outcome_index=0, market_id=0):
    return server.post_order(
        Context(block_height=block_height, block_time=block_time),
        MsgPostOrder(
            creator=creator,
            market_id=market_id,
            outcome_index=outcome_index,
            side=side,
            price=price,
            amount=Coin("stake", amount),
        ),
    )


@pytest.mark.parametrize(
    "name, authority_kind, params, error",
    [
        ("invalid authority", "invalid", default_params(), "invalid authority"),
        ("send enabled param", "gov", Params(), None),
        ("all good", "gov", default_params(), None),
    ],
)
def test_update_params(keeper, server, name, authority_kind, params, error):
    authority_str = keeper.address_codec.bytes_to_string(keeper.authority)
    authority = "invalid" if authority_kind == "invalid" else authority_str
    msg = MsgUpdateParams(authority=authority, params=params)
    if error:
        with pytest.raises(ValueError) as info:
            server.update_params(Context(), msg)
        assert error in str(info.value)
    else:
        assert server.update_params(Context(), msg) is None
        assert keeper.params == params


def test_update_params_wrong_signer(server):
    with pytest.raises(InvalidSignerError) as info:
        server.update_params(Context(), MsgUpdateParams(authority=acc_address(), params=Params()))
    assert "invalid authority; expected" in str(info.value)


def test_create_market_stores_market(keeper, server):
    ctx = Context(block_height=3, block_time=100)
    resp = server.create_market(
        ctx, MsgCreateMarket(creator="alice", question="Q?", outcomes=["a", "b", "c"], group_id=7, deadline=200)
    )
    assert resp.status == "open"
    market = keeper.get_prediction_market(ctx, resp.market_id)
    assert market.question == "Q?"
    assert market.outcomes == ["a", "b", "c"]
    assert market.group_id == 7
    assert market.created_at == 100
    assert market.creator == "alice"


def test_create_market_ids_increase(server):
    first = _market(server)
    second = _market(server)
    assert second == first + 1


@pytest.mark.parametrize(
    "msg, text",
    [
        (MsgCreateMarket(question="Q", outcomes=["a"], deadline=500), "at least two outcomes required"),
        (MsgCreateMarket(question="", outcomes=["a", "b"], deadline=500), "question cannot be empty"),
        (MsgCreateMarket(question="Q", outcomes=["a", "b"], deadline=100), "deadline must be in the future"),
        (MsgCreateMarket(question="Q", outcomes=["a", ""], deadline=500), "outcome cannot be empty"),
        (MsgCreateMarket(question="Q", outcomes=["a", "a"], deadline=500), "duplicate outcome"),
    ],
)
def test_create_market_validation(server, msg, text):
    with pytest.raises(InvalidRequestError) as info:
        server.create_market(Context(block_time=100), msg)
    assert text in str(info.value)


def test_post_order_complete_scenario(keeper, server):
    market_id = _market(server)
    alice = _post(server, "alice", "SELL", "100", 100, block_height=1, market_id=market_id)
    bob = _post(server, "bob", "SELL", "99", 50, block_height=2, market_id=market_id)
    assert alice.trades == [] and bob.trades == []

    charlie = _post(server, "charlie", "BUY", "101", 200, block_height=5, market_id=market_id)
    assert charlie.status == "posted"
    assert [(t.buyer, t.seller, t.price, t.amount) for t in charlie.trades] == [
        ("charlie", "bob", "99", Coin("stake", 50)),
        ("charlie", "alice", "100", Coin("stake", 100)),
    ]
    assert all(t.trade_id == 5 for t in charlie.trades)

    ctx = Context()
    assert keeper.get_order(ctx, bob.order_id).status == OrderStatus.FILLED
    assert keeper.get_order(ctx, alice.order_id).status == OrderStatus.FILLED
    stored = keeper.get_order(ctx, charlie.order_id)
    assert stored.status == OrderStatus.PARTIALLY_FILLED
    assert stored.filled_amount == Coin("stake", 150)
    assert stored.side == OrderSide.BUY


def test_post_order_partial_fills(keeper, server):
    market_id = _market(server)
    s1 = _post(server, "seller1", "SELL", "100", 30, block_time=101, market_id=market_id)
    s2 = _post(server, "seller2", "SELL", "100", 40, block_time=102, market_id=market_id)
    s3 = _post(server, "seller3", "SELL", "101", 50, block_time=103, market_id=market_id)
    buy = _post(server, "bigbuyer", "BUY", "101", 100, block_time=104, market_id=market_id)

    assert [(t.seller, t.price, t.amount.amount) for t in buy.trades] == [
        ("seller1", "100", 30),
        ("seller2", "100", 40),
        ("seller3", "101", 30),
    ]
    assert sum(t.amount.amount for t in buy.trades) == 100
    ctx = Context()
    assert keeper.get_order(ctx, s1.order_id).status == OrderStatus.FILLED
    assert keeper.get_order(ctx, s2.order_id).status == OrderStatus.FILLED
    assert keeper.get_order(ctx, s3.order_id).status == OrderStatus.PARTIALLY_FILLED
    assert keeper.get_order(ctx, buy.order_id).status == OrderStatus.FILLED


def test_post_order_no_match(keeper, server):
    market_id = _market(server)
    _post(server, "seller", "SELL", "100", 100, market_id=market_id)
    buy = _post(server, "buyer", "BUY", "99", 100, market_id=market_id)
    assert buy.trades == []
    assert keeper.get_order(Context(), buy.order_id).status == OrderStatus.OPEN


def test_post_order_outcome_isolation(server):
    market_id = _market(server)
    _post(server, "user1", "SELL", "100", 100, outcome_index=0, market_id=market_id)
    buy = _post(server, "user2", "BUY", "100", 100, outcome_index=1, market_id=market_id)
    assert buy.trades == []


def test_post_order_validation(server):
    market_id = _market(server)
    with pytest.raises(MarketNotFoundError):
        _post(server, "u", "BUY", "1", 1, market_id=market_id + 9)
    with pytest.raises(InvalidOutcomeError):
        _post(server, "u", "BUY", "1", 1, outcome_index=2, market_id=market_id)
    with pytest.raises(InvalidRequestError, match="side must be BUY or SELL"):
        _post(server, "u", "HOLD", "1", 1, market_id=market_id)
    with pytest.raises(InvalidRequestError, match="price cannot be empty"):
        _post(server, "u", "BUY", "", 1, market_id=market_id)
    with pytest.raises(InvalidAmountError):
        _post(server, "u", "BUY", "1", 0, market_id=market_id)


def test_cancel_order(keeper, server):
    market_id = _market(server)
    posted = _post(server, "alice", "SELL", "100", 10, market_id=market_id)
    with pytest.raises(OrderStateError, match="only order creator can cancel"):
        server.cancel_order(Context(), MsgCancelOrder(creator="bob", order_id=posted.order_id))
    resp = server.cancel_order(Context(), MsgCancelOrder(creator="alice", order_id=posted.order_id))
    assert resp.status == "cancelled"
    assert keeper.get_order(Context(), posted.order_id).status == OrderStatus.CANCELLED
    with pytest.raises(OrderStateError, match="order cannot be canceled"):
        server.cancel_order(Context(), MsgCancelOrder(creator="alice", order_id=posted.order_id))
    with pytest.raises(OrderNotFoundError):
        server.cancel_order(Context(), MsgCancelOrder(creator="alice", order_id=999))


def test_fill_order(keeper, server):
    market_id = _market(server)
    posted = _post(server, "alice", "SELL", "100", 10, market_id=market_id)
    with pytest.raises(InvalidAmountError, match="fill amount exceeds remaining amount"):
        server.fill_order(Context(), MsgFillOrder(filler="bob", order_id=posted.order_id, amount=Coin("stake", 11)))
    with pytest.raises(InvalidAmountError, match="amount cannot be zero"):
        server.fill_order(Context(), MsgFillOrder(filler="bob", order_id=posted.order_id, amount=Coin("stake", 0)))

    resp = server.fill_order(Context(), MsgFillOrder(filler="bob", order_id=posted.order_id, amount=Coin("stake", 4)))
    assert resp.status == "filled"
    assert resp.trades == []
    order = keeper.get_order(Context(), posted.order_id)
    assert order.filled_amount == Coin("stake", 4)
    assert order.status == OrderStatus.PARTIALLY_FILLED

    server.fill_order(Context(), MsgFillOrder(filler="bob", order_id=posted.order_id, amount=Coin("stake", 6)))
    assert keeper.get_order(Context(), posted.order_id).status == OrderStatus.FILLED
    with pytest.raises(OrderStateError, match="order cannot be filled"):
        server.fill_order(Context(), MsgFillOrder(filler="bob", order_id=posted.order_id, amount=Coin("stake", 1)))


def test_fill_missing_order(server):
    with pytest.raises(OrderNotFoundError, match="order 42 not found"):
        server.fill_order(Context(), MsgFillOrder(filler="bob", order_id=42, amount=Coin("stake", 1)))