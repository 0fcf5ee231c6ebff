from solana_tracker.datastream.rooms import (
    DatastreamRoom,
    TopicKind,
    build_topic,
    classify_topic,
    is_price_by_pool,
    price_by_token_topic,
)


def test_build_topic_joins_params_and_skips_empty():
    assert build_topic(DatastreamRoom.LATEST) == "latest"
    assert build_topic(DatastreamRoom.TOKEN_TRANSACTIONS, "mint", "pool") == "transaction:mint:pool"
    assert build_topic(DatastreamRoom.GRADUATING, "sol", 175) == "graduating:sol:175"
    assert build_topic(DatastreamRoom.HOLDERS, "mint", None, "") == "holders:mint"


def test_transaction_family_goes_to_transaction_channel():
    assert classify_topic("transaction:mint") is TopicKind.TRANSACTION
    assert classify_topic("transaction:mint:pool") is TopicKind.TRANSACTION
    assert classify_topic("transaction") is TopicKind.TRANSACTION


def test_other_rooms_stay_on_main_channel():
    for topic in ("latest", "price:pool", "price-by-token:mint", "wallet:abc", "graduated", "pool:xyz"):
        assert classify_topic(topic) is TopicKind.GENERAL
    # family match, not substring
    assert classify_topic("wallet:transaction") is TopicKind.GENERAL


def test_price_topic_helpers():
    assert is_price_by_pool("price:pool1")
    assert not is_price_by_pool("price-by-token:mint")
    assert price_by_token_topic("mint") == "price-by-token:mint"
    assert price_by_token_topic(None) is None
    assert price_by_token_topic("") is None
