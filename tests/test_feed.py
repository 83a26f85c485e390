import pytest

from api.pydantic_models import ActionType
from feed import ActivityFeed, FEED_KEY


def test_seed_items_are_newest_first(fake_redis):
    items = ActivityFeed(fake_redis).recent()
    assert [item.id for item in items] == ["f1", "f2", "f3"]
    assert items[0].timestamp > items[-1].timestamp


def test_feed_is_capped_and_newest_first(fake_redis):
    feed = ActivityFeed(fake_redis, max_items=5)
    for i in range(10):
        feed.push("Nipa", ActionType.COMMUTE, f"Trip {i}")
    items = feed.recent(50)
    assert len(items) == 5
    assert items[0].description == "Trip 9"
    assert len(fake_redis.lrange(FEED_KEY, 0, -1)) == 5


def test_like_increments_and_persists(fake_redis):
    feed = ActivityFeed(fake_redis)
    assert feed.like("f2").likes == 25
    assert feed.like("f2").likes == 26
    assert [item.likes for item in feed.recent() if item.id == "f2"] == [26]


@pytest.mark.parametrize("limit", [0, -3])
def test_non_positive_limit_returns_nothing(fake_redis, limit):
    assert ActivityFeed(fake_redis).recent(limit) == []


def test_like_unknown_item(fake_redis):
    assert ActivityFeed(fake_redis).like("missing") is None
