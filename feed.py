import logging
import uuid
from datetime import datetime, timedelta, timezone
from typing import List, Optional

from api.pydantic_models import ActionType, FeedItem

logger = logging.getLogger(__name__)

FEED_KEY = "activity_feed"


def initial_feed_items() -> List[FeedItem]:
    now = datetime.now(timezone.utc)
    return [
        FeedItem(id="f1", user="Nipa T.", action=ActionType.RECYCLE,
                 description="Recycled 5 plastic bottles at Building 3.",
                 timestamp=now - timedelta(minutes=30), likes=12),
        FeedItem(id="f2", user="Arthit K.", action=ActionType.COMMUTE,
                 description="Took the BTS to school today!",
                 timestamp=now - timedelta(hours=2), likes=24),
        FeedItem(id="f3", user="School Admin", action=ActionType.REPORT,
                 description="The broken faucet in the cafeteria has been fixed. Thanks for reporting!",
                 timestamp=now - timedelta(hours=5), likes=56,
                 imageUrl="https://picsum.photos/400/200"),
    ]


class ActivityFeed:
    """Newest-first community feed kept as a capped Redis list."""

    def __init__(self, redis_client, max_items: int = 50):
        self.redis = redis_client
        self.max_items = max_items

    def _ensure_seeded(self):
        if self.redis.exists(FEED_KEY):
            return
        # Stored newest first, so the oldest seed item goes in last
        for item in initial_feed_items():
            self.redis.rpush(FEED_KEY, item.model_dump_json())

    def push(self, user_name: str, action: ActionType, description: str, image_url: Optional[str] = None) -> FeedItem:
        self._ensure_seeded()
        item = FeedItem(id=uuid.uuid4().hex[:12], user=user_name, action=action,
                        description=description, imageUrl=image_url)
        self.redis.lpush(FEED_KEY, item.model_dump_json())
        self.redis.ltrim(FEED_KEY, 0, self.max_items - 1)
        return item

    def recent(self, limit: int = 20) -> List[FeedItem]:
        if limit <= 0:
            return []
        self._ensure_seeded()
        raw_items = self.redis.lrange(FEED_KEY, 0, limit - 1)
        return [FeedItem.model_validate_json(raw) for raw in raw_items]

    def like(self, item_id: str) -> Optional[FeedItem]:
        self._ensure_seeded()
        for index, raw in enumerate(self.redis.lrange(FEED_KEY, 0, -1)):
            item = FeedItem.model_validate_json(raw)
            if item.id == item_id:
                item.likes += 1
                self.redis.lset(FEED_KEY, index, item.model_dump_json())
                return item
        return None
