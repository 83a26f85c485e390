import json
import logging
import secrets
from dataclasses import dataclass
from typing import Optional

from pydantic import ValidationError

from api.pydantic_models import User

logger = logging.getLogger(__name__)

SESSION_KEY_PREFIX = "saveraks_user"


@dataclass(frozen=True)
class Session:
    """The authenticated session resolved for one request."""
    id: str
    user: User


class SessionStore:
    """
    Keeps the current user record for each session as one JSON blob in Redis.
    A session holds exactly one user; the blob is replaced wholesale on every write.
    """

    def __init__(self, redis_client, ttl_seconds: int = 30 * 24 * 3600):
        self.redis = redis_client
        self.ttl_seconds = ttl_seconds

    @staticmethod
    def new_session_id() -> str:
        return secrets.token_urlsafe(24)

    @staticmethod
    def _key(session_id: str) -> str:
        return f"{SESSION_KEY_PREFIX}:{session_id}"

    def get(self, session_id: str) -> Optional[User]:
        key = self._key(session_id)
        raw = self.redis.get(key)
        if not raw or raw == "undefined":
            return None
        try:
            return User.model_validate(json.loads(raw))
        except (json.JSONDecodeError, ValidationError) as e:
            logger.warning(f"Discarding corrupt session blob for {session_id}: {e}")
            self.redis.delete(key)
            return None

    def set(self, session_id: str, user: User) -> None:
        self.redis.set(self._key(session_id), user.model_dump_json(), ex=self.ttl_seconds)

    def clear(self, session_id: str) -> None:
        self.redis.delete(self._key(session_id))

    def save(self, session: Session) -> None:
        self.set(session.id, session.user)
