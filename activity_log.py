"""
Records eco-actions through the sheet endpoint and reconciles the session's point total.

The remote total wins whenever the endpoint answers. When it does not, the
cached total moves by exactly the entry's declared point value, so an entry
is counted once whichever path it takes.
"""

import logging
from dataclasses import dataclass

from api.pydantic_models import User
from session_store import Session

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Outcome:
    session: Session
    synced: bool
    points_awarded: int

    @property
    def user(self) -> User:
        return self.session.user


class ActivityRecorder:
    def __init__(self, gateway, session_store, feed=None):
        self.gateway = gateway
        self.session_store = session_store
        self.feed = feed

    def record(self, session: Session, entry) -> Outcome:
        user = session.user
        previous_total = user.points
        remote_total = self.gateway.log_activity(entry.to_envelope(user.id))

        if remote_total is not None:
            new_total = remote_total
            synced = True
        else:
            new_total = max(0, previous_total + entry.points)
            synced = False
            logger.info(f"Remote log failed for {user.id}, applying {entry.points} points locally.")

        updated = Session(id=session.id, user=user.with_points(new_total))
        self.session_store.save(updated)

        if self.feed is not None and entry.points > 0:
            self.feed.push(user.name, entry.kind, entry.label)

        logger.info(f"Recorded {entry.kind.value} for {user.id}: {previous_total} -> {new_total} "
                    f"(level {updated.user.level}, synced={synced})")
        return Outcome(session=updated, synced=synced, points_awarded=new_total - previous_total)
