import logging
import random
import string
from typing import Dict, List

from api.pydantic_models import RedemptionEntry, Reward

logger = logging.getLogger(__name__)

REWARDS: List[Reward] = [
    Reward(id="r1", title="Late Pass", cost=500, icon="🎫", description="One-time pass for 15 min late arrival."),
    Reward(id="r2", title="Zero-Waste Snack", cost=150, icon="🍎", description="Fresh organic fruit from school garden."),
    Reward(id="r3", title="Library VR Access", cost=300, icon="🥽", description="30 mins of VR Educational session."),
    Reward(id="r4", title="Eco-Hero Badge", cost=1000, icon="🎖️", description="Permanent profile badge + Certificate."),
]
REWARDS_BY_ID: Dict[str, Reward] = {reward.id: reward for reward in REWARDS}

TICKET_ALPHABET = string.ascii_uppercase + string.digits


class RewardNotFound(LookupError):
    pass


class InsufficientPoints(ValueError):
    def __init__(self, balance: int, cost: int):
        super().__init__(f"Balance of {balance} points is below the cost of {cost}.")
        self.balance = balance
        self.cost = cost


def generate_ticket_code() -> str:
    """One-time redemption code, shown to staff. Not persisted."""
    return "SR-" + "".join(random.choices(TICKET_ALPHABET, k=6))


def get_reward(reward_id: str) -> Reward:
    try:
        return REWARDS_BY_ID[reward_id]
    except KeyError:
        raise RewardNotFound(f"No reward with id {reward_id!r}") from None


def redeem(recorder, session, reward_id: str):
    """
    Spends reward.cost points and returns (outcome, code).
    The deduction goes through the same logging path as any other activity.
    """
    reward = get_reward(reward_id)
    balance = session.user.points
    if balance < reward.cost:
        raise InsufficientPoints(balance, reward.cost)

    entry = RedemptionEntry(reward_id=reward.id, title=reward.title, cost=reward.cost)
    outcome = recorder.record(session, entry)
    code = generate_ticket_code()
    logger.info(f"User {session.user.id} redeemed {reward.id} for {reward.cost} points")
    return outcome, code
