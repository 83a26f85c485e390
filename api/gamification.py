import logging
from collections import defaultdict
from flask import Blueprint, jsonify
from pydantic import ValidationError

from .auth import token_required
from .cache_utils import get_cached_leaderboard, cache_leaderboard, invalidate_leaderboard_cache
from .error_utils import create_error_response, not_found_error
from .pydantic_models import ClassStanding, LeaderboardEntry, LeaderboardResponse, RedemptionResponse, User
from dependencies import get_gateway, get_recorder
from extensions import limiter
from rewards import REWARDS, InsufficientPoints, RewardNotFound, get_reward, redeem

gamification_bp = Blueprint('gamification_bp', __name__)

def fetch_leaders():
    """
    Returns (users, offline). Rows come from the sheet endpoint, cached briefly in Redis.
    An unreachable endpoint yields an empty board rather than demo data.
    """
    rows = get_cached_leaderboard()
    offline = False
    if rows is None:
        rows = get_gateway().leaderboard()
        if rows is None:
            rows, offline = [], True
        else:
            cache_leaderboard(rows)

    users = []
    for row in rows:
        try:
            users.append(User.model_validate(row))
        except ValidationError as e:
            logging.warning(f"Skipping malformed leaderboard row {row!r}: {e}")
    return users, offline

def rank_users(users, current_user_id=None):
    """Highest points first; ties are broken by name so ranks are stable between calls."""
    ordered = sorted(users, key=lambda u: (-u.points, u.name.lower(), u.id))
    return [
        LeaderboardEntry(
            rank=i + 1, id=u.id, name=u.name, classRoom=u.classRoom,
            points=u.points, level=u.level, isCurrentUser=(u.id == current_user_id)
        )
        for i, u in enumerate(ordered)
    ]

def rank_classes(users):
    """Sums member points per classroom. Users without a classroom are left out."""
    totals, members = defaultdict(int), defaultdict(int)
    for u in users:
        if not u.classRoom:
            continue
        totals[u.classRoom] += u.points
        members[u.classRoom] += 1
    ordered = sorted(totals.items(), key=lambda item: (-item[1], item[0]))
    return [
        ClassStanding(rank=i + 1, name=name, points=points, members=members[name])
        for i, (name, points) in enumerate(ordered)
    ]

@gamification_bp.route('/leaderboard', methods=['GET'])
@token_required
@limiter.exempt
def get_leaderboard(session):
    users, offline = fetch_leaders()
    response = LeaderboardResponse(leaders=rank_users(users, session.user.id), offline=offline)
    return jsonify(response.model_dump()), 200

@gamification_bp.route('/leaderboard/classes', methods=['GET'])
@token_required
def get_class_leaderboard(session):
    users, offline = fetch_leaders()
    standings = rank_classes(users)
    return jsonify({"classes": [s.model_dump() for s in standings], "offline": offline}), 200

@gamification_bp.route('/rewards', methods=['GET'])
def list_rewards():
    return jsonify([reward.model_dump() for reward in REWARDS]), 200

@gamification_bp.route('/rewards/<reward_id>/redeem', methods=['POST'])
@token_required
def redeem_reward(session, reward_id):
    try:
        outcome, code = redeem(get_recorder(), session, reward_id)
    except RewardNotFound:
        return not_found_error("REWARD_NOT_FOUND")
    except InsufficientPoints as e:
        return create_error_response(
            "INSUFFICIENT_POINTS",
            details={"balance": e.balance, "cost": e.cost},
            status_code=400
        )

    invalidate_leaderboard_cache()
    response = RedemptionResponse(
        reward=get_reward(reward_id), code=code,
        points=outcome.user.points, level=outcome.user.level,
        offline=not outcome.synced
    )
    return jsonify(response.model_dump()), 200

def health_check():
    """Performs a non-destructive health check for the gamification module."""
    unpriced = [reward.id for reward in REWARDS if reward.cost <= 0]
    if unpriced:
        return {"status": "ERROR", "details": f"Rewards without a positive cost: {', '.join(unpriced)}"}
    return {"status": "OK", "details": f"{len(REWARDS)} rewards loaded."}
