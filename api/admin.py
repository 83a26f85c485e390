import logging
from flask import Blueprint, jsonify
from pydantic import ValidationError

from .auth import token_required, admin_required
from .gamification import fetch_leaders, rank_users
from .pydantic_models import SchoolStats
from dependencies import get_gateway, get_map_board

admin_bp = Blueprint('admin_bp', __name__)

TOP_LEADERS = 5

def get_school_stats():
    """School-wide totals from the sheet endpoint. Zeros when it has no answer."""
    gateway = get_gateway()
    raw = gateway.admin_stats()
    if raw is None:
        return SchoolStats(), True
    try:
        return SchoolStats.model_validate(raw), False
    except ValidationError as e:
        logging.error(f"Sheet endpoint returned malformed admin stats: {e}")
        return SchoolStats(), False

def gateway_health():
    gateway = get_gateway()
    return {
        "configured": gateway.configured,
        "breaker": gateway.breaker.state,
        "consecutiveFailures": gateway.breaker.failures,
    }

@admin_bp.route('/admin/stats', methods=['GET'])
@token_required
@admin_required
def get_admin_stats(session):
    stats, stats_offline = get_school_stats()
    users, leaders_offline = fetch_leaders()
    leaders = rank_users(users, session.user.id)[:TOP_LEADERS]

    return jsonify({
        "stats": stats.model_dump(),
        "topLeaders": [entry.model_dump() for entry in leaders],
        "openPins": get_map_board().open_count(),
        "gateway": gateway_health(),
        "offline": stats_offline or leaders_offline,
    }), 200
