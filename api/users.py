# FILE: saveraks-backend/api/users.py

from flask import Blueprint, jsonify

from .auth import token_required
from dependencies import get_gateway
from leveling import level_progress

users_bp = Blueprint('users_bp', __name__)

def profile_payload(user, offline: bool) -> dict:
    """The profile shape every points-changing endpoint returns."""
    return {
        "user": user.model_dump(mode="json"),
        "progress": level_progress(user.points).to_dict(),
        "offline": offline,
    }

@users_bp.route('/me', methods=['GET'])
@token_required
def get_my_profile(session):
    return jsonify(profile_payload(session.user, get_gateway().offline)), 200
