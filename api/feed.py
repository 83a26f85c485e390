from flask import Blueprint, request, jsonify

from .auth import token_required
from .error_utils import not_found_error
from dependencies import get_feed

feed_bp = Blueprint('feed_bp', __name__)

@feed_bp.route('', methods=['GET'])
@token_required
def get_feed_items(session):
    limit = min(max(request.args.get('limit', 20, type=int), 1), 50)
    items = get_feed().recent(limit)
    return jsonify([item.model_dump(mode="json") for item in items]), 200

@feed_bp.route('/<item_id>/like', methods=['POST'])
@token_required
def like_feed_item(session, item_id):
    item = get_feed().like(item_id)
    if item is None:
        return not_found_error("FEED_ITEM_NOT_FOUND")
    return jsonify(item.model_dump(mode="json")), 200
