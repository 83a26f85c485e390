from flask import Blueprint, request, jsonify

from .activities import record_activity
from .auth import token_required, admin_required
from .error_utils import create_error_response, not_found_error
from .pydantic_models import InvalidPinTransition, PinRequest, PinStatusRequest, ReportEntry
from dependencies import get_map_board
from map_board import PinNotFound

map_pins_bp = Blueprint('map_pins_bp', __name__)

@map_pins_bp.route('/pins', methods=['GET'])
@token_required
def list_pins(session):
    pins = get_map_board().list_pins()
    return jsonify([pin.model_dump(mode="json") for pin in pins]), 200

@map_pins_bp.route('/pins', methods=['POST'])
@token_required
def report_issue(session):
    """Drops a new OPEN pin on the campus map and rewards the reporter."""
    req_data = PinRequest.model_validate(request.get_json())
    board = get_map_board()
    pin = board.add_pin(board.build_pin(req_data))
    return record_activity(session, ReportEntry(pin=pin), status_code=201, pin=pin.model_dump(mode="json"))

@map_pins_bp.route('/pins/<pin_id>', methods=['PATCH'])
@token_required
@admin_required
def update_pin_status(session, pin_id):
    req_data = PinStatusRequest.model_validate(request.get_json())
    try:
        pin = get_map_board().set_status(pin_id, req_data.status)
    except PinNotFound:
        return not_found_error("PIN_NOT_FOUND")
    except InvalidPinTransition as e:
        return create_error_response("PIN_STATUS_INVALID", str(e), status_code=409)
    return jsonify(pin.model_dump(mode="json")), 200
