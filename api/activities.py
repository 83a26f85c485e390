# FILE: saveraks-backend/api/activities.py

import logging
from flask import Blueprint, request, jsonify

import gemini_service
from .auth import token_required
from .cache_utils import invalidate_leaderboard_cache
from .error_utils import create_error_response, bad_request_error
from .pydantic_models import CommuteEntry, CommuteRequest, EnergyPointEntry, Evidence, GreenPointEntry
from .sanitization import sanitize_filename
from .users import profile_payload
from dependencies import MAX_UPLOAD_BYTES, get_gateway, get_recorder
from extensions import limiter, AI_LIMIT
from image_utils import InvalidUpload, compress_image, read_upload, to_base64

activities_bp = Blueprint('activities_bp', __name__)

def record_activity(session, entry, status_code=200, **extra):
    """Logs an entry, reconciles the session's points and builds the response."""
    outcome = get_recorder().record(session, entry)
    invalidate_leaderboard_cache()
    body = profile_payload(outcome.user, offline=not outcome.synced)
    body["pointsAwarded"] = outcome.points_awarded
    body["activity"] = {"kind": entry.kind.value, "label": entry.label, "points": entry.points}
    body.update(extra)
    return jsonify(body), status_code

def _image_evidence(data: bytes, file_name=None) -> Evidence:
    return Evidence(data=to_base64(compress_image(data)), mime_type="image/jpeg", file_name=file_name)

@activities_bp.route('/activities/commute', methods=['POST'])
@token_required
def log_commute(session):
    req_data = CommuteRequest.model_validate(request.get_json())
    return record_activity(session, CommuteEntry(mode=req_data.mode), status_code=201)

@activities_bp.route('/activities/green', methods=['POST'])
@token_required
def log_green_evidence(session):
    try:
        data, mime_type = read_upload(request.files.get('file'), MAX_UPLOAD_BYTES, allow_video=True)
        file_name = sanitize_filename(request.files['file'].filename)
        if mime_type.startswith('image/'):
            evidence = _image_evidence(data, file_name)
        else:
            # Videos go through untouched; the sheet endpoint stores them in Drive
            evidence = Evidence(data=to_base64(data), mime_type=mime_type, file_name=file_name)
    except InvalidUpload as e:
        return bad_request_error("INVALID_UPLOAD", str(e))

    return record_activity(session, GreenPointEntry(evidence=evidence), status_code=201)

@activities_bp.route('/activities/energy', methods=['POST'])
@token_required
@limiter.limit(AI_LIMIT)
def log_energy_bill(session):
    try:
        data, mime_type = read_upload(request.files.get('file'), MAX_UPLOAD_BYTES)
        # Decode first so an unreadable image never spends model quota
        evidence = _image_evidence(data, sanitize_filename(request.files['file'].filename))
        bill = gemini_service.analyze_utility_bill(data, mime_type)
    except InvalidUpload as e:
        return bad_request_error("INVALID_UPLOAD", str(e))
    except gemini_service.AIAnalysisError as e:
        logging.error(f"Bill reading failed for {session.user.id}: {e}")
        return create_error_response("AI_ANALYSIS_FAILED", "Could not read bill.", status_code=502)

    entry = EnergyPointEntry(bill=bill, evidence=evidence)
    return record_activity(session, entry, status_code=201, bill=bill.model_dump())

@activities_bp.route('/scan', methods=['POST'])
@token_required
@limiter.limit(AI_LIMIT)
def scan_environment(session):
    """Classifies a campus photo and, when it earns points, logs it as the matching action."""
    try:
        data, mime_type = read_upload(request.files.get('file'), MAX_UPLOAD_BYTES)
        evidence = _image_evidence(data)
        scan = gemini_service.analyze_environment_image(data, mime_type)
    except InvalidUpload as e:
        return bad_request_error("INVALID_UPLOAD", str(e))
    except gemini_service.AIAnalysisError as e:
        logging.error(f"Scan failed for {session.user.id}: {e}")
        return create_error_response("AI_ANALYSIS_FAILED", status_code=502)

    entry = gemini_service.entry_for_scan(scan, evidence=evidence)
    if entry is None:
        body = profile_payload(session.user, offline=get_gateway().offline)
        body.update({"scan": scan.model_dump(), "pointsAwarded": 0, "activity": None})
        return jsonify(body), 200
    return record_activity(session, entry, status_code=201, scan=scan.model_dump())
