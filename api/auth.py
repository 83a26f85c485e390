# FILE: saveraks-backend/api/auth.py

import logging
import uuid
import datetime
from functools import wraps
from typing import Optional
from flask import Blueprint, request, jsonify
import jwt
from pydantic import ValidationError

from .pydantic_models import LoginRequest, RegisterRequest, User, UserRole
from .error_utils import unauthorized_error, forbidden_error, bad_request_error
from .sanitization import sanitize_school_id, sanitize_display_name, sanitize_string
from dependencies import JWT_SECRET_KEY, get_gateway, get_session_store
from extensions import limiter, AUTH_LIMIT
from session_store import Session

auth_bp = Blueprint('auth_bp', __name__)

TOKEN_LIFETIME = datetime.timedelta(days=30)
ADMIN_ID_PREFIX = "ADMIN-"

# --- Helpers ---
def issue_token(session_id: str, user: User) -> str:
    return jwt.encode({
        'sid': session_id, 'user_id': user.id,
        'exp': datetime.datetime.now(datetime.timezone.utc) + TOKEN_LIFETIME
    }, JWT_SECRET_KEY, algorithm="HS256")

def _decode_bearer() -> Optional[dict]:
    auth_header = request.headers.get('Authorization')
    if not auth_header or not auth_header.startswith('Bearer '):
        return None
    return jwt.decode(auth_header.split(' ', 1)[1], JWT_SECRET_KEY, algorithms=["HS256"])

def _optional_session() -> Optional[Session]:
    """The caller's session when a valid token is present, otherwise None."""
    try:
        claims = _decode_bearer()
    except jwt.InvalidTokenError:
        return None
    if not claims or not claims.get('sid'):
        return None
    user = get_session_store().get(claims['sid'])
    return Session(id=claims['sid'], user=user) if user else None

def token_required(f):
    """Resolves the bearer token to a Session and passes it as `session`."""
    @wraps(f)
    def decorated(*args, **kwargs):
        try:
            claims = _decode_bearer()
        except jwt.InvalidTokenError:
            return unauthorized_error("TOKEN_INVALID")
        if not claims:
            return unauthorized_error("TOKEN_MISSING")

        user = get_session_store().get(claims.get('sid', ''))
        if user is None:
            return unauthorized_error("SESSION_EXPIRED")
        kwargs['session'] = Session(id=claims['sid'], user=user)
        return f(*args, **kwargs)
    return decorated

def admin_required(f):
    """Must be applied below token_required."""
    @wraps(f)
    def decorated(*args, **kwargs):
        if not kwargs['session'].user.is_admin:
            return forbidden_error()
        return f(*args, **kwargs)
    return decorated

def role_for_school_id(school_id: str) -> UserRole:
    return UserRole.ADMIN if school_id.upper().startswith(ADMIN_ID_PREFIX) else UserRole.STUDENT

def _user_from_remote(record) -> Optional[User]:
    if not record:
        return None
    try:
        return User.model_validate(record)
    except ValidationError as e:
        logging.error(f"Sheet endpoint returned a malformed user record: {e}")
        return None

def _start_session(user: User, offline: bool):
    store = get_session_store()
    session_id = store.new_session_id()
    store.set(session_id, user)
    return jsonify({
        "token": issue_token(session_id, user),
        "user": user.model_dump(mode="json"),
        "offline": offline,
    }), 200

# --- Endpoints ---
@auth_bp.route('/auth/login', methods=['POST'])
@limiter.limit(AUTH_LIMIT)
def login():
    req_data = LoginRequest.model_validate(request.get_json())
    school_id = sanitize_school_id(req_data.schoolId)
    if not school_id:
        return bad_request_error(message="Please enter your school ID.")

    # Same device, same student: keep the existing session
    existing = _optional_session()
    if existing and existing.user.schoolId == school_id:
        return jsonify({
            "token": issue_token(existing.id, existing.user),
            "user": existing.user.model_dump(mode="json"),
            "offline": get_gateway().offline,
        }), 200

    user = _user_from_remote(get_gateway().login(school_id))
    if user is not None:
        return _start_session(user, offline=False)

    logging.info(f"Using offline login for {school_id}")
    role = role_for_school_id(school_id)
    is_admin = role == UserRole.ADMIN
    demo_user = User(
        id='admin-id' if is_admin else 'demo-id',
        name='School Administrator' if is_admin else 'Demo Student',
        schoolId=school_id,
        role=role,
        points=0,
    )
    return _start_session(demo_user, offline=True)

@auth_bp.route('/auth/register', methods=['POST'])
@limiter.limit(AUTH_LIMIT)
def register():
    req_data = RegisterRequest.model_validate(request.get_json())
    school_id = sanitize_school_id(req_data.schoolId)
    name = sanitize_display_name(req_data.name)
    class_room = sanitize_string(req_data.classRoom, max_length=20) or None
    if not school_id or not name:
        return bad_request_error(message="Please fill in all fields.")

    user = _user_from_remote(get_gateway().register(name, school_id, class_room))
    if user is not None:
        return _start_session(user, offline=False)

    logging.info(f"Using offline registration for {school_id}")
    local_user = User(
        id=uuid.uuid4().hex[:9],
        name=name,
        schoolId=school_id,
        classRoom=class_room,
        role=role_for_school_id(school_id),
        points=0,
    )
    return _start_session(local_user, offline=True)

@auth_bp.route('/auth/logout', methods=['POST'])
@token_required
def logout(session):
    get_session_store().clear(session.id)
    return jsonify({"message": "Logout successful"}), 200

def health_check():
    """Performs a non-destructive health check for the auth module."""
    if not JWT_SECRET_KEY or JWT_SECRET_KEY == "dev-secret-change-me":
        return {"status": "WARNING", "details": "JWT_SECRET_KEY is not set; using the development secret."}
    return {"status": "OK", "details": "JWT signing key is configured."}
