import os
import datetime
from flask import Blueprint, jsonify

from .auth import health_check as auth_health_check
from .gamification import health_check as gamification_health_check
from dependencies import get_gateway, get_redis_client

status_bp = Blueprint('status_bp', __name__)

# --- Helper Check Functions ---

def check_redis():
    """Checks if the Redis server is responsive."""
    try:
        get_redis_client().ping()
        return {"status": "OK", "details": "Ping successful."}
    except Exception as e:
        return {"status": "ERROR", "details": f"Failed to ping Redis server: {str(e)}"}

def check_sheet_gateway():
    """Reports configuration and breaker state without calling the remote."""
    gateway = get_gateway()
    if not gateway.configured:
        return {"status": "WARNING", "details": "APPS_SCRIPT_URL is not set. Running in offline demo mode."}
    state = gateway.breaker.state
    if state == gateway.breaker.OPEN:
        return {"status": "WARNING", "details": f"Circuit breaker is open after {gateway.breaker.failures} failure(s)."}
    return {"status": "OK", "details": f"Circuit breaker is {state}."}

def check_gemini_api():
    """Only checks that a key is present; a real call would spend quota."""
    if not os.environ.get("GEMINI_API_KEY"):
        return {"status": "ERROR", "details": "No GEMINI_API_KEY environment variable found."}
    return {"status": "OK", "details": "GEMINI_API_KEY is configured."}

# --- Main Endpoint ---
@status_bp.route('/status')
def system_status():
    all_checks = {
        "Redis Cache": check_redis(),
        "Sheet Endpoint": check_sheet_gateway(),
        "Gemini AI API": check_gemini_api(),
        "Auth": auth_health_check(),
        "Gamification": gamification_health_check(),
    }
    healthy = all(result["status"] != "ERROR" for result in all_checks.values())
    return jsonify({
        "status": "OK" if healthy else "DEGRADED",
        "timestamp": datetime.datetime.now(datetime.timezone.utc).isoformat(),
        "checks": all_checks,
    }), 200 if healthy else 503
