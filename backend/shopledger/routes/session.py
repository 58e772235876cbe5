# backend/shopledger/routes/session.py
"""
Terminal session routes.

The remote sign-in screen is out of scope; this surface only reports the
session and toggles the device-local admin bypass.

SECURITY: enabling the bypass grants the admin role, so it requires the
configured local admin credentials. Disabling it never does.
"""
from flask import Blueprint, current_app, jsonify, request

from ..services import get_services
from ..services.session_service import verify_local_admin

session_bp = Blueprint("session", __name__, url_prefix="/api/session")


@session_bp.get("")
def get_session():
    return get_services().session.current.to_dict(), 200


@session_bp.delete("")
def sign_out():
    """Clear the local admin flag and drop any remote session."""
    return get_services().session.sign_out().to_dict(), 200


@session_bp.post("/local-admin")
def enable_local_admin():
    """
    Enable the local admin bypass.

    Request body: {"username": "...", "password": "..."}
    Returns 403 while no LOCAL_ADMIN_PASSWORD_HASH is configured and 401 on
    wrong credentials.
    """
    password_hash = current_app.config.get("LOCAL_ADMIN_PASSWORD_HASH")
    if not password_hash:
        return jsonify({"error": "Local admin sign-in is not configured"}), 403

    payload = request.get_json(silent=True) or {}
    if not isinstance(payload, dict):
        payload = {}

    if not verify_local_admin(
        payload.get("username"),
        payload.get("password"),
        expected_username=current_app.config.get("LOCAL_ADMIN_USERNAME", "admin"),
        password_hash=password_hash,
    ):
        current_app.logger.warning("Rejected local admin sign-in from %s", request.remote_addr)
        return jsonify({"error": "Invalid credentials"}), 401

    return get_services().session.enable_local_admin().to_dict(), 200


@session_bp.delete("/local-admin")
def disable_local_admin():
    return get_services().session.disable_local_admin().to_dict(), 200
