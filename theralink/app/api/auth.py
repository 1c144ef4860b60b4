"""Wallet authentication endpoints."""
from __future__ import annotations

import hmac
from http import HTTPStatus
from typing import Any, Mapping

from flask import current_app, jsonify, request, session
from flask.typing import ResponseReturnValue
from flask_jwt_extended import (
    create_access_token,
    get_jwt_identity,
    jwt_required,
    set_access_cookies,
    unset_jwt_cookies,
)

from theralink.app.middleware import record_audit_entity
from theralink.app.models import User, utcnow
from theralink.app.services.wallet import (
    NonceBoundVerifier,
    WalletVerificationError,
    WalletVerifier,
    generate_nonce,
)
from theralink.extensions import db

from . import api_bp

NONCE_SESSION_KEY = "siwe_nonce"


def _wallet_verifier() -> WalletVerifier:
    return current_app.extensions.get("wallet_verifier") or NonceBoundVerifier()


@api_bp.get("/nonce")
def issue_nonce() -> ResponseReturnValue:
    """Issue a challenge nonce for the wallet to sign."""

    nonce = generate_nonce()
    session[NONCE_SESSION_KEY] = nonce
    return jsonify(nonce=nonce), HTTPStatus.OK


@api_bp.post("/auth/login")
def login() -> ResponseReturnValue:
    """Verify a signed wallet payload and start a session."""

    body = request.get_json(silent=True) or {}
    if not isinstance(body, Mapping):
        return jsonify(message="Request body must be a JSON object."), HTTPStatus.BAD_REQUEST

    payload = body.get("payload") or {}
    nonce = body.get("nonce") or ""
    if not isinstance(payload, Mapping) or not isinstance(nonce, str):
        return jsonify(message="payload must be an object and nonce a string."), HTTPStatus.BAD_REQUEST

    nonce = nonce.strip()
    if not payload or not nonce:
        return jsonify(message="payload and nonce are required."), HTTPStatus.BAD_REQUEST

    issued_nonce = session.pop(NONCE_SESSION_KEY, None)
    if not issued_nonce or not hmac.compare_digest(issued_nonce.encode(), nonce.encode()):
        return jsonify(message="Invalid nonce.", isValid=False), HTTPStatus.BAD_REQUEST

    try:
        wallet = _wallet_verifier().verify(payload, nonce)
    except WalletVerificationError as exc:
        current_app.logger.warning("Wallet verification failed: %s", exc)
        return jsonify(message=str(exc), isValid=False), HTTPStatus.UNAUTHORIZED

    user = User.query.filter_by(wallet_address=wallet.address.lower()).first()
    if user is None:
        user = User(wallet_address=wallet.address.lower())
    if wallet.username:
        user.username = wallet.username
    if wallet.profile_picture_url:
        user.profile_picture_url = wallet.profile_picture_url
    user.last_login_at = utcnow()
    db.session.add(user)
    db.session.commit()
    record_audit_entity(user.id)

    response = jsonify(status="success", isValid=True, user=user.to_dict())
    set_access_cookies(response, create_access_token(identity=str(user.id)))
    return response, HTTPStatus.OK


@api_bp.get("/auth/me")
@jwt_required(optional=True)
def current_user() -> ResponseReturnValue:
    """Return the signed-in user, if a session is active."""

    user = resolve_user(get_jwt_identity())
    if user is None:
        return jsonify(user=None), HTTPStatus.UNAUTHORIZED
    return jsonify(user=user.to_dict()), HTTPStatus.OK


@api_bp.post("/auth/logout")
def logout() -> ResponseReturnValue:
    """Clear the session cookie."""

    response = jsonify(message="Signed out.")
    unset_jwt_cookies(response)
    session.pop(NONCE_SESSION_KEY, None)
    return response, HTTPStatus.OK


def resolve_user(identity: Any) -> User | None:
    """Map a JWT identity to a user record."""

    if identity is None:
        return None
    try:
        user_id = int(identity)
    except (TypeError, ValueError):
        return None
    return db.session.get(User, user_id)
