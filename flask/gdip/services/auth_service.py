"""
Auth helper shared by every role service.

Wraps password hashing (Flask-Bcrypt) and signed-token issuance / cookie
handling (Flask-JWT-Extended). Tokens carry the user id as `sub` and the
account role as a `role` claim; each service only honours its own role.
"""
from __future__ import annotations

from typing import Optional

from flask import current_app, jsonify
from flask_jwt_extended import (
    create_access_token,
    decode_token,
    set_access_cookies,
    unset_jwt_cookies,
)

from ..extensions import bcrypt, db, jwt
from ..models import User


class AuthService:
    """Password hashing and signed-token helpers."""

    @staticmethod
    def hash_password(password: str) -> str:
        hashed = bcrypt.generate_password_hash(
            password, current_app.config.get("BCRYPT_LOG_ROUNDS", 12)
        )
        return hashed.decode("utf-8") if isinstance(hashed, bytes) else hashed

    @staticmethod
    def verify_password(password: str, password_hash: Optional[str]) -> bool:
        if not password or not password_hash:
            return False
        try:
            return bcrypt.check_password_hash(password_hash, password)
        except ValueError:
            # Malformed hash in the row (e.g. seeded by hand)
            current_app.logger.warning("[AUTH] Unreadable password hash encountered")
            return False

    @staticmethod
    def issue_token(user: User) -> str:
        return create_access_token(
            identity=str(user.UserID),
            additional_claims={"role": user.Role},
        )

    @staticmethod
    def read_claims(token: str) -> dict:
        """Decode and verify a token issued by issue_token()."""
        return decode_token(token)

    @staticmethod
    def set_auth_cookie(response, token: str):
        set_access_cookies(response, token)
        return response

    @staticmethod
    def clear_auth_cookie(response):
        unset_jwt_cookies(response)
        return response


def _error(message: str, status: int):
    return jsonify({"error": message}), status


@jwt.user_identity_loader
def _user_identity(identity):
    return str(identity)


@jwt.user_lookup_loader
def _load_user(_jwt_header, jwt_data):
    try:
        user_id = int(jwt_data["sub"])
    except (KeyError, TypeError, ValueError):
        return None
    return db.session.get(User, user_id)


@jwt.user_lookup_error_loader
def _user_lookup_error(_jwt_header, _jwt_data):
    return _error("Not authenticated", 401)


@jwt.unauthorized_loader
def _missing_token(_reason: str):
    return _error("Not authenticated", 401)


@jwt.invalid_token_loader
def _invalid_token(_reason: str):
    return _error("Invalid token", 401)


@jwt.expired_token_loader
def _expired_token(_jwt_header, _jwt_data):
    return _error("Token expired", 401)


@jwt.revoked_token_loader
def _revoked_token(_jwt_header, _jwt_data):
    return _error("Invalid token", 401)
