# gdip/routes/account.py
"""
Account routes shared by every service role.

The role a request acts as is always the running service's SERVICE_ROLE:
registering on the sponsor service creates a sponsor, and a driver token
presented to the sponsor service is refused.
"""
from flask import Blueprint, current_app, g, jsonify, request

from security_config import rate_limiter

from gdip.decorators.role_required import service_role_required
from gdip.errors import RateLimitedError
from gdip.services.account_service import AccountService
from gdip.services.auth_service import AuthService
from gdip.utils.request_helpers import json_body

bp = Blueprint("account", __name__)


def _service_role() -> str:
    return current_app.config["SERVICE_ROLE"]


@bp.get("/healthz")
def healthz():
    return jsonify({"ok": True, "service": _service_role()})


@bp.post("/auth/register")
def register():
    user = AccountService.register(_service_role(), json_body())
    return jsonify({"user": AccountService.serialize_user(user)}), 201


@bp.post("/auth/login")
def login():
    payload = json_body()
    email = payload.get("email")
    limiter_key = f"login:{request.remote_addr}:{str(email or '').strip().lower()}"
    if rate_limiter.is_rate_limited(
        limiter_key,
        max_attempts=current_app.config.get("LOGIN_MAX_ATTEMPTS", 10),
        window_minutes=current_app.config.get("LOGIN_WINDOW_MINUTES", 15),
    ):
        current_app.logger.warning("[AUTH] Login rate limit hit for %s", limiter_key)
        raise RateLimitedError()

    user = AccountService.authenticate(_service_role(), email, payload.get("password"))
    rate_limiter.reset(limiter_key)

    token = AuthService.issue_token(user)
    response = jsonify({
        "ok": True,
        "user": {"id": user.UserID, "email": user.Email, "role": user.Role},
    })
    AuthService.set_auth_cookie(response, token)
    current_app.logger.info("[AUTH] %s user id=%s logged in", user.Role, user.UserID)
    return response


@bp.post("/auth/logout")
def logout():
    response = jsonify({"ok": True})
    AuthService.clear_auth_cookie(response)
    return response


@bp.get("/me")
@service_role_required
def me():
    profile = AccountService.get_profile(g.user)
    return jsonify({
        "user": AccountService.serialize_user(g.user),
        "profile": AccountService.serialize_profile(profile),
    })


@bp.put("/me/profile")
@service_role_required
def update_profile():
    profile = AccountService.update_profile(g.user, json_body())
    return jsonify({"ok": True, "profile": AccountService.serialize_profile(profile)})


@bp.put("/me/password")
@service_role_required
def change_password():
    payload = json_body()
    AccountService.change_password(
        g.user,
        payload.get("currentPassword", payload.get("current_password")),
        payload.get("newPassword", payload.get("new_password")),
    )
    return jsonify({"ok": True})
