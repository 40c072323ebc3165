# gdip/routes/admin_routes.py
from flask import Blueprint, jsonify, request

from gdip.decorators.role_required import service_role_required
from gdip.services.account_service import AccountService

bp = Blueprint("admin", __name__)


@bp.get("/users")
@service_role_required
def list_users():
    users = AccountService.list_users(request.args.get("role"))
    return jsonify({"users": [AccountService.serialize_user(u) for u in users]})


@bp.get("/users/<int:user_id>")
@service_role_required
def get_user(user_id: int):
    user = AccountService.get_user(user_id)
    return jsonify({
        "user": AccountService.serialize_user(user),
        "profile": AccountService.serialize_profile(AccountService.get_profile(user)),
    })
