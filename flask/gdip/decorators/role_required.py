"""
Role decorators for the JSON services.
"""
from functools import wraps

from flask import current_app, g
from flask_jwt_extended import current_user, get_jwt, verify_jwt_in_request

from gdip.errors import ForbiddenError


def service_role_required(f):
    """
    Require a valid auth cookie whose role claim matches this service's role.

    Missing / invalid / expired tokens are answered with 401 by the JWT
    callbacks; a token minted for another role gets a 403.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        verify_jwt_in_request()

        service_role = current_app.config["SERVICE_ROLE"]
        if get_jwt().get("role") != service_role:
            raise ForbiddenError("Wrong role for this service")

        # The account row is authoritative; a role change would invalidate old tokens.
        if current_user.Role != service_role:
            raise ForbiddenError("Wrong role for this service")

        g.user = current_user
        return f(*args, **kwargs)

    return decorated_function


__all__ = ["service_role_required"]
