"""
Role capability table.

One code base serves all three roles; a running service picks its row from
ROLE_CAPABILITIES by SERVICE_ROLE. The row says which profile table belongs to
the role, which extra profile field the role owns, and which blueprints the
service exposes on top of the shared account routes.
"""
from __future__ import annotations

from typing import Any, Dict

from .models import (
    ROLE_ADMIN,
    ROLE_DRIVER,
    ROLE_SPONSOR,
    AdminProfile,
    DriverProfile,
    SponsorProfile,
)

ROLE_CAPABILITIES: Dict[str, Dict[str, Any]] = {
    ROLE_DRIVER: {
        "label": "Driver",
        "profile_model": DriverProfile,
        # (model attribute, accepted payload keys)
        "profile_field": ("SponsorOrg", ("sponsorOrg", "sponsor_org")),
        "blueprints": ("driver",),
        "default_port": 4002,
    },
    ROLE_SPONSOR: {
        "label": "Sponsor",
        "profile_model": SponsorProfile,
        "profile_field": ("CompanyName", ("companyName", "company_name")),
        "blueprints": ("sponsor",),
        "default_port": 4003,
    },
    ROLE_ADMIN: {
        "label": "Admin",
        "profile_model": AdminProfile,
        "profile_field": ("DisplayName", ("displayName", "display_name")),
        "blueprints": ("admin",),
        "default_port": 4001,
    },
}


def get_capabilities(role: str) -> Dict[str, Any]:
    try:
        return ROLE_CAPABILITIES[(role or "").strip().lower()]
    except KeyError:
        raise ValueError(
            f"Unknown service role {role!r}; expected one of {sorted(ROLE_CAPABILITIES)}"
        )


__all__ = ["ROLE_CAPABILITIES", "get_capabilities"]
