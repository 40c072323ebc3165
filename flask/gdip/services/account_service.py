from __future__ import annotations

from typing import Any, Dict, List, Optional

from flask import current_app
from sqlalchemy.exc import IntegrityError

from security_config import SecurityValidator

from ..errors import AuthError, ConflictError, NotFoundError, ValidationError
from ..extensions import db
from ..models import ROLES, User
from ..roles import get_capabilities
from .auth_service import AuthService


# (model attribute, accepted payload keys, max length)
CONTACT_FIELDS = (
    ("FirstName", ("firstName", "first_name"), 100),
    ("LastName", ("lastName", "last_name"), 100),
    ("AddressLine1", ("address_line1", "addressLine1", "address"), 255),
    ("AddressLine2", ("address_line2", "addressLine2"), 255),
    ("City", ("city",), 100),
    ("State", ("state",), 100),
    ("PostalCode", ("postal_code", "postalCode"), 20),
    ("Country", ("country",), 100),
)

ROLE_FIELD_MAX_LENGTH = 200


def _first_present(payload: Dict[str, Any], keys) -> Any:
    for key in keys:
        if payload.get(key) not in (None, ""):
            return payload[key]
    return None


def _isoformat(value) -> Optional[str]:
    return value.isoformat() if value else None


class AccountService:
    """Registration, login and profile management for any service role."""

    # ---------------- registration / login ----------------

    @staticmethod
    def normalize_email(email: Any) -> str:
        if not SecurityValidator.validate_email(email):
            raise ValidationError("Invalid input", details={"email": "A valid email is required"})
        return email.strip().lower()

    @staticmethod
    def register(role: str, payload: Dict[str, Any]) -> User:
        """Create a user of `role` plus its profile row."""
        caps = get_capabilities(role)
        role = role.strip().lower()
        email = AccountService.normalize_email(payload.get("email"))
        password = payload.get("password")
        password_error = SecurityValidator.validate_password(password)
        if password_error:
            raise ValidationError("Invalid input", details={"password": password_error})

        profile_values = AccountService._collect_profile_values(role, payload)

        if User.query.filter(User.Email == email).first():
            raise ConflictError("Email already in use")

        user = User(
            Email=email,
            PasswordHash=AuthService.hash_password(password),
            Role=role,
        )
        db.session.add(user)
        try:
            db.session.flush()
            profile = caps["profile_model"](UserID=user.UserID)
            for attr, value in profile_values.items():
                setattr(profile, attr, value)
            db.session.add(profile)
            db.session.commit()
        except IntegrityError:
            # Lost a race with a concurrent registration of the same email
            db.session.rollback()
            raise ConflictError("Email already in use")

        current_app.logger.info("[ACCOUNT] Registered %s user id=%s", role, user.UserID)
        return user

    @staticmethod
    def authenticate(role: str, email: Any, password: Any) -> User:
        if not isinstance(email, str) or not email.strip() or not isinstance(password, str) or not password:
            raise ValidationError("Invalid input")

        user = User.query.filter(
            User.Email == email.strip().lower(), User.Role == role
        ).first()
        if not user or not AuthService.verify_password(password, user.PasswordHash):
            raise AuthError("Invalid credentials")
        return user

    @staticmethod
    def change_password(user: User, current_password: Any, new_password: Any) -> None:
        if not isinstance(current_password, str) or not current_password:
            raise ValidationError("Invalid input", details={"currentPassword": "Required"})
        password_error = SecurityValidator.validate_password(new_password)
        if password_error:
            raise ValidationError("Invalid input", details={"newPassword": password_error})

        if not AuthService.verify_password(current_password, user.PasswordHash):
            raise AuthError("Invalid current password")
        if AuthService.verify_password(new_password, user.PasswordHash):
            raise ValidationError("New password must be different")

        user.PasswordHash = AuthService.hash_password(new_password)
        db.session.commit()
        current_app.logger.info("[ACCOUNT] Password changed for user id=%s", user.UserID)

    # ---------------- profile ----------------

    @staticmethod
    def get_profile(user: User):
        model = get_capabilities(user.Role)["profile_model"]
        return db.session.get(model, user.UserID)

    @staticmethod
    def update_profile(user: User, payload: Dict[str, Any]):
        """Partial update; the profile row is created on first write."""
        values = AccountService._collect_profile_values(user.Role, payload)
        if not values:
            raise ValidationError("No profile fields supplied")

        model = get_capabilities(user.Role)["profile_model"]
        profile = db.session.get(model, user.UserID)
        if profile is None:
            profile = model(UserID=user.UserID)
            db.session.add(profile)

        for attr, value in values.items():
            setattr(profile, attr, value)

        try:
            db.session.commit()
        except IntegrityError:
            # Concurrent first write created the row; apply onto it instead.
            db.session.rollback()
            profile = db.session.get(model, user.UserID)
            for attr, value in values.items():
                setattr(profile, attr, value)
            db.session.commit()
        return profile

    @staticmethod
    def _collect_profile_values(role: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        """Validate the profile keys present in payload; absent keys are left alone."""
        errors: Dict[str, str] = {}
        values: Dict[str, Any] = {}

        for attr, keys, max_len in CONTACT_FIELDS:
            raw = _first_present(payload, keys)
            if raw is None:
                continue
            if not isinstance(raw, str):
                errors[keys[0]] = "Must be a string"
                continue
            cleaned = SecurityValidator.sanitize_string(raw, max_len)
            if not cleaned:
                errors[keys[0]] = "Must not be empty"
                continue
            values[attr] = cleaned

        dob = payload.get("dob")
        if dob not in (None, ""):
            parsed = SecurityValidator.parse_date(dob)
            if parsed is None:
                errors["dob"] = "Expected YYYY-MM-DD"
            else:
                values["DOB"] = parsed

        phone = payload.get("phone")
        if phone not in (None, ""):
            if not SecurityValidator.validate_phone(phone):
                errors["phone"] = "Expected 7 to 25 digits or separators"
            else:
                values["Phone"] = phone.strip()

        attr, keys = get_capabilities(role)["profile_field"]
        raw = _first_present(payload, keys)
        if raw is not None:
            cleaned = SecurityValidator.sanitize_string(raw, ROLE_FIELD_MAX_LENGTH) if isinstance(raw, str) else ""
            if not cleaned:
                errors[keys[0]] = "Must be a non-empty string"
            else:
                values[attr] = cleaned

        if errors:
            raise ValidationError("Invalid input", details=errors)
        return values

    # ---------------- admin ----------------

    @staticmethod
    def list_users(role: Optional[str] = None) -> List[User]:
        query = User.query
        if role:
            role = role.strip().lower()
            if role not in ROLES:
                raise ValidationError(f"Unknown role {role!r}")
            query = query.filter(User.Role == role)
        return query.order_by(User.UserID.asc()).all()

    @staticmethod
    def get_user(user_id: int) -> User:
        user = db.session.get(User, user_id)
        if not user:
            raise NotFoundError("User not found")
        return user

    # ---------------- serialization ----------------

    @staticmethod
    def serialize_user(user: User) -> Dict[str, Any]:
        return {
            "id": user.UserID,
            "email": user.Email,
            "role": user.Role,
            "created_at": _isoformat(user.CreatedAt),
        }

    @staticmethod
    def serialize_profile(profile) -> Optional[Dict[str, Any]]:
        if profile is None:
            return None
        data = {
            "user_id": profile.UserID,
            "first_name": profile.FirstName,
            "last_name": profile.LastName,
            "dob": _isoformat(profile.DOB),
            "phone": profile.Phone,
            "address_line1": profile.AddressLine1,
            "address_line2": profile.AddressLine2,
            "city": profile.City,
            "state": profile.State,
            "postal_code": profile.PostalCode,
            "country": profile.Country,
            "created_at": _isoformat(profile.CreatedAt),
            "updated_at": _isoformat(profile.UpdatedAt),
        }
        for attr, column in (("SponsorOrg", "sponsor_org"), ("CompanyName", "company_name"), ("DisplayName", "display_name")):
            if hasattr(profile, attr):
                data[column] = getattr(profile, attr)
        return data
