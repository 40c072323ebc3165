"""
All SQLAlchemy models for the GDIP rewards services.

The three role services (admin / driver / sponsor) share one database, so
every table lives here. Attribute names follow the project convention
(CamelCase); the persisted column names are the snake_case ones the schema
has always used.
"""
from datetime import datetime

from .extensions import db


ROLE_ADMIN = "admin"
ROLE_DRIVER = "driver"
ROLE_SPONSOR = "sponsor"
ROLES = (ROLE_ADMIN, ROLE_DRIVER, ROLE_SPONSOR)

APPLICATION_PENDING = "pending"
APPLICATION_ACCEPTED = "accepted"
APPLICATION_REJECTED = "rejected"
APPLICATION_STATUSES = (APPLICATION_PENDING, APPLICATION_ACCEPTED, APPLICATION_REJECTED)
ACTIVE_APPLICATION_STATUSES = {APPLICATION_PENDING, APPLICATION_ACCEPTED}


# =============================================================================
# CORE ENTITIES
# Users and their role-specific profiles.
# =============================================================================

class User(db.Model):
    __tablename__ = "users"

    UserID        = db.Column("id", db.Integer, primary_key=True, autoincrement=True)
    Email         = db.Column("email", db.String(255), nullable=False, unique=True)
    PasswordHash  = db.Column("password_hash", db.String(255), nullable=False)
    Role          = db.Column("role", db.Enum(*ROLES, name="user_role"), nullable=False)
    CreatedAt     = db.Column("created_at", db.DateTime, nullable=False, default=datetime.utcnow)

    driver_profile = db.relationship("DriverProfile", uselist=False, back_populates="user")
    sponsor_profile = db.relationship("SponsorProfile", uselist=False, back_populates="user")
    admin_profile = db.relationship("AdminProfile", uselist=False, back_populates="user")

    def __repr__(self) -> str:
        return f"<User {self.UserID} {self.Role}>"


class ProfileMixin:
    """Contact columns every role profile carries."""

    FirstName     = db.Column("first_name", db.String(100))
    LastName      = db.Column("last_name", db.String(100))
    DOB           = db.Column("dob", db.Date)
    Phone         = db.Column("phone", db.String(25))
    AddressLine1  = db.Column("address_line1", db.String(255))
    AddressLine2  = db.Column("address_line2", db.String(255))
    City          = db.Column("city", db.String(100))
    State         = db.Column("state", db.String(100))
    PostalCode    = db.Column("postal_code", db.String(20))
    Country       = db.Column("country", db.String(100))

    CreatedAt     = db.Column("created_at", db.DateTime, default=datetime.utcnow)
    UpdatedAt     = db.Column("updated_at", db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)


class DriverProfile(ProfileMixin, db.Model):
    __tablename__ = "driver_profiles"

    UserID        = db.Column("user_id", db.Integer, db.ForeignKey("users.id"), primary_key=True)
    # Matched against SponsorProfile.CompanyName by the affiliation resolver.
    SponsorOrg    = db.Column("sponsor_org", db.String(200))

    user = db.relationship("User", back_populates="driver_profile")


class SponsorProfile(ProfileMixin, db.Model):
    __tablename__ = "sponsor_profiles"

    UserID        = db.Column("user_id", db.Integer, db.ForeignKey("users.id"), primary_key=True)
    CompanyName   = db.Column("company_name", db.String(200))

    user = db.relationship("User", back_populates="sponsor_profile")


class AdminProfile(ProfileMixin, db.Model):
    __tablename__ = "admin_profiles"

    UserID        = db.Column("user_id", db.Integer, db.ForeignKey("users.id"), primary_key=True)
    DisplayName   = db.Column("display_name", db.String(200))

    user = db.relationship("User", back_populates="admin_profile")


# =============================================================================
# SPONSOR PROGRAM
# Ads, driver applications and the points ledger.
# =============================================================================

class Ad(db.Model):
    __tablename__ = "ads"

    AdID          = db.Column("id", db.Integer, primary_key=True, autoincrement=True)
    SponsorID     = db.Column("sponsor_id", db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    Title         = db.Column("title", db.String(200), nullable=False)
    Description   = db.Column("description", db.Text)
    Requirements  = db.Column("requirements", db.Text)
    Benefits      = db.Column("benefits", db.Text)
    CreatedAt     = db.Column("created_at", db.DateTime, nullable=False, default=datetime.utcnow)

    sponsor = db.relationship("User")


class Application(db.Model):
    __tablename__ = "applications"
    # ActiveSlot is 1 while the application is pending/accepted and NULL once
    # rejected. NULLs never collide in a unique index, so this allows any
    # number of rejected rows but only one active row per (driver, sponsor).
    __table_args__ = (
        db.UniqueConstraint("driver_id", "sponsor_id", "active_slot", name="uq_applications_active_pair"),
    )

    ApplicationID = db.Column("id", db.Integer, primary_key=True, autoincrement=True)
    DriverID      = db.Column("driver_id", db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    SponsorID     = db.Column("sponsor_id", db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    AdID          = db.Column("ad_id", db.Integer, db.ForeignKey("ads.id", ondelete="SET NULL"), nullable=True)

    Status        = db.Column(
        "status",
        db.Enum(*APPLICATION_STATUSES, name="application_status"),
        nullable=False,
        default=APPLICATION_PENDING,
    )
    ActiveSlot    = db.Column("active_slot", db.SmallInteger, nullable=True, default=1)

    AppliedAt     = db.Column("applied_at", db.DateTime, nullable=False, default=datetime.utcnow)
    ReviewedAt    = db.Column("reviewed_at", db.DateTime)
    ReviewedBy    = db.Column("reviewed_by", db.Integer, db.ForeignKey("users.id"))
    Notes         = db.Column("notes", db.String(1000))

    driver = db.relationship("User", foreign_keys=[DriverID])
    sponsor = db.relationship("User", foreign_keys=[SponsorID])
    ad = db.relationship("Ad")

    @property
    def is_terminal(self) -> bool:
        return self.Status != APPLICATION_PENDING


class DriverPointsLedger(db.Model):
    """Append-only journal; a driver's balance is the sum of Delta."""
    __tablename__ = "driver_points_ledger"

    EntryID       = db.Column("id", db.Integer, primary_key=True, autoincrement=True)
    DriverID      = db.Column("driver_id", db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    SponsorID     = db.Column("sponsor_id", db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    Delta         = db.Column("delta", db.Integer, nullable=False)
    Reason        = db.Column("reason", db.String(255), nullable=False)
    CreatedAt     = db.Column("created_at", db.DateTime, nullable=False, default=datetime.utcnow)


# =============================================================================
# CATALOG
# Sponsor-curated redeemable items.
# =============================================================================

class CatalogItem(db.Model):
    __tablename__ = "catalog_items"

    ItemID        = db.Column("id", db.Integer, primary_key=True, autoincrement=True)
    SponsorID     = db.Column("sponsor_id", db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    EbayItemID    = db.Column("ebay_item_id", db.String(100))
    Title         = db.Column("title", db.String(255), nullable=False)
    Description   = db.Column("description", db.Text)
    ImageURL      = db.Column("image_url", db.String(1024))
    Price         = db.Column("price", db.Numeric(10, 2), nullable=False)
    PointCost     = db.Column("point_cost", db.Integer, nullable=False)
    CreatedAt     = db.Column("created_at", db.DateTime, nullable=False, default=datetime.utcnow)
