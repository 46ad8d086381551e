"""ORM model for community members and administrators."""

from sqlalchemy import Boolean, Column, DateTime, Integer, String, Text, func

from hearth.models.base import Base

ROLE_ADMIN = "admin"
ROLE_MEMBER = "member"
ROLES = (ROLE_ADMIN, ROLE_MEMBER)

STATUS_PENDING = "pending"
STATUS_APPROVED = "approved"
STATUS_REJECTED = "rejected"
STATUSES = (STATUS_PENDING, STATUS_APPROVED, STATUS_REJECTED)

PRIVACY_LEVELS = ("public", "members", "private")


class User(Base):
    """
    Account with a role (admin/member) and an approval status.

    Registration creates member/pending; only admins change role or status.
    """

    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    full_name = Column(String(255), nullable=False)
    email = Column(String(255), nullable=False, unique=True, index=True)
    password_hash = Column(String(255), nullable=False)
    role = Column(String(32), nullable=False, default=ROLE_MEMBER)
    status = Column(String(32), nullable=False, default=STATUS_PENDING, index=True)
    bio = Column(Text, nullable=True)
    skills = Column(String(500), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=True)
    last_login = Column(DateTime(timezone=True), nullable=True)
    email_notifications = Column(Boolean, nullable=False, default=True)
    push_notifications = Column(Boolean, nullable=False, default=True)
    privacy_level = Column(String(16), nullable=False, default="public")

    @property
    def is_admin(self) -> bool:
        return self.role == ROLE_ADMIN
