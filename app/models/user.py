"""User and AuditLog models.

Identity is issued by the auth provider as a bearer token; the users table
records role and approval. An account awaiting admin approval has
``is_active = False`` and is rejected by ``core.auth``.
"""

from sqlalchemy import Column, String, DateTime, Boolean, Integer, Text
from sqlalchemy.sql import func
from ..database import Base


class User(Base):
    """User account with a global role.

    Roles:
        admin -- may permanently delete items
        user  -- regular file-manager access
    """

    __tablename__ = "users"

    user_id = Column(String(50), primary_key=True)
    display_name = Column(String(255), nullable=False, default="Default User")
    email = Column(String(255), unique=True, nullable=True)
    role = Column(String(20), nullable=False, default="user")
    is_active = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())


class AuditLog(Base):
    """Immutable record of state-changing operations.

    Fields:
        action        -- sync, purge, trash, restore, create, upload
        resource_type -- file, folder, bucket
        resource_id   -- ID of the affected resource
        details       -- JSON string with additional context
    """

    __tablename__ = "audit_log"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(String(50), nullable=True)
    action = Column(String(50), nullable=False)
    resource_type = Column(String(50), nullable=False)
    resource_id = Column(String(255), nullable=True)
    details = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
