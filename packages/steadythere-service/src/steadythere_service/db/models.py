"""SQLAlchemy ORM models."""

from __future__ import annotations

import uuid
from datetime import UTC, datetime

from sqlalchemy import Column, DateTime, ForeignKey, String, Text, UniqueConstraint
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import DeclarativeBase, relationship


class Base(DeclarativeBase):
    pass


def _now() -> datetime:
    return datetime.now(UTC)


class UserModel(Base):
    """Credential record. Everything user-visible lives on the profile."""

    __tablename__ = "users"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    email = Column(Text, unique=True, nullable=False)
    password_hash = Column(Text, nullable=False)
    created_at = Column(DateTime(timezone=True), default=_now)

    profile = relationship(
        "ProfileModel", back_populates="user", uselist=False, cascade="all, delete-orphan"
    )


class ProfileModel(Base):
    __tablename__ = "profiles"

    id = Column(UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), primary_key=True)
    email = Column(Text, nullable=False)
    name = Column(Text, nullable=True)
    avatar_url = Column(Text, nullable=True)
    timezone = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), default=_now)
    updated_at = Column(DateTime(timezone=True), default=_now, onupdate=_now)

    user = relationship("UserModel", back_populates="profile")
    memberships = relationship(
        "OrganizationMemberModel", back_populates="profile", cascade="all, delete-orphan"
    )


class OrganizationModel(Base):
    """Tenant boundary."""

    __tablename__ = "organizations"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    name = Column(Text, nullable=False)
    slug = Column(Text, unique=True, nullable=False)
    timezone = Column(Text, nullable=False, default="America/New_York")
    created_at = Column(DateTime(timezone=True), default=_now)
    updated_at = Column(DateTime(timezone=True), default=_now, onupdate=_now)

    members = relationship(
        "OrganizationMemberModel", back_populates="organization", cascade="all, delete-orphan"
    )


class OrganizationMemberModel(Base):
    __tablename__ = "organization_members"
    __table_args__ = (UniqueConstraint("organization_id", "user_id"),)

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    organization_id = Column(
        UUID(as_uuid=True), ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False
    )
    user_id = Column(
        UUID(as_uuid=True), ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False
    )
    role = Column(String, nullable=False, default="volunteer")
    created_at = Column(DateTime(timezone=True), default=_now)

    organization = relationship("OrganizationModel", back_populates="members")
    profile = relationship("ProfileModel", back_populates="memberships")
