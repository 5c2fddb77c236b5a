from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlalchemy import (
    Boolean,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column

from locket.db.base import Base
from locket.utils.time_utils import utc_now

ROLE_OWNER = "owner"
ROLE_MEMBER = "member"


class Locket(Base):
    """A private space shared by a group of users."""

    __tablename__ = "lockets"

    id: Mapped[str] = mapped_column(String, primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    admin_user_id: Mapped[str] = mapped_column(String(255), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utc_now)


class LocketMember(Base):
    """Membership of a user in a locket. Rows are inserted once and never updated."""

    __tablename__ = "locket_members"
    __table_args__ = (
        UniqueConstraint("locket_id", "user_id", name="uq_member_locket_user"),
        Index("ix_member_user", "user_id"),
    )

    id: Mapped[str] = mapped_column(String, primary_key=True)
    locket_id: Mapped[str] = mapped_column(String, ForeignKey("lockets.id"), nullable=False)
    user_id: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    display_name: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    role: Mapped[str] = mapped_column(String(16), nullable=False, default=ROLE_MEMBER)
    joined_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utc_now)


class InviteCode(Base):
    """Shareable code that admits its holder to one locket."""

    __tablename__ = "invite_codes"
    __table_args__ = (Index("ix_invite_locket", "locket_id"),)

    code: Mapped[str] = mapped_column(String(64), primary_key=True)
    locket_id: Mapped[str] = mapped_column(String, ForeignKey("lockets.id"), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utc_now)
    expires_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    max_uses: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    use_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    revoked: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)


class Memory(Base):
    """A timestamped content record belonging to a locket."""

    __tablename__ = "memories"
    __table_args__ = (Index("ix_memory_locket_captured", "locket_id", "captured_at"),)

    id: Mapped[str] = mapped_column(String, primary_key=True)
    locket_id: Mapped[str] = mapped_column(String, ForeignKey("lockets.id"), nullable=False)
    captured_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    title: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    content_ref: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utc_now)
