"""API key model used to resolve request owners."""

from datetime import datetime

from sqlalchemy import Boolean, DateTime, String
from sqlalchemy.orm import Mapped, mapped_column

from daytrack_server.models.base import Base, utc_now


class APIKey(Base):
    """Credential presented by API callers.

    A key either names its owner (user_id set) or is service-level
    (user_id NULL), in which case the caller supplies the owner in the
    X-User-Id header on every request. Only the SHA-256 digest is stored.
    """

    __tablename__ = "api_keys"

    id: Mapped[int] = mapped_column(primary_key=True)
    key_hash: Mapped[str] = mapped_column(String(64), unique=True, index=True)
    # "dtk_" plus 8 hex chars, shown to operators
    key_prefix: Mapped[str] = mapped_column(String(12), index=True)
    name: Mapped[str] = mapped_column(String(100))

    user_id: Mapped[str | None] = mapped_column(String(255), nullable=True, index=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, index=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utc_now)
    last_used_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    def __repr__(self) -> str:
        """String representation."""
        owner = self.user_id or "<service>"
        return f"<APIKey(prefix={self.key_prefix}, owner={owner}, active={self.is_active})>"

    @property
    def is_user_scoped(self) -> bool:
        """Whether the key itself identifies the owner."""
        return self.user_id is not None

    @property
    def is_service_level(self) -> bool:
        """Whether the owner comes from the X-User-Id header."""
        return self.user_id is None
