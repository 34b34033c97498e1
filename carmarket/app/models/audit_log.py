"""
Audit Log Database Model.

Tracks security-critical events, moderation decisions and admin actions.
"""

from sqlalchemy import Column, Integer, String, DateTime, JSON
from sqlalchemy.sql import func
from carmarket.app.db.session import Base


class AuditLog(Base):
    """
    Audit log model.

    Events logged:
    - LOGIN_SUCCESS / LOGIN_FAILED
    - USER_UPDATED / USER_DELETED (admin user management)
    - CAR_SUBMITTED / CAR_APPROVED / CAR_REJECTED / CAR_DELETED
    """
    __tablename__ = "audit_logs"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)

    # Who performed the action (None for anonymous failed logins)
    actor_id = Column(Integer, index=True, nullable=True)
    actor_email = Column(String(255), nullable=True)

    action = Column(String(100), nullable=False, index=True)

    # User acted upon (user management actions)
    target_user_id = Column(Integer, index=True, nullable=True)
    target_email = Column(String(255), nullable=True)

    # Listing acted upon (moderation actions); plain id, the listing may be gone
    target_car_id = Column(Integer, index=True, nullable=True)

    meta_data = Column(JSON, nullable=True)
    ip_address = Column(String(50), nullable=True)

    timestamp = Column(DateTime(timezone=True), server_default=func.now(), nullable=False, index=True)

    def __repr__(self):
        return f"<AuditLog(id={self.id}, action='{self.action}', actor={self.actor_email})>"
