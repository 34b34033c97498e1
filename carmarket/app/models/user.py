"""
User database model.

This module defines the User SQLAlchemy model for authentication.
"""

from sqlalchemy import Column, Integer, String, Text, Boolean, DateTime, Enum, JSON
from sqlalchemy.sql import func
from carmarket.app.db.session import Base
from carmarket.app.models.enums import UserRole


class User(Base):
    """
    Marketplace account.

    Owns car listings and receives notifications. Admins moderate
    newly submitted listings.
    """
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    email = Column(String(255), unique=True, index=True, nullable=False)
    first_name = Column(String(50), nullable=False)
    last_name = Column(String(50), nullable=False)
    phone = Column(String(30), nullable=True)
    hashed_password = Column(String(255), nullable=False)
    is_active = Column(Boolean, default=True, nullable=False, index=True)

    role = Column(Enum(UserRole), default=UserRole.USER, nullable=False, index=True)

    # Dealer accounts only
    business_name = Column(String(200), nullable=True)
    business_license = Column(String(100), nullable=True)
    business_address = Column(JSON, nullable=True)
    website = Column(String(300), nullable=True)
    business_description = Column(Text, nullable=True)

    last_login = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"

    def __repr__(self):
        return f"<User(id={self.id}, email='{self.email}', role='{self.role.value}')>"
