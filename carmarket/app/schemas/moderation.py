"""
Listing moderation schemas.

Schemas for admins to approve or reject pending listings.
"""

from pydantic import BaseModel, Field
from typing import Optional
from carmarket.app.schemas.car import CarResponse


class CarReject(BaseModel):
    """Schema for rejecting a listing."""
    reason: Optional[str] = Field(None, max_length=500, description="Reason shown to the owner")


class CarSubmissionResponse(BaseModel):
    """Response after a listing is submitted."""
    message: str
    car: CarResponse
    admins_notified: int


class CarDecisionResponse(BaseModel):
    """
    Response after a moderation decision.

    For rejections the listing has been deleted; `car` is its last state.
    """
    message: str
    outcome: str  # approve or reject
    car_id: int
    car_title: str
    reason: Optional[str] = None
    deleted: bool
    owner_notified: bool
    car: CarResponse
