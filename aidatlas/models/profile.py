"""
Profile and session models for authentication and user display.
"""

from pydantic import BaseModel, Field
from datetime import datetime
from typing import Optional
from enum import Enum


class UserRole(str, Enum):
    VICTIM = "victim"
    VOLUNTEER = "volunteer"
    DONOR = "donor"
    NGO = "ngo"


class Profile(BaseModel):
    """One profile per authenticated identity."""
    id: str = Field(..., description="Firestore document ID")
    user_id: str
    email: str = ""
    full_name: str = ""
    phone: Optional[str] = None
    role: UserRole = UserRole.VICTIM
    location_address: Optional[str] = None
    location_lat: Optional[float] = None
    location_lng: Optional[float] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class ProfileUpdate(BaseModel):
    full_name: Optional[str] = Field(None, max_length=100)
    phone: Optional[str] = Field(None, max_length=20)
    role: Optional[UserRole] = None
    location_address: Optional[str] = Field(None, max_length=500)
    location_lat: Optional[float] = Field(None, ge=-90, le=90)
    location_lng: Optional[float] = Field(None, ge=-180, le=180)


class AuthSession(BaseModel):
    """The signed-in identity resolved from a session cookie."""
    user_id: str
    email: Optional[str] = None
    name: Optional[str] = None


class SessionCreate(BaseModel):
    """Exchange a Firebase ID token (from the client SDK) for a session cookie."""
    id_token: str = Field(..., min_length=1)
    full_name: Optional[str] = Field(None, max_length=100)
    role: UserRole = UserRole.VICTIM


class SessionResponse(BaseModel):
    success: bool
    message: str
    session: Optional[AuthSession] = None
    profile: Optional[Profile] = None
