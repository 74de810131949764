"""
Pydantic models for help requests.
These declare the shape of documents in the ``help_requests`` collection;
storage, indexes and rules belong to Firestore.
"""

from pydantic import BaseModel, Field
from datetime import datetime
from typing import Any, Dict, Optional
from enum import Enum


class RequestCategory(str, Enum):
    MEDICAL = "medical"
    FOOD = "food"
    SHELTER = "shelter"
    TRANSPORT = "transport"
    WATER = "water"
    SUPPLIES = "supplies"
    OTHER = "other"


class RequestUrgency(str, Enum):
    """Severity of a request. Ordered critical > high > medium > low."""
    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


# Higher rank sorts first on the dashboard
URGENCY_RANK: Dict[str, int] = {
    RequestUrgency.CRITICAL.value: 3,
    RequestUrgency.HIGH.value: 2,
    RequestUrgency.MEDIUM.value: 1,
    RequestUrgency.LOW.value: 0,
}


class RequestStatus(str, Enum):
    """
    Lifecycle of a help request.

    pending -> in_progress happens when a volunteer responds. Nothing in this
    service moves a request to fulfilled or cancelled.
    """
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    FULFILLED = "fulfilled"
    CANCELLED = "cancelled"


class HelpRequestCreate(BaseModel):
    """
    Fields a requester supplies. Identity, status and timestamps are never
    taken from the caller.
    """
    title: str = Field(..., min_length=1, max_length=200)
    description: str = Field(..., min_length=1, max_length=2000)
    category: RequestCategory
    urgency: RequestUrgency
    location_lat: float = Field(..., ge=-90, le=90)
    location_lng: float = Field(..., ge=-180, le=180)
    location_address: str = Field(..., min_length=1, max_length=500)


class HelpRequestUpdate(BaseModel):
    """Partial patch keyed by request id. Unset fields are left alone."""
    title: Optional[str] = None
    description: Optional[str] = None
    category: Optional[RequestCategory] = None
    urgency: Optional[RequestUrgency] = None
    location_lat: Optional[float] = None
    location_lng: Optional[float] = None
    location_address: Optional[str] = None
    status: Optional[RequestStatus] = None
    responder_id: Optional[str] = None

    def to_patch(self) -> Dict[str, Any]:
        return self.model_dump(exclude_unset=True, mode="json")


class HelpRequest(BaseModel):
    id: str = Field(..., description="Firestore document ID")
    user_id: str = Field(..., description="Identity of the requester")
    title: str
    description: str
    category: RequestCategory
    urgency: RequestUrgency
    location_lat: float
    location_lng: float
    location_address: str
    status: RequestStatus = RequestStatus.PENDING
    responder_id: Optional[str] = Field(None, description="Set when the first volunteer responds")
    ai_classification: Optional[Any] = Field(
        None, description="Classifier output, stored verbatim (advisory only)"
    )
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        json_schema_extra = {
            "example": {
                "id": "b1f0c2",
                "user_id": "uid_42",
                "title": "Urgent: Need insulin",
                "description": "Family of four, one diabetic, pharmacy flooded.",
                "category": "medical",
                "urgency": "critical",
                "location_lat": 29.9511,
                "location_lng": -90.0715,
                "location_address": "Canal St & Decatur St",
                "status": "pending",
                "responder_id": None,
                "ai_classification": {"suggested_category": "medical", "urgency_hint": "critical"},
                "created_at": "2024-09-01T10:30:00Z",
                "updated_at": "2024-09-01T10:30:00Z",
            }
        }


class HelpRequestSubmission(BaseModel):
    """
    Raw request-form payload. Everything is optional here so the form can
    report every missing field at once instead of failing on the first.
    """
    title: Optional[str] = None
    description: Optional[str] = None
    category: Optional[str] = None
    urgency: Optional[str] = None
    address: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None


class LocateRequest(BaseModel):
    address: Optional[str] = None
    latitude: Optional[float] = Field(None, ge=-90, le=90)
    longitude: Optional[float] = Field(None, ge=-180, le=180)


class Coordinates(BaseModel):
    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)
    display_name: Optional[str] = None
