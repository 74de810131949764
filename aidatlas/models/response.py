"""
Models for volunteer responses to help requests.
"""

from pydantic import BaseModel, Field
from datetime import datetime
from typing import Optional


DEFAULT_RESPONSE_MESSAGE = "I can help with this request"


class ResponseCreate(BaseModel):
    message: Optional[str] = Field(DEFAULT_RESPONSE_MESSAGE, max_length=1000)


class Response(BaseModel):
    id: str = Field(..., description="Firestore document ID")
    request_id: str
    responder_id: str
    message: Optional[str] = None
    status: Optional[str] = None
    created_at: Optional[datetime] = None
