# Pydantic models (request/response DTOs) used by the API layer.
# Keep models minimal and serializable; upload parsing and reward rules live in the routes.
from pydantic import BaseModel, Field, ConfigDict, field_validator
from typing import List, Literal, Optional
from datetime import datetime


# Users
# Request payload for registering a visitor
class UserCreate(BaseModel):
    username: str = Field(..., min_length=1, max_length=64)
    wallet_address: Optional[str] = Field(None, max_length=255)

    @field_validator("username", "wallet_address", mode="before")
    @classmethod
    def strip_text(cls, v: Optional[str]) -> Optional[str]:
        # Trim surrounding whitespace before validation
        if isinstance(v, str):
            v = v.strip()
        return v


# API response for a user record; also the balance read shape
class UserRead(BaseModel):
    id: int
    username: str
    wallet_address: Optional[str] = None
    token_balance: int
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


# Properties
# Response shape when reading a property from the API
class PropertyRead(BaseModel):
    id: int
    user_id: Optional[int] = None
    title: str
    location: str
    price: float
    description: Optional[str] = None
    bedrooms: Optional[int] = None
    bathrooms: Optional[int] = None
    area_sqm: Optional[float] = None
    image_thumb_webp: Optional[str] = None
    image_large_webp: Optional[str] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


# Free-text search over title, location and description
class SearchQuery(BaseModel):
    query: str = Field("", max_length=255)

    @field_validator("query", mode="before")
    @classmethod
    def strip_query(cls, v: str) -> str:
        if isinstance(v, str):
            v = v.strip()
        return v


# Upload results
# Returned after a property upload succeeds
class UploadResponse(BaseModel):
    success: Literal[True] = True
    property_id: int
    media_ids: List[int]
    tokens_earned: int
    message: str


# Returned (with a 4xx/5xx status) when an upload is rejected
class UploadFailure(BaseModel):
    success: Literal[False] = False
    message: str


# Liveness payload
class HealthRead(BaseModel):
    status: str
    service: str
    version: str
