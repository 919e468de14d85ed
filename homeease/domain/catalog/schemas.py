"""Catalog domain schemas - Pydantic models for validation"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

SERVICE_CATEGORIES = ("plumbing", "electrical", "cleaning", "carpentry", "ac-service", "painting")


def _validate_category(v):
    if v is not None and v not in SERVICE_CATEGORIES:
        raise ValueError(f"Invalid category. Must be one of: {', '.join(SERVICE_CATEGORIES)}")
    return v


class ServiceCreate(BaseModel):
    """Schema for a provider adding a service to the catalog"""

    name: str = Field(min_length=1, max_length=100)
    description: str = Field(min_length=1, max_length=500)
    category: str
    price: float = Field(ge=0)
    durationMinutes: int = Field(ge=15)

    @field_validator("category")
    @classmethod
    def validate_category(cls, v):
        return _validate_category(v)


class ServiceUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    description: Optional[str] = Field(default=None, min_length=1, max_length=500)
    category: Optional[str] = None
    price: Optional[float] = Field(default=None, ge=0)
    durationMinutes: Optional[int] = Field(default=None, ge=15)
    isActive: Optional[bool] = None

    @field_validator("category")
    @classmethod
    def validate_category(cls, v):
        return _validate_category(v)


class ServiceResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    description: str
    category: str
    price: float
    duration_minutes: int
    is_active: bool
    provider_id: int
    created_at: Optional[datetime] = None


class ServiceListResponse(BaseModel):
    services: list[ServiceResponse]
    page: int
    pages: int
    total: int
