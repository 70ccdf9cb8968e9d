"""
Contact schemas for API requests and responses.

Request and response bodies use camelCase keys; Python attributes stay
snake_case (``populate_by_name`` lets tests and services use either).
"""

from datetime import datetime
from typing import Generic, List, Optional, TypeVar

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator
from pydantic.alias_generators import to_camel

from services.contacts.models.contact import ContactStatus

T = TypeVar("T")


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ContactCreate(CamelModel):
    """Create model for contacts."""

    company_id: Optional[str] = Field(None, description="Company this contact works for")
    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)
    email: EmailStr = Field(..., description="Contact's email address")
    phone: Optional[str] = Field(None, max_length=50)
    mobile: Optional[str] = Field(None, max_length=50)
    position: Optional[str] = Field(None, max_length=100)
    department: Optional[str] = Field(None, max_length=100)
    address: Optional[str] = Field(None, max_length=500)
    city: Optional[str] = Field(None, max_length=100)
    state: Optional[str] = Field(None, max_length=100)
    postal_code: Optional[str] = Field(None, max_length=20)
    country: Optional[str] = Field(None, max_length=100)
    is_primary: bool = Field(default=False, description="Primary contact for the company")
    assigned_to: Optional[str] = Field(None, description="Owning user")
    tags: Optional[List[str]] = Field(default=None, description="Contact tags")
    notes: Optional[str] = Field(None, max_length=5000)


class ContactUpdate(CamelModel):
    """Partial update; only fields present in the request body are applied."""

    company_id: Optional[str] = None
    first_name: Optional[str] = Field(None, min_length=1, max_length=100)
    last_name: Optional[str] = Field(None, min_length=1, max_length=100)
    email: Optional[EmailStr] = None
    phone: Optional[str] = Field(None, max_length=50)
    mobile: Optional[str] = Field(None, max_length=50)
    position: Optional[str] = Field(None, max_length=100)
    department: Optional[str] = Field(None, max_length=100)
    address: Optional[str] = Field(None, max_length=500)
    city: Optional[str] = Field(None, max_length=100)
    state: Optional[str] = Field(None, max_length=100)
    postal_code: Optional[str] = Field(None, max_length=20)
    country: Optional[str] = Field(None, max_length=100)
    status: Optional[ContactStatus] = None
    is_primary: Optional[bool] = None
    assigned_to: Optional[str] = None
    tags: Optional[List[str]] = None
    notes: Optional[str] = Field(None, max_length=5000)

    @field_validator("first_name", "last_name", "email", "status", "is_primary")
    @classmethod
    def not_null(cls, value):
        # Columns that are NOT NULL may be omitted but never cleared
        if value is None:
            raise ValueError("may not be null")
        return value


class ContactFilters(CamelModel):
    """Filters for listing contacts; unset fields do not constrain the result."""

    company_id: Optional[str] = None
    status: Optional[ContactStatus] = None
    assigned_to: Optional[str] = None
    search: Optional[str] = None


class CompanyRead(CamelModel):
    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, from_attributes=True
    )

    id: str
    organization_id: str
    name: str
    website: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    postal_code: Optional[str] = None
    country: Optional[str] = None
    industry: Optional[str] = None
    size: Optional[str] = None
    type: Optional[str] = None
    status: Optional[str] = None
    assigned_to: Optional[str] = None
    tags: List[str] = Field(default_factory=list)
    notes: Optional[str] = None
    created_by: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    @field_validator("tags", mode="before")
    @classmethod
    def tags_default(cls, value):
        return value or []


class ContactRead(CamelModel):
    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, from_attributes=True
    )

    id: str
    organization_id: str
    company_id: Optional[str] = None
    first_name: str
    last_name: str
    email: str
    phone: Optional[str] = None
    mobile: Optional[str] = None
    position: Optional[str] = None
    department: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    postal_code: Optional[str] = None
    country: Optional[str] = None
    status: ContactStatus
    is_primary: bool
    assigned_to: Optional[str] = None
    tags: List[str] = Field(default_factory=list)
    notes: Optional[str] = None
    created_by: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    @field_validator("tags", mode="before")
    @classmethod
    def tags_default(cls, value):
        return value or []


class ContactWithCompanyRead(ContactRead):
    company: Optional[CompanyRead] = None


class SuccessEnvelope(BaseModel, Generic[T]):
    """``{"success": true, "data": ...}`` wrapper for successful responses."""

    success: bool = True
    data: T


class MessageData(BaseModel):
    message: str

