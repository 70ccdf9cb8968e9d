"""
Company database model.

Companies are owned by the CRM companies module; the Contacts Service only
reads them to attach a company to a contact.
"""

from datetime import datetime, timezone
from typing import List, Optional
from uuid import uuid4

from sqlalchemy import JSON, DateTime
from sqlmodel import Field, SQLModel


class Company(SQLModel, table=True):
    """Company record, scoped to an organization."""

    __tablename__ = "companies"  # type: ignore[assignment]

    id: str = Field(
        default_factory=lambda: str(uuid4()),
        primary_key=True,
        description="Unique company ID",
    )
    organization_id: str = Field(..., index=True, description="Owning organization")
    name: str = Field(..., max_length=200, description="Company name")
    website: Optional[str] = Field(default=None, max_length=255)
    phone: Optional[str] = Field(default=None, max_length=50)
    email: Optional[str] = Field(default=None, max_length=255)
    address: Optional[str] = Field(default=None, max_length=500)
    city: Optional[str] = Field(default=None, max_length=100)
    state: Optional[str] = Field(default=None, max_length=100)
    postal_code: Optional[str] = Field(default=None, max_length=20)
    country: Optional[str] = Field(default=None, max_length=100)
    industry: Optional[str] = Field(default=None, max_length=100)
    size: Optional[str] = Field(default=None, max_length=50)
    type: str = Field(default="prospect", max_length=50)
    status: str = Field(default="active", max_length=20)
    assigned_to: Optional[str] = Field(default=None)
    tags: List[str] = Field(default_factory=list, sa_type=JSON)
    notes: Optional[str] = Field(default=None)

    created_by: Optional[str] = Field(default=None)
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        sa_type=DateTime(timezone=True),
        description="When this company record was created",
    )
    updated_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        sa_type=DateTime(timezone=True),
        description="When this company record was last updated",
    )
