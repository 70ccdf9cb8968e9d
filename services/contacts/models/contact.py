"""
Contact database models for the Contacts Service.

Contacts are partitioned by ``organization_id``. At most one contact per
(organization, company) carries ``is_primary``; ``ContactService`` keeps
that true on every write.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import List, Optional
from uuid import uuid4

from sqlalchemy import JSON, DateTime, String
from sqlmodel import Field, SQLModel

from services.contacts.models.company import Company


class ContactStatus(str, Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class ContactBase(SQLModel):
    """Columns shared by the table model and the company-joined view."""

    id: str = Field(
        default_factory=lambda: str(uuid4()),
        primary_key=True,
        description="Unique contact ID",
    )
    organization_id: str = Field(..., index=True, description="Owning organization")
    company_id: Optional[str] = Field(
        default=None,
        foreign_key="companies.id",
        index=True,
        description="Company this contact works for",
    )

    first_name: str = Field(..., max_length=100)
    last_name: str = Field(..., max_length=100)
    email: str = Field(..., max_length=255)
    phone: Optional[str] = Field(default=None, max_length=50)
    mobile: Optional[str] = Field(default=None, max_length=50)
    position: Optional[str] = Field(default=None, max_length=100)
    department: Optional[str] = Field(default=None, max_length=100)

    address: Optional[str] = Field(default=None, max_length=500)
    city: Optional[str] = Field(default=None, max_length=100)
    state: Optional[str] = Field(default=None, max_length=100)
    postal_code: Optional[str] = Field(default=None, max_length=20)
    country: Optional[str] = Field(default=None, max_length=100)

    status: ContactStatus = Field(default=ContactStatus.ACTIVE, sa_type=String(20))
    is_primary: bool = Field(
        default=False, description="Primary contact for the company"
    )
    assigned_to: Optional[str] = Field(default=None, description="Owning user")
    tags: List[str] = Field(default_factory=list, sa_type=JSON)
    notes: Optional[str] = Field(default=None)

    # Audit
    created_by: Optional[str] = Field(default=None)
    created_at: datetime = Field(
        default_factory=utc_now,
        sa_type=DateTime(timezone=True),
        description="When this contact record was created",
    )
    updated_at: datetime = Field(
        default_factory=utc_now,
        sa_type=DateTime(timezone=True),
        description="When this contact record was last updated",
    )


class Contact(ContactBase, table=True):
    """Contact database model."""

    __tablename__ = "contacts"  # type: ignore[assignment]


class ContactWithCompany(ContactBase):
    """A contact with its company attached; ``company`` is None when absent."""

    company: Optional[Company] = None

    @classmethod
    def from_contact(
        cls, contact: Contact, company: Optional[Company]
    ) -> "ContactWithCompany":
        return cls.model_validate(contact, update={"company": company})
