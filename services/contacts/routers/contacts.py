"""
Contact API endpoints for the Contacts Service.

Provides RESTful CRUD for contacts under ``/contacts``. Every endpoint
requires a tenant context and a ``crm:contacts:*`` permission; errors are
raised as ``PerfexAPIException`` subclasses and rendered by the shared
exception handlers.
"""

from typing import Any, Dict, List, Optional, Union

from fastapi import APIRouter, Depends, Path, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from services.common.http_errors import NotFoundError
from services.common.logging_config import get_logger
from services.common.tenant_auth import TenantContext
from services.contacts.auth import (
    require_contacts_create,
    require_contacts_delete,
    require_contacts_read,
    require_contacts_update,
)
from services.contacts.database import get_async_session
from services.contacts.models.contact import Contact, ContactStatus, ContactWithCompany
from services.contacts.schemas.contact import (
    ContactCreate,
    ContactFilters,
    ContactRead,
    ContactUpdate,
    ContactWithCompanyRead,
    MessageData,
    SuccessEnvelope,
)
from services.contacts.services.contact_service import ContactService

logger = get_logger(__name__)

router = APIRouter(prefix="/contacts", tags=["contacts"])


async def get_contact_service() -> ContactService:
    """Get contact service instance."""
    return ContactService()


def include_company_flag(
    include_company: Optional[str] = Query(
        None,
        alias="includeCompany",
        description="Attach the contact's company when exactly 'true'",
    ),
) -> bool:
    return include_company == "true"


def serialize_contact(contact: Union[Contact, ContactWithCompany]) -> Dict[str, Any]:
    if isinstance(contact, ContactWithCompany):
        read: ContactRead = ContactWithCompanyRead.model_validate(contact)
    else:
        read = ContactRead.model_validate(contact)
    return read.model_dump(mode="json", by_alias=True)


def success(data: Any) -> Dict[str, Any]:
    return SuccessEnvelope[Any](data=data).model_dump(mode="json")


@router.get("")
async def list_contacts(
    company_id: Optional[str] = Query(None, alias="companyId"),
    contact_status: Optional[ContactStatus] = Query(None, alias="status"),
    assigned_to: Optional[str] = Query(None, alias="assignedTo"),
    search: Optional[str] = Query(None, description="Substring of name, email or phone"),
    include_company: bool = Depends(include_company_flag),
    session: AsyncSession = Depends(get_async_session),
    contact_service: ContactService = Depends(get_contact_service),
    tenant: TenantContext = Depends(require_contacts_read),
) -> Dict[str, Any]:
    """List the organization's contacts, newest first."""
    filters = ContactFilters(
        company_id=company_id,
        status=contact_status,
        assigned_to=assigned_to,
        search=search,
    )

    contacts: List[Union[Contact, ContactWithCompany]]
    if include_company:
        contacts = list(
            await contact_service.list_with_company(
                session, tenant.organization_id, filters
            )
        )
    else:
        contacts = list(
            await contact_service.list(session, tenant.organization_id, filters)
        )

    return success([serialize_contact(contact) for contact in contacts])


@router.get("/{contact_id}")
async def get_contact(
    contact_id: str = Path(..., description="Contact ID"),
    include_company: bool = Depends(include_company_flag),
    session: AsyncSession = Depends(get_async_session),
    contact_service: ContactService = Depends(get_contact_service),
    tenant: TenantContext = Depends(require_contacts_read),
) -> Dict[str, Any]:
    """Get a single contact."""
    contact: Optional[Union[Contact, ContactWithCompany]]
    if include_company:
        contact = await contact_service.get_by_id_with_company(
            session, tenant.organization_id, contact_id
        )
    else:
        contact = await contact_service.get_by_id(
            session, tenant.organization_id, contact_id
        )

    if contact is None:
        raise NotFoundError("Contact")

    return success(serialize_contact(contact))


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_contact(
    payload: ContactCreate,
    session: AsyncSession = Depends(get_async_session),
    contact_service: ContactService = Depends(get_contact_service),
    tenant: TenantContext = Depends(require_contacts_create),
) -> Dict[str, Any]:
    """Create a contact in the caller's organization."""
    contact = await contact_service.create(
        session, tenant.organization_id, tenant.user_id, payload
    )
    return success(serialize_contact(contact))


@router.put("/{contact_id}")
async def update_contact(
    payload: ContactUpdate,
    contact_id: str = Path(..., description="Contact ID"),
    session: AsyncSession = Depends(get_async_session),
    contact_service: ContactService = Depends(get_contact_service),
    tenant: TenantContext = Depends(require_contacts_update),
) -> Dict[str, Any]:
    """Partially update a contact."""
    contact = await contact_service.update(
        session, tenant.organization_id, contact_id, payload
    )
    return success(serialize_contact(contact))


@router.delete("/{contact_id}")
async def delete_contact(
    contact_id: str = Path(..., description="Contact ID"),
    session: AsyncSession = Depends(get_async_session),
    contact_service: ContactService = Depends(get_contact_service),
    tenant: TenantContext = Depends(require_contacts_delete),
) -> Dict[str, Any]:
    """Permanently delete a contact."""
    await contact_service.delete(session, tenant.organization_id, contact_id)
    return success(MessageData(message="Contact deleted successfully").model_dump())
