"""
Contact service for business logic operations on contacts.

Every operation is scoped by organization. Writes that set a primary
contact clear the flag on the company's other contacts in the same
transaction as the write itself.
"""

from datetime import datetime, timezone
from typing import Dict, List, Optional

from sqlalchemy import func, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import col, select

from services.common.http_errors import ErrorCode, NotFoundError, ServiceError
from services.common.logging_config import get_logger
from services.contacts.models.company import Company
from services.contacts.models.contact import Contact, ContactStatus, ContactWithCompany
from services.contacts.schemas.contact import ContactCreate, ContactFilters, ContactUpdate
from services.contacts.services.contact_filters import build_contact_query

logger = get_logger(__name__)


class ContactService:
    """Service for contact business logic operations."""

    async def _clear_primary(
        self,
        session: AsyncSession,
        organization_id: str,
        company_id: str,
        keep_id: Optional[str] = None,
    ) -> None:
        statement = update(Contact).where(
            col(Contact.organization_id) == organization_id,
            col(Contact.company_id) == company_id,
            col(Contact.is_primary).is_(True),
        )
        if keep_id is not None:
            statement = statement.where(col(Contact.id) != keep_id)
        await session.execute(statement.values(is_primary=False))

    async def create(
        self,
        session: AsyncSession,
        organization_id: str,
        user_id: str,
        data: ContactCreate,
    ) -> Contact:
        """Create a new contact owned by ``organization_id``."""
        now = datetime.now(timezone.utc)
        contact = Contact(
            organization_id=organization_id,
            company_id=data.company_id,
            first_name=data.first_name,
            last_name=data.last_name,
            email=str(data.email),
            phone=data.phone,
            mobile=data.mobile,
            position=data.position,
            department=data.department,
            address=data.address,
            city=data.city,
            state=data.state,
            postal_code=data.postal_code,
            country=data.country,
            status=ContactStatus.ACTIVE.value,
            is_primary=data.is_primary,
            assigned_to=data.assigned_to,
            tags=list(data.tags or []),
            notes=data.notes,
            created_by=user_id,
            created_at=now,
            updated_at=now,
        )

        try:
            if data.is_primary and data.company_id:
                await self._clear_primary(session, organization_id, data.company_id)
            session.add(contact)
            await session.commit()
        except Exception as e:
            logger.error(f"Error creating contact: {e}", organization_id=organization_id)
            await session.rollback()
            raise

        created = await self.get_by_id(session, organization_id, contact.id)
        if created is None:
            raise ServiceError(
                "Failed to create contact",
                details={"contact_id": contact.id},
                code=ErrorCode.DATABASE_ERROR,
            )

        logger.info(
            f"Created contact {created.id}",
            company_id=created.company_id,
            is_primary=created.is_primary,
        )
        return created

    async def get_by_id(
        self, session: AsyncSession, organization_id: str, contact_id: str
    ) -> Optional[Contact]:
        """Get a contact by ID; None when absent or owned by another organization."""
        result = await session.execute(
            select(Contact).where(
                Contact.id == contact_id,
                Contact.organization_id == organization_id,
            )
        )
        return result.scalars().first()

    async def get_by_id_with_company(
        self, session: AsyncSession, organization_id: str, contact_id: str
    ) -> Optional[ContactWithCompany]:
        """Get a contact with its company attached."""
        contact = await self.get_by_id(session, organization_id, contact_id)
        if contact is None:
            return None

        company = None
        if contact.company_id:
            result = await session.execute(
                select(Company).where(
                    Company.id == contact.company_id,
                    Company.organization_id == organization_id,
                )
            )
            company = result.scalars().first()

        return ContactWithCompany.from_contact(contact, company)

    async def list(
        self,
        session: AsyncSession,
        organization_id: str,
        filters: Optional[ContactFilters] = None,
    ) -> List[Contact]:
        """List an organization's contacts, newest first."""
        result = await session.execute(build_contact_query(organization_id, filters))
        return list(result.scalars().all())

    async def list_with_company(
        self,
        session: AsyncSession,
        organization_id: str,
        filters: Optional[ContactFilters] = None,
    ) -> List[ContactWithCompany]:
        """List contacts with companies attached, in the same order as ``list``."""
        contacts = await self.list(session, organization_id, filters)

        company_ids = {c.company_id for c in contacts if c.company_id}
        companies: Dict[str, Company] = {}
        if company_ids:
            result = await session.execute(
                select(Company).where(
                    col(Company.id).in_(company_ids),
                    Company.organization_id == organization_id,
                )
            )
            companies = {company.id: company for company in result.scalars().all()}

        return [
            ContactWithCompany.from_contact(
                contact, companies.get(contact.company_id) if contact.company_id else None
            )
            for contact in contacts
        ]

    async def count(
        self,
        session: AsyncSession,
        organization_id: str,
        filters: Optional[ContactFilters] = None,
    ) -> int:
        """Count contacts matching the same filters as ``list``."""
        query = build_contact_query(organization_id, filters).order_by(None)
        result = await session.execute(select(func.count()).select_from(query.subquery()))
        return result.scalar() or 0

    async def update(
        self,
        session: AsyncSession,
        organization_id: str,
        contact_id: str,
        data: ContactUpdate,
    ) -> Contact:
        """Apply the fields present in ``data`` to an existing contact."""
        contact = await self.get_by_id(session, organization_id, contact_id)
        if contact is None:
            raise NotFoundError("Contact")

        changes = data.model_dump(exclude_unset=True)
        if "email" in changes:
            changes["email"] = str(changes["email"])
        if "tags" in changes:
            changes["tags"] = list(changes["tags"] or [])
        if "status" in changes:
            changes["status"] = ContactStatus(changes["status"]).value

        try:
            if data.is_primary and data.company_id:
                await self._clear_primary(
                    session, organization_id, data.company_id, keep_id=contact_id
                )
            for field, value in changes.items():
                setattr(contact, field, value)
            contact.updated_at = datetime.now(timezone.utc)
            session.add(contact)
            await session.commit()
        except Exception as e:
            logger.error(f"Error updating contact {contact_id}: {e}")
            await session.rollback()
            raise

        updated = await self.get_by_id(session, organization_id, contact_id)
        if updated is None:
            raise ServiceError(
                "Failed to update contact",
                details={"contact_id": contact_id},
                code=ErrorCode.DATABASE_ERROR,
            )

        logger.info(f"Updated contact {contact_id}", fields=sorted(changes))
        return updated

    async def delete(
        self, session: AsyncSession, organization_id: str, contact_id: str
    ) -> None:
        """Permanently delete a contact."""
        contact = await self.get_by_id(session, organization_id, contact_id)
        if contact is None:
            raise NotFoundError("Contact")

        try:
            await session.delete(contact)
            await session.commit()
        except Exception as e:
            logger.error(f"Error deleting contact {contact_id}: {e}")
            await session.rollback()
            raise

        logger.info(f"Deleted contact {contact_id}")
