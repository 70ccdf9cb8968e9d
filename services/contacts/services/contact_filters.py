"""
Query builder for contact listings.

``build_contact_query`` is the only place that turns ``ContactFilters`` into
SQL predicates, so the composition rules live here:

- organization match is always required
- company, status and assignee are equality filters ANDed together
- ``search`` is a substring match ORed across name, email and phone
  columns, ANDed with the rest
- newest contacts first
"""

from typing import Optional

from sqlalchemy import Select, or_
from sqlmodel import col, select

from services.contacts.models.contact import Contact
from services.contacts.schemas.contact import ContactFilters

SEARCH_COLUMNS = ("first_name", "last_name", "email", "phone", "mobile")

LIKE_ESCAPE = "\\"


def escape_like(term: str) -> str:
    """Escape LIKE wildcards so the term matches literally."""
    return (
        term.replace(LIKE_ESCAPE, LIKE_ESCAPE * 2)
        .replace("%", f"{LIKE_ESCAPE}%")
        .replace("_", f"{LIKE_ESCAPE}_")
    )


def build_search_clause(search: str):
    pattern = f"%{escape_like(search)}%"
    return or_(
        *(
            col(getattr(Contact, column)).like(pattern, escape=LIKE_ESCAPE)
            for column in SEARCH_COLUMNS
        )
    )


def build_contact_query(
    organization_id: str, filters: Optional[ContactFilters] = None
) -> Select:
    """
    Build the SELECT for listing an organization's contacts.

    Args:
        organization_id: Tenant every returned row must belong to
        filters: Optional filters; unset fields add no predicate

    Returns:
        A select over ``Contact`` ordered by ``created_at`` descending
    """
    query = select(Contact).where(Contact.organization_id == organization_id)

    if filters is not None:
        if filters.company_id:
            query = query.where(Contact.company_id == filters.company_id)
        if filters.status:
            query = query.where(Contact.status == filters.status.value)
        if filters.assigned_to:
            query = query.where(Contact.assigned_to == filters.assigned_to)
        if filters.search:
            query = query.where(build_search_clause(filters.search))

    return query.order_by(col(Contact.created_at).desc(), col(Contact.id).desc())
