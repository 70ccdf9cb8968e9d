"""
Tests for the ContactService class.

Runs against a temporary SQLite database to exercise the real queries,
primary-contact exclusivity and organization scoping.
"""

import warnings
from unittest.mock import AsyncMock

import pytest
from sqlmodel import select

from services.common.http_errors import NotFoundError, ServiceError
from services.contacts.models.company import Company
from services.contacts.models.contact import Contact, ContactStatus, ContactWithCompany
from services.contacts.schemas.contact import ContactCreate, ContactFilters, ContactUpdate
from services.contacts.services.contact_service import ContactService

ORG = "org-1"
OTHER_ORG = "org-2"


@pytest.fixture
def contact_service():
    return ContactService()


def new_contact(**overrides) -> ContactCreate:
    values = dict(first_name="Ada", last_name="Lovelace", email="ada@example.com")
    values.update(overrides)
    return ContactCreate(**values)


async def primaries(session, organization_id, company_id):
    result = await session.execute(
        select(Contact).where(
            Contact.organization_id == organization_id,
            Contact.company_id == company_id,
            Contact.is_primary == True,  # noqa: E712
        )
    )
    return [c.id for c in result.scalars().all()]


class TestCreate:
    async def test_create_sets_defaults(self, contact_service, session):
        contact = await contact_service.create(
            session, ORG, "user-1", new_contact(tags=["vip", "paris"])
        )

        assert contact.id
        assert contact.organization_id == ORG
        assert contact.status == ContactStatus.ACTIVE
        assert contact.created_by == "user-1"
        assert contact.is_primary is False
        assert contact.tags == ["vip", "paris"]
        assert contact.created_at == contact.updated_at

    async def test_second_primary_clears_first(self, contact_service, session, companies):
        first = await contact_service.create(
            session, ORG, "user-1", new_contact(company_id="co-acme", is_primary=True)
        )
        second = await contact_service.create(
            session,
            ORG,
            "user-1",
            new_contact(email="b@example.com", company_id="co-acme", is_primary=True),
        )

        assert await primaries(session, ORG, "co-acme") == [second.id]
        refreshed = await contact_service.get_by_id(session, ORG, first.id)
        assert refreshed.is_primary is False

    async def test_primary_is_scoped_to_company_and_organization(
        self, contact_service, session, companies
    ):
        globex = await contact_service.create(
            session, ORG, "u", new_contact(company_id="co-globex", is_primary=True)
        )
        foreign = await contact_service.create(
            session, OTHER_ORG, "u", new_contact(company_id="co-acme", is_primary=True)
        )
        await contact_service.create(
            session, ORG, "u", new_contact(company_id="co-acme", is_primary=True)
        )

        assert await primaries(session, ORG, "co-globex") == [globex.id]
        assert await primaries(session, OTHER_ORG, "co-acme") == [foreign.id]

    async def test_primary_without_company_does_not_clear(
        self, contact_service, session, companies
    ):
        existing = await contact_service.create(
            session, ORG, "u", new_contact(company_id="co-acme", is_primary=True)
        )
        await contact_service.create(session, ORG, "u", new_contact(is_primary=True))

        assert await primaries(session, ORG, "co-acme") == [existing.id]

    async def test_failed_insert_rolls_back_primary_clear(
        self, contact_service, session, companies, monkeypatch
    ):
        existing = await contact_service.create(
            session, ORG, "u", new_contact(company_id="co-acme", is_primary=True)
        )
        monkeypatch.setattr(session, "commit", AsyncMock(side_effect=RuntimeError("disk full")))

        with pytest.raises(RuntimeError):
            await contact_service.create(
                session, ORG, "u", new_contact(company_id="co-acme", is_primary=True)
            )

        monkeypatch.undo()
        assert await primaries(session, ORG, "co-acme") == [existing.id]

    async def test_missing_row_after_insert(self, contact_service, session, monkeypatch):
        monkeypatch.setattr(contact_service, "get_by_id", AsyncMock(return_value=None))

        with pytest.raises(ServiceError) as exc_info:
            await contact_service.create(session, ORG, "u", new_contact())

        assert exc_info.value.message == "Failed to create contact"
        assert exc_info.value.status_code == 500


class TestRead:
    async def test_get_by_id_absent(self, contact_service, session):
        assert await contact_service.get_by_id(session, ORG, "nope") is None

    async def test_get_by_id_other_organization(self, contact_service, session, five_contacts):
        assert await contact_service.get_by_id(session, ORG, "c-foreign") is None
        assert await contact_service.get_by_id(session, OTHER_ORG, "c-1") is None

    async def test_get_with_company(self, contact_service, session, five_contacts):
        contact = await contact_service.get_by_id_with_company(session, ORG, "c-1")

        assert contact.id == "c-1"
        assert contact.company.name == "Acme"

    async def test_get_with_company_no_reference(self, contact_service, session, five_contacts):
        contact = await contact_service.get_by_id_with_company(session, ORG, "c-3")

        assert contact.company is None

    async def test_get_with_company_ignores_foreign_company(
        self, contact_service, session, five_contacts
    ):
        contact = await contact_service.get_by_id_with_company(session, ORG, "c-5")

        assert contact.company_id == "co-foreign"
        assert contact.company is None

    async def test_get_with_company_absent_contact(self, contact_service, session):
        assert await contact_service.get_by_id_with_company(session, ORG, "nope") is None

    def test_from_contact_serializes_cleanly(self):
        company = Company(id="co-acme", organization_id=ORG, name="Acme")
        contact = Contact(
            organization_id=ORG,
            company_id="co-acme",
            first_name="Ada",
            last_name="Lovelace",
            email="ada@example.com",
            status="inactive",
        )

        with warnings.catch_warnings():
            warnings.simplefilter("error")
            joined = ContactWithCompany.from_contact(contact, company)
            dumped = joined.model_dump(mode="json")

        assert joined.status == ContactStatus.INACTIVE
        assert joined.company.id == "co-acme"
        assert dumped["status"] == "inactive"
        assert dumped["company"]["name"] == "Acme"


class TestList:
    async def test_list_newest_first(self, contact_service, session, five_contacts):
        contacts = await contact_service.list(session, ORG)

        assert [c.id for c in contacts] == ["c-5", "c-4", "c-3", "c-2", "c-1"]

    async def test_status_filter(self, contact_service, session, five_contacts):
        contacts = await contact_service.list(
            session, ORG, ContactFilters(status=ContactStatus.INACTIVE)
        )

        assert [c.id for c in contacts] == ["c-4", "c-2"]
        assert all(c.status == "inactive" for c in contacts)

    async def test_company_and_assignee_filters(self, contact_service, session, five_contacts):
        by_company = await contact_service.list(
            session, ORG, ContactFilters(company_id="co-acme")
        )
        by_assignee = await contact_service.list(
            session, ORG, ContactFilters(assigned_to="user-7")
        )

        assert [c.id for c in by_company] == ["c-1"]
        assert [c.id for c in by_assignee] == ["c-5", "c-3"]

    async def test_search_across_fields(self, contact_service, session, five_contacts):
        contacts = await contact_service.list(session, ORG, ContactFilters(search="smith"))

        assert [c.id for c in contacts] == ["c-2", "c-1"]
        for contact in contacts:
            haystack = [
                contact.first_name,
                contact.last_name,
                contact.email,
                contact.phone or "",
                contact.mobile or "",
            ]
            assert any("smith" in value.lower() for value in haystack)

    async def test_search_phone(self, contact_service, session, five_contacts):
        contacts = await contact_service.list(session, ORG, ContactFilters(search="45 67"))

        assert [c.id for c in contacts] == ["c-3"]

    async def test_status_and_search_compose(self, contact_service, session, five_contacts):
        contacts = await contact_service.list(
            session,
            ORG,
            ContactFilters(status=ContactStatus.ACTIVE, search="jane"),
        )

        assert [c.id for c in contacts] == ["c-3", "c-1"]

    async def test_search_wildcards_match_literally(
        self, contact_service, session, five_contacts
    ):
        percent = await contact_service.list(session, ORG, ContactFilters(search="50%"))
        underscore = await contact_service.list(session, ORG, ContactFilters(search="_"))

        assert [c.id for c in percent] == ["c-5"]
        assert underscore == []

    async def test_list_with_company_matches_list(
        self, contact_service, session, five_contacts
    ):
        filters = ContactFilters(status=ContactStatus.ACTIVE)

        plain = await contact_service.list(session, ORG, filters)
        joined = await contact_service.list_with_company(session, ORG, filters)

        assert [c.id for c in joined] == [c.id for c in plain]
        companies = {c.id: c.company.name if c.company else None for c in joined}
        assert companies == {"c-5": None, "c-3": None, "c-1": "Acme"}

    async def test_list_with_company_missing_company(
        self, contact_service, session, five_contacts
    ):
        joined = await contact_service.list_with_company(session, ORG)

        by_id = {c.id: c for c in joined}
        assert by_id["c-4"].company_id == "co-missing"
        assert by_id["c-4"].company is None
        assert by_id["c-2"].company.name == "Globex"

    async def test_list_with_company_empty(self, contact_service, session):
        assert await contact_service.list_with_company(session, ORG) == []

    async def test_count(self, contact_service, session, five_contacts):
        assert await contact_service.count(session, ORG) == 5
        assert await contact_service.count(session, OTHER_ORG) == 1
        assert (
            await contact_service.count(
                session, ORG, ContactFilters(status=ContactStatus.ACTIVE)
            )
            == 3
        )


class TestUpdate:
    async def test_partial_update(self, contact_service, session, five_contacts):
        before = await contact_service.get_by_id(session, ORG, "c-3")
        previous_updated_at = before.updated_at

        updated = await contact_service.update(
            session,
            ORG,
            "c-3",
            ContactUpdate(position="CTO", tags=["board"], status=ContactStatus.INACTIVE),
        )

        assert updated.position == "CTO"
        assert updated.tags == ["board"]
        assert updated.status == ContactStatus.INACTIVE
        assert updated.first_name == "Janet"
        assert updated.phone == "+33 1 23 45 67 89"
        assert updated.updated_at != previous_updated_at

    async def test_update_primary_clears_others(self, contact_service, session, companies):
        first = await contact_service.create(
            session, ORG, "u", new_contact(company_id="co-acme", is_primary=True)
        )
        second = await contact_service.create(
            session, ORG, "u", new_contact(email="b@example.com", company_id="co-acme")
        )

        await contact_service.update(
            session, ORG, second.id, ContactUpdate(company_id="co-acme", is_primary=True)
        )

        assert await primaries(session, ORG, "co-acme") == [second.id]
        assert (await contact_service.get_by_id(session, ORG, first.id)).is_primary is False

    async def test_reasserting_primary_keeps_flag(self, contact_service, session, companies):
        primary = await contact_service.create(
            session, ORG, "u", new_contact(company_id="co-acme", is_primary=True)
        )
        other = await contact_service.create(
            session, ORG, "u", new_contact(email="b@example.com", company_id="co-acme")
        )

        updated = await contact_service.update(
            session, ORG, primary.id, ContactUpdate(company_id="co-acme", is_primary=True)
        )

        assert updated.is_primary is True
        assert await primaries(session, ORG, "co-acme") == [primary.id]
        assert (await contact_service.get_by_id(session, ORG, other.id)).is_primary is False

    async def test_update_absent_performs_no_write(
        self, contact_service, session, five_contacts, monkeypatch
    ):
        commit = AsyncMock()
        monkeypatch.setattr(session, "commit", commit)

        with pytest.raises(NotFoundError):
            await contact_service.update(session, ORG, "nope", ContactUpdate(notes="x"))

        commit.assert_not_awaited()

    async def test_update_other_organization(self, contact_service, session, five_contacts):
        with pytest.raises(NotFoundError):
            await contact_service.update(
                session, ORG, "c-foreign", ContactUpdate(first_name="Hijack")
            )

        foreign = await contact_service.get_by_id(session, OTHER_ORG, "c-foreign")
        assert foreign.first_name == "Jane"


class TestDelete:
    async def test_delete_then_get(self, contact_service, session, five_contacts):
        await contact_service.delete(session, ORG, "c-2")

        assert await contact_service.get_by_id(session, ORG, "c-2") is None
        assert await contact_service.count(session, ORG) == 4

    async def test_delete_absent(self, contact_service, session):
        with pytest.raises(NotFoundError) as exc_info:
            await contact_service.delete(session, ORG, "nope")

        assert exc_info.value.message == "Contact not found"

    async def test_delete_other_organization(self, contact_service, session, five_contacts):
        with pytest.raises(NotFoundError):
            await contact_service.delete(session, OTHER_ORG, "c-1")

        assert await contact_service.get_by_id(session, ORG, "c-1") is not None
