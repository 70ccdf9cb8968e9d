from services.contacts.models.company import Company
from services.contacts.models.contact import (
    Contact,
    ContactStatus,
    ContactWithCompany,
)

__all__ = ["Company", "Contact", "ContactStatus", "ContactWithCompany"]
