"""
Typed contracts for the module endpoints the dashboard reads, and the
summaries it produces.

Module responses are decoded once, here. Every contract has a usable
default: numbers accept null or numeric strings and fall back to 0, list
items that do not fit their record model are skipped, and payloads may
arrive as ``{"data": [...]}``, ``{"success": true, "data": {"data": ...}}``
or a bare array.
"""

import math
from typing import Annotated, Any, List, Optional, Type, TypeVar

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field
from pydantic import ValidationError as PydanticValidationError
from pydantic.alias_generators import to_camel

from services.common.logging_config import get_logger

logger = get_logger(__name__)

R = TypeVar("R", bound=BaseModel)


def _to_float(value: Any) -> float:
    if value is None or isinstance(value, bool):
        return 0.0
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        try:
            number = float(value.strip())
        except ValueError:
            return 0.0
    else:
        return 0.0
    return number if math.isfinite(number) else 0.0


def _to_int(value: Any) -> int:
    return int(_to_float(value))


Amount = Annotated[float, BeforeValidator(_to_float)]
Count = Annotated[int, BeforeValidator(_to_int)]


class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, extra="ignore"
    )


# Module records (items of list endpoints)


class InvoiceRecord(CamelModel):
    status: Optional[str] = None


class PaymentRecord(CamelModel):
    amount: Amount = 0.0


class CompanyRecord(CamelModel):
    status: Optional[str] = None


class OpportunityRecord(CamelModel):
    value: Amount = 0.0


class ProjectRecord(CamelModel):
    status: Optional[str] = None


class EmployeeRecord(CamelModel):
    status: Optional[str] = None


# Module stats payloads (object endpoints)


class InventoryStatsPayload(CamelModel):
    total_items: Count = 0
    total_value: Amount = 0.0


class SalesOrderStatsPayload(CamelModel):
    total_orders: Count = 0
    total_revenue: Amount = 0.0


class ManufacturingStatsPayload(CamelModel):
    total_work_orders: Count = 0
    in_progress_orders: Count = 0


class AssetStatsPayload(CamelModel):
    total_assets: Count = 0
    total_value: Amount = 0.0


class UnreadCountPayload(CamelModel):
    count: Count = 0


def unwrap_data(body: Any) -> Any:
    """Strip nested ``{"data": ...}`` envelopes from a module response."""
    while isinstance(body, dict) and "data" in body:
        body = body["data"]
    return body


def decode_list(body: Any, model: Type[R]) -> List[R]:
    """
    Decode a list endpoint response into records.

    Anything that is not a list decodes to an empty list; items that fail
    validation are dropped.
    """
    items = unwrap_data(body)
    if not isinstance(items, list):
        return []

    records: List[R] = []
    skipped = 0
    for item in items:
        try:
            records.append(model.model_validate(item))
        except PydanticValidationError:
            skipped += 1
    if skipped:
        logger.debug(f"Skipped {skipped} malformed {model.__name__} items")
    return records


def decode_object(body: Any, model: Type[R]) -> R:
    """Decode an object endpoint response, falling back to the model defaults."""
    payload = unwrap_data(body)
    if not isinstance(payload, dict):
        return model()
    try:
        return model.model_validate(payload)
    except PydanticValidationError:
        logger.debug(f"Malformed {model.__name__} payload, using defaults")
        return model()


# Section summaries


class FinanceStats(CamelModel):
    total_revenue: float = 0.0
    pending_invoices: int = 0


class CrmStats(CamelModel):
    active_companies: int = 0
    open_opportunities: int = 0
    pipeline_value: float = 0.0


class ProjectStats(CamelModel):
    active_projects: int = 0
    total_projects: int = 0


class InventoryStats(CamelModel):
    total_items: int = 0
    total_value: float = 0.0


class HrStats(CamelModel):
    total_employees: int = 0


class SalesStats(CamelModel):
    total_orders: int = 0
    total_revenue: float = 0.0


class ManufacturingStats(CamelModel):
    total_work_orders: int = 0
    in_progress_orders: int = 0


class AssetStats(CamelModel):
    total_assets: int = 0
    total_value: float = 0.0


class DashboardStats(CamelModel):
    """All section summaries; a section that failed keeps its zero defaults."""

    finance: FinanceStats = Field(default_factory=FinanceStats)
    crm: CrmStats = Field(default_factory=CrmStats)
    projects: ProjectStats = Field(default_factory=ProjectStats)
    inventory: InventoryStats = Field(default_factory=InventoryStats)
    hr: HrStats = Field(default_factory=HrStats)
    sales: SalesStats = Field(default_factory=SalesStats)
    manufacturing: ManufacturingStats = Field(default_factory=ManufacturingStats)
    assets: AssetStats = Field(default_factory=AssetStats)


class DashboardCard(CamelModel):
    key: str
    title: str
    value: str
    raw_value: float
    subtitle: str


class DashboardSummary(CamelModel):
    stats: DashboardStats = Field(default_factory=DashboardStats)
    cards: List[DashboardCard] = Field(default_factory=list)
    failed_sections: List[str] = Field(default_factory=list)
    unread_notifications: int = 0
