"""
Dashboard aggregation service.

Each section of the dashboard is an independent job: fetch one or more
module endpoints, decode them through the typed contracts and reduce them
to a small summary. All jobs run concurrently; a job that fails leaves its
section at the zero defaults and is reported in ``failed_sections``.
"""

import asyncio
from typing import Any, Coroutine, Dict, List

from services.common.logging_config import get_logger
from services.dashboard.schemas.stats import (
    AssetStats,
    AssetStatsPayload,
    CompanyRecord,
    CrmStats,
    DashboardStats,
    DashboardSummary,
    EmployeeRecord,
    FinanceStats,
    HrStats,
    InventoryStats,
    InventoryStatsPayload,
    InvoiceRecord,
    ManufacturingStats,
    ManufacturingStatsPayload,
    OpportunityRecord,
    PaymentRecord,
    ProjectRecord,
    ProjectStats,
    SalesOrderStatsPayload,
    SalesStats,
    UnreadCountPayload,
    decode_list,
    decode_object,
)
from services.dashboard.services.api_client import ModuleAPIClient
from services.dashboard.services.rendering import render_cards

logger = get_logger(__name__)

NOTIFICATIONS = "notifications"


class DashboardService:
    """Service aggregating module statistics for the dashboard page."""

    def __init__(
        self, client: ModuleAPIClient, currency: str = "EUR", locale: str = "en_US"
    ):
        self.client = client
        self.currency = currency
        self.locale = locale

    async def finance_stats(self) -> FinanceStats:
        invoices = decode_list(await self.client.get("/invoices"), InvoiceRecord)
        payments = decode_list(await self.client.get("/payments"), PaymentRecord)
        return FinanceStats(
            total_revenue=sum(payment.amount for payment in payments),
            pending_invoices=sum(1 for invoice in invoices if invoice.status == "sent"),
        )

    async def crm_stats(self) -> CrmStats:
        companies = decode_list(await self.client.get("/companies"), CompanyRecord)
        opportunities = decode_list(
            await self.client.get("/opportunities", params={"status": "open"}),
            OpportunityRecord,
        )
        return CrmStats(
            active_companies=sum(1 for c in companies if c.status == "active"),
            open_opportunities=len(opportunities),
            pipeline_value=sum(o.value for o in opportunities),
        )

    async def project_stats(self) -> ProjectStats:
        projects = decode_list(await self.client.get("/projects"), ProjectRecord)
        return ProjectStats(
            active_projects=sum(1 for p in projects if p.status == "active"),
            total_projects=len(projects),
        )

    async def inventory_stats(self) -> InventoryStats:
        payload = decode_object(
            await self.client.get("/inventory/stats"), InventoryStatsPayload
        )
        return InventoryStats(
            total_items=payload.total_items, total_value=payload.total_value
        )

    async def hr_stats(self) -> HrStats:
        employees = decode_list(await self.client.get("/hr/employees"), EmployeeRecord)
        return HrStats(
            total_employees=sum(1 for e in employees if e.status == "active")
        )

    async def sales_stats(self) -> SalesStats:
        payload = decode_object(
            await self.client.get("/sales/orders/stats"), SalesOrderStatsPayload
        )
        return SalesStats(
            total_orders=payload.total_orders, total_revenue=payload.total_revenue
        )

    async def manufacturing_stats(self) -> ManufacturingStats:
        payload = decode_object(
            await self.client.get("/manufacturing/boms/stats"),
            ManufacturingStatsPayload,
        )
        return ManufacturingStats(
            total_work_orders=payload.total_work_orders,
            in_progress_orders=payload.in_progress_orders,
        )

    async def asset_stats(self) -> AssetStats:
        payload = decode_object(
            await self.client.get("/assets/assets/stats"), AssetStatsPayload
        )
        return AssetStats(
            total_assets=payload.total_assets, total_value=payload.total_value
        )

    async def unread_notifications(self) -> int:
        payload = decode_object(
            await self.client.get("/notifications/unread-count"), UnreadCountPayload
        )
        return payload.count

    def _jobs(self) -> Dict[str, Coroutine[Any, Any, Any]]:
        return {
            "finance": self.finance_stats(),
            "crm": self.crm_stats(),
            "projects": self.project_stats(),
            "inventory": self.inventory_stats(),
            "hr": self.hr_stats(),
            "sales": self.sales_stats(),
            "manufacturing": self.manufacturing_stats(),
            "assets": self.asset_stats(),
            NOTIFICATIONS: self.unread_notifications(),
        }

    async def get_dashboard(self) -> DashboardSummary:
        """
        Run every section job concurrently and assemble the dashboard.

        Returns:
            DashboardSummary with stats, rendered cards, the names of the
            sections that failed and the unread notification count
        """
        jobs = self._jobs()
        sections = list(jobs)

        # Execute parallel requests
        results = await asyncio.gather(*jobs.values(), return_exceptions=True)

        stats = DashboardStats()
        unread_notifications = 0
        failed_sections: List[str] = []

        for i, result in enumerate(results):
            section = sections[i]

            if isinstance(result, BaseException):
                logger.warning(
                    "Dashboard section failed",
                    section=section,
                    error=str(result),
                    error_type=type(result).__name__,
                )
                failed_sections.append(section)
            elif section == NOTIFICATIONS:
                unread_notifications = result
            else:
                setattr(stats, section, result)

        if failed_sections:
            logger.info(
                f"Dashboard assembled with {len(failed_sections)} failed sections",
                failed_sections=failed_sections,
            )

        return DashboardSummary(
            stats=stats,
            cards=render_cards(stats, self.currency, self.locale),
            failed_sections=failed_sections,
            unread_notifications=unread_notifications,
        )
