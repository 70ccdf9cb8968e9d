"""
Card rendering for the dashboard page.

Turns section summaries into the eight headline cards shown on the page,
with locale-aware number and currency formatting from babel.
"""

from decimal import Decimal
from typing import List

from babel import Locale
from babel.core import UnknownLocaleError
from babel.numbers import format_currency, format_decimal

from services.dashboard.schemas.stats import DashboardCard, DashboardStats

DEFAULT_LOCALE = "en_US"


def _validate_locale(locale_code: str) -> str:
    try:
        Locale.parse(locale_code)
        return locale_code
    except (UnknownLocaleError, ValueError):
        return DEFAULT_LOCALE


def format_money(amount: float, currency: str, locale: str = DEFAULT_LOCALE) -> str:
    """
    Format an amount in ``currency`` for ``locale``.

    >>> format_money(1234.5, "EUR")
    '€1,234.50'
    """
    return format_currency(
        Decimal(str(amount)), currency.upper(), locale=_validate_locale(locale)
    )


def format_count(count: int, locale: str = DEFAULT_LOCALE) -> str:
    return format_decimal(count, locale=_validate_locale(locale))


def render_cards(
    stats: DashboardStats, currency: str = "EUR", locale: str = DEFAULT_LOCALE
) -> List[DashboardCard]:
    """Build the dashboard cards, finance and CRM first, then operations."""

    def money_card(key: str, title: str, amount: float, subtitle: str) -> DashboardCard:
        return DashboardCard(
            key=key,
            title=title,
            value=format_money(amount, currency, locale),
            raw_value=amount,
            subtitle=subtitle,
        )

    def count_card(key: str, title: str, count: int, subtitle: str) -> DashboardCard:
        return DashboardCard(
            key=key,
            title=title,
            value=format_count(count, locale),
            raw_value=count,
            subtitle=subtitle,
        )

    return [
        money_card(
            "total_revenue",
            "Total Revenue",
            stats.finance.total_revenue,
            f"{stats.finance.pending_invoices} pending invoices",
        ),
        count_card(
            "active_companies",
            "Active Companies",
            stats.crm.active_companies,
            f"{stats.crm.open_opportunities} open opportunities",
        ),
        money_card(
            "sales_pipeline",
            "Sales Pipeline",
            stats.crm.pipeline_value,
            f"{stats.sales.total_orders} sales orders",
        ),
        count_card(
            "active_projects",
            "Active Projects",
            stats.projects.active_projects,
            f"of {stats.projects.total_projects} total",
        ),
        money_card(
            "inventory_value",
            "Inventory Value",
            stats.inventory.total_value,
            f"{stats.inventory.total_items} items in stock",
        ),
        count_card(
            "work_orders",
            "Work Orders",
            stats.manufacturing.total_work_orders,
            f"{stats.manufacturing.in_progress_orders} in progress",
        ),
        money_card(
            "fixed_assets",
            "Fixed Assets",
            stats.assets.total_value,
            f"{stats.assets.total_assets} assets",
        ),
        count_card(
            "employees",
            "Employees",
            stats.hr.total_employees,
            "Active staff",
        ),
    ]
