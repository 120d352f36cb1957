# utils/pricing.py
"""
Money rules shared by contracts, invoices and the dashboard.
"""
import math
from datetime import date, datetime, timedelta
from typing import Iterable, List, Optional

from config import config
from constants import InvoiceStatus

# How often a service is performed per week
VISITS_PER_WEEK = {
    "Daily": 7,
    "Weekly": 1,
    "Bi-weekly": 0.5,
    "Monthly": 0.25,
    "As Needed": 1,
}

# Weeks covered by one billing cycle
WEEKS_PER_BILLING_CYCLE = {
    "Weekly": 1,
    "Bi-weekly": 2,
    "Monthly": 4,
    "Quarterly": 13,
    "Annually": 52,
}


def money(value: float) -> float:
    return round(value + 0.0, 2)


def weekly_hours(working_days_and_times: Iterable[dict]) -> float:
    """Sum of every time slot duration across the contract's working days."""
    total = 0.0
    for day in working_days_and_times or []:
        for slot in day.get("time_slots") or []:
            total += float(slot.get("duration") or 0)
    return total


def calculate_contract_totals(
    services: List[dict],
    working_days_and_times: List[dict],
    billing_frequency: Optional[str],
    vat_rate: Optional[float] = None,
) -> dict:
    """
    Price of one billing cycle:
    hourly price x weekly hours x visits per week x weeks per cycle, per service.
    """
    if vat_rate is None:
        vat_rate = config.DEFAULT_VAT_RATE

    hours = weekly_hours(working_days_and_times)
    weeks = WEEKS_PER_BILLING_CYCLE.get(billing_frequency, 1)

    lines = []
    total = 0.0
    for service in services or []:
        price = float(service.get("price") or 0)
        visits = VISITS_PER_WEEK.get(service.get("frequency"), 1)
        amount = price * hours * visits * weeks
        lines.append({"name": service.get("name"), "amount": money(amount)})
        total += amount

    vat_amount = total * vat_rate / 100
    return {
        "weekly_hours": hours,
        "billing_multiplier": weeks,
        "services": lines,
        "total_amount": money(total),
        "vat_rate": vat_rate,
        "vat_amount": money(vat_amount),
        "total_with_vat": money(total + vat_amount),
    }


def tax_on(subtotal: float, discount: float, tax_rate: float) -> float:
    return money((subtotal - discount) * tax_rate / 100)


def apply_invoice_state(doc: dict, now: Optional[datetime] = None) -> dict:
    """
    Recomputes balance and status from the paid amount and due date.
    Cancelled invoices keep their status.
    """
    now = now or datetime.now()
    total = doc.get("total_amount") or 0
    paid = doc.get("paid_amount") or 0
    doc["balance"] = money(total - paid)

    if doc.get("status") == InvoiceStatus.CANCELLED:
        return doc

    if paid >= total:
        doc["status"] = InvoiceStatus.PAID
    elif paid > 0:
        doc["status"] = InvoiceStatus.PARTIALLY_PAID
    elif doc.get("status") == InvoiceStatus.PAID:
        doc["status"] = InvoiceStatus.SENT

    due = doc.get("due_date")
    if doc["status"] != InvoiceStatus.PAID and due and now > due:
        doc["status"] = InvoiceStatus.OVERDUE
    return doc


def is_overdue(doc: dict, now: Optional[datetime] = None) -> bool:
    now = now or datetime.now()
    due = doc.get("due_date")
    return (
        doc.get("status") not in (InvoiceStatus.PAID, InvoiceStatus.CANCELLED)
        and isinstance(due, datetime)
        and now > due
    )


def invoice_virtuals(doc: dict, now: Optional[datetime] = None) -> dict:
    now = now or datetime.now()
    total = doc.get("total_amount") or 0
    doc["remaining_balance"] = money(total - (doc.get("paid_amount") or 0))
    doc["is_overdue"] = is_overdue(doc, now)
    if doc["is_overdue"]:
        doc["days_overdue"] = math.ceil((now - doc["due_date"]).total_seconds() / 86400)
    else:
        doc["days_overdue"] = 0
    doc["formatted_amount"] = f"€{total:.2f}"
    return doc


def time_ago(value: Optional[datetime], now: Optional[datetime] = None) -> str:
    """Human readable age used on the dashboard activity feed."""
    if value is None:
        return "Unknown"
    now = now or datetime.now()
    minutes = int((now - value).total_seconds() // 60)
    hours = minutes // 60
    days = hours // 24

    if minutes < 1:
        return "Just now"
    if minutes < 60:
        return f"{minutes} minute{'s' if minutes > 1 else ''} ago"
    if hours < 24:
        return f"{hours} hour{'s' if hours > 1 else ''} ago"
    if days == 1:
        return "Yesterday"
    return f"{days} days ago"


def relative_day(value: datetime, today: Optional[date] = None) -> str:
    today = today or datetime.now().date()
    if value.date() == today:
        return "Today"
    if value.date() == today + timedelta(days=1):
        return "Tomorrow"
    return value.strftime("%d/%m/%Y")
