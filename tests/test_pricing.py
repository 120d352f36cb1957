from datetime import datetime, timedelta

from utils.pricing import (
    calculate_contract_totals, weekly_hours, tax_on, apply_invoice_state,
    invoice_virtuals, time_ago, relative_day,
)

NOW = datetime(2025, 6, 15, 12, 0)

SLOTS = [
    {"day": "Monday", "time_slots": [{"from": "08:00", "to": "10:00", "duration": 2}]},
    {"day": "Thursday", "time_slots": [
        {"from": "08:00", "to": "09:30", "duration": 1.5},
        {"from": "14:00", "to": "15:00", "duration": 1},
    ]},
]


def test_weekly_hours_sums_every_slot():
    assert weekly_hours(SLOTS) == 4.5
    assert weekly_hours([]) == 0


def test_contract_totals_per_billing_cycle():
    services = [
        {"name": "Office", "frequency": "Weekly", "price": 10},
        {"name": "Windows", "frequency": "Monthly", "price": 20},
    ]
    totals = calculate_contract_totals(services, SLOTS, "Quarterly", vat_rate=18)
    # 10 x 4.5 x 1 x 13 and 20 x 4.5 x 0.25 x 13
    assert totals["services"] == [{"name": "Office", "amount": 585.0}, {"name": "Windows", "amount": 292.5}]
    assert totals["billing_multiplier"] == 13
    assert totals["total_amount"] == 877.5
    assert totals["vat_amount"] == 157.95
    assert totals["total_with_vat"] == 1035.45


def test_contract_totals_defaults():
    totals = calculate_contract_totals([{"name": "X", "price": 10}], SLOTS, None)
    assert totals["billing_multiplier"] == 1
    assert totals["total_amount"] == 45
    assert totals["vat_rate"] == 18


def test_tax_on_discounted_subtotal():
    assert tax_on(200, 20, 18) == 32.4
    assert tax_on(200, 0, 0) == 0


def test_invoice_state_transitions():
    due = NOW + timedelta(days=10)
    assert apply_invoice_state({"total_amount": 100, "paid_amount": 0, "status": "Draft", "due_date": due}, NOW)["status"] == "Draft"
    assert apply_invoice_state({"total_amount": 100, "paid_amount": 40, "status": "Sent", "due_date": due}, NOW)["status"] == "Partially Paid"

    paid = apply_invoice_state({"total_amount": 100, "paid_amount": 100, "status": "Sent", "due_date": NOW - timedelta(days=1)}, NOW)
    assert paid["status"] == "Paid"
    assert paid["balance"] == 0

    assert apply_invoice_state({"total_amount": 100, "paid_amount": 0, "status": "Paid", "due_date": due}, NOW)["status"] == "Sent"
    assert apply_invoice_state({"total_amount": 100, "paid_amount": 0, "status": "Sent", "due_date": NOW - timedelta(days=1)}, NOW)["status"] == "Overdue"
    assert apply_invoice_state({"total_amount": 100, "paid_amount": 0, "status": "Cancelled", "due_date": NOW - timedelta(days=1)}, NOW)["status"] == "Cancelled"


def test_invoice_virtuals():
    doc = invoice_virtuals({
        "total_amount": 118, "paid_amount": 18, "status": "Sent",
        "due_date": NOW - timedelta(days=2, hours=3),
    }, NOW)
    assert doc["remaining_balance"] == 100
    assert doc["is_overdue"] is True
    assert doc["days_overdue"] == 3
    assert doc["formatted_amount"] == "€118.00"


def test_time_ago():
    assert time_ago(None, NOW) == "Unknown"
    assert time_ago(NOW - timedelta(seconds=20), NOW) == "Just now"
    assert time_ago(NOW - timedelta(minutes=1), NOW) == "1 minute ago"
    assert time_ago(NOW - timedelta(minutes=45), NOW) == "45 minutes ago"
    assert time_ago(NOW - timedelta(hours=5), NOW) == "5 hours ago"
    assert time_ago(NOW - timedelta(days=1, hours=2), NOW) == "Yesterday"
    assert time_ago(NOW - timedelta(days=4), NOW) == "4 days ago"


def test_relative_day():
    today = NOW.date()
    assert relative_day(NOW, today) == "Today"
    assert relative_day(NOW + timedelta(days=1), today) == "Tomorrow"
    assert relative_day(datetime(2025, 7, 1), today) == "01/07/2025"
