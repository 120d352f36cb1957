# utils/numbering.py
"""
Human-facing document numbers: invoices, employee contracts, customer contracts.
"""
import random
import re
from datetime import datetime
from typing import Optional

INVOICE_NUMBER_RE = re.compile(r"^INV-(\d{4})-(\d+)$")
EMPLOYEE_CONTRACT_NUMBER_RE = re.compile(r"^EMP-(\d{4})-(\d+)$")
CONTRACT_NUMBER_ATTEMPTS = 20


def format_invoice_number(year: int, sequence: int) -> str:
    return f"INV-{year}-{sequence:04d}"


def next_invoice_sequence(latest_number: Optional[str]) -> int:
    if not latest_number:
        return 1
    match = INVOICE_NUMBER_RE.match(latest_number)
    if not match:
        return 1
    return int(match.group(2)) + 1


async def generate_invoice_number(db, now: Optional[datetime] = None) -> str:
    """Next number after the highest one issued this year (INV-YYYY-NNNN)."""
    year = (now or datetime.now()).year
    prefix = f"INV-{year}-"
    latest = await db.invoices.find_one(
        {"invoice_number": {"$regex": f"^{prefix}"}},
        sort=[("invoice_number", -1)],
        projection={"invoice_number": 1},
    )
    return format_invoice_number(year, next_invoice_sequence(latest["invoice_number"] if latest else None))


async def generate_employee_contract_number(db, now: Optional[datetime] = None) -> str:
    """EMP-YYYY-NNN, one past the highest number issued this year."""
    year = (now or datetime.now()).year
    highest = 0
    cursor = db.employee_contracts.find(
        {"contract_number": {"$regex": f"^EMP-{year}-"}},
        {"contract_number": 1},
    )
    # Numeric max; string order breaks once a year passes 999 contracts
    async for doc in cursor:
        match = EMPLOYEE_CONTRACT_NUMBER_RE.match(doc.get("contract_number") or "")
        if match:
            highest = max(highest, int(match.group(2)))
    return f"EMP-{year}-{highest + 1:03d}"


def random_contract_number() -> str:
    return str(random.randint(1_000_000, 9_999_999))


async def generate_customer_contract_number(db) -> str:
    """Random 7-digit number not yet used by another contract."""
    for _ in range(CONTRACT_NUMBER_ATTEMPTS):
        candidate = random_contract_number()
        if not await db.customer_contracts.find_one({"contract_number": candidate}, {"_id": 1}):
            return candidate
    raise RuntimeError("Could not allocate a unique contract number")
