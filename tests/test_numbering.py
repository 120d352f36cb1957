import pytest
from datetime import datetime

from utils.numbering import (
    format_invoice_number, next_invoice_sequence, random_contract_number,
    generate_customer_contract_number, generate_invoice_number, generate_employee_contract_number,
)


class FakeCursor:
    def __init__(self, docs):
        self.docs = list(docs)

    def __aiter__(self):
        return self

    async def __anext__(self):
        if not self.docs:
            raise StopAsyncIteration
        return self.docs.pop(0)


class FakeCollection:
    def __init__(self, found=None, docs=None):
        self.found = found
        self.queries = []
        self.docs = docs or []

    async def find_one(self, query, *args, **kwargs):
        self.queries.append(query)
        return self.found

    def find(self, query, *args, **kwargs):
        self.queries.append(query)
        return FakeCursor(self.docs)


class FakeDB:
    def __init__(self, **collections):
        for name, collection in collections.items():
            setattr(self, name, collection)


def test_format_invoice_number():
    assert format_invoice_number(2025, 7) == "INV-2025-0007"
    assert format_invoice_number(2025, 12345) == "INV-2025-12345"


def test_next_invoice_sequence():
    assert next_invoice_sequence(None) == 1
    assert next_invoice_sequence("INV-2025-0041") == 42
    assert next_invoice_sequence("legacy-17") == 1


def test_random_contract_number_is_seven_digits():
    for _ in range(50):
        number = random_contract_number()
        assert len(number) == 7
        assert number.isdigit()


async def test_generate_invoice_number_continues_the_year():
    invoices = FakeCollection({"invoice_number": "INV-2025-0009"})
    number = await generate_invoice_number(FakeDB(invoices=invoices), datetime(2025, 2, 1))
    assert number == "INV-2025-0010"
    assert invoices.queries[0] == {"invoice_number": {"$regex": "^INV-2025-"}}


async def test_generate_customer_contract_number_gives_up():
    taken = FakeDB(customer_contracts=FakeCollection({"_id": "x"}))
    with pytest.raises(RuntimeError):
        await generate_customer_contract_number(taken)

    free = FakeDB(customer_contracts=FakeCollection())
    assert len(await generate_customer_contract_number(free)) == 7


async def test_employee_contract_number_follows_the_highest():
    contracts = FakeCollection(docs=[
        {"contract_number": "EMP-2025-002"},
        {"contract_number": "EMP-2025-1000"},
        {"contract_number": "EMP-2025-999"},
        {"contract_number": "custom"},
    ])
    number = await generate_employee_contract_number(FakeDB(employee_contracts=contracts), datetime(2025, 5, 1))
    assert number == "EMP-2025-1001"
    assert contracts.queries[0] == {"contract_number": {"$regex": "^EMP-2025-"}}

    empty = FakeDB(employee_contracts=FakeCollection())
    assert await generate_employee_contract_number(empty, datetime(2026, 1, 2)) == "EMP-2026-001"
