import sys
import os
import asyncio
from pymongo import ASCENDING, DESCENDING

# Add parent directory to path to import database
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from database import (
    customers_collection, employees_collection, employee_contracts_collection,
    objects_collection, customer_contracts_collection, schedules_collection, invoices_collection,
)
from logging_config import get_logger

logger = get_logger("setup_indexes")

async def create_indexes():
    print("🚀 Starting Index Creation...")

    # --- Customers ---
    print("\n📦 Customers Collection:")
    await customers_collection.create_index([("email", ASCENDING)], unique=True)
    print("✅ Created index: (email UNIQUE)")

    # For Listing: find({status: X}).sort(last_name, first_name)
    await customers_collection.create_index([("status", ASCENDING), ("last_name", ASCENDING), ("first_name", ASCENDING)])
    print("✅ Created index: (status, last_name, first_name)")

    # --- Employees ---
    print("\n📦 Employees Collection:")
    await employees_collection.create_index([("email", ASCENDING)], unique=True)
    print("✅ Created index: (email UNIQUE)")

    await employees_collection.create_index([("status", ASCENDING), ("position", ASCENDING)])
    print("✅ Created index: (status, position)")

    # --- Employee Contracts ---
    print("\n📦 Employee Contracts Collection:")
    await employee_contracts_collection.create_index([("contract_number", ASCENDING)], unique=True, sparse=True)
    print("✅ Created index: (contract_number UNIQUE SPARSE)")

    # For Contracts By Employee: find({employee_id: X}).sort(start_date: -1)
    await employee_contracts_collection.create_index([("employee_id", ASCENDING), ("start_date", DESCENDING)])
    print("✅ Created index: (employee_id, start_date DESC)")

    # --- Objects ---
    print("\n📦 Objects Collection:")
    await objects_collection.create_index([("customer_id", ASCENDING)])
    print("✅ Created index: (customer_id)")

    # --- Customer Contracts ---
    print("\n📦 Customer Contracts Collection:")
    await customer_contracts_collection.create_index([("contract_number", ASCENDING)], unique=True, sparse=True)
    print("✅ Created index: (contract_number UNIQUE SPARSE)")

    await customer_contracts_collection.create_index([("customer_id", ASCENDING), ("status", ASCENDING)])
    print("✅ Created index: (customer_id, status)")

    # --- Schedules ---
    print("\n📦 Schedules Collection:")
    # For Conflict Checks: find({employees.employee_id: {$in}, scheduled_date: day})
    await schedules_collection.create_index([("employees.employee_id", ASCENDING), ("scheduled_date", ASCENDING)])
    print("✅ Created index: (employees.employee_id, scheduled_date)")

    await schedules_collection.create_index([("scheduled_date", ASCENDING), ("status", ASCENDING)])
    print("✅ Created index: (scheduled_date, status)")

    await schedules_collection.create_index([("object_id", ASCENDING)])
    print("✅ Created index: (object_id)")

    # --- Invoices ---
    print("\n📦 Invoices Collection:")
    await invoices_collection.create_index([("invoice_number", ASCENDING)], unique=True, sparse=True)
    print("✅ Created index: (invoice_number UNIQUE SPARSE)")

    # Payment links look invoices up by token; unset tokens are stored as null
    await invoices_collection.create_index(
        [("payment_token", ASCENDING)],
        unique=True,
        partialFilterExpression={"payment_token": {"$type": "string"}},
    )
    print("✅ Created index: (payment_token UNIQUE, strings only)")

    await invoices_collection.create_index([("status", ASCENDING), ("due_date", ASCENDING)])
    print("✅ Created index: (status, due_date)")

    await invoices_collection.create_index([("customer.customer_id", ASCENDING)])
    print("✅ Created index: (customer.customer_id)")

    await invoices_collection.create_index([("customer_contract_id", ASCENDING)])
    print("✅ Created index: (customer_contract_id)")

    print("\n✨ All indexes created successfully!")

if __name__ == "__main__":
    # Ensure event loop for async driver
    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)
    loop.run_until_complete(create_indexes())
