import asyncio
from database import (
    db, customers_collection, employees_collection, employee_contracts_collection,
    objects_collection, customer_contracts_collection, schedules_collection, invoices_collection,
)
from models.customer import CustomerModel
from models.employee import EmployeeModel
from models.employee_contract import EmployeeContractModel
from models.object import ObjectModel
from models.customer_contract import CustomerContractModel
from models.schedule import ScheduleModel
from models.invoice import InvoiceModel
from utils.numbering import (
    generate_customer_contract_number, generate_employee_contract_number, generate_invoice_number,
)
from utils.pricing import calculate_contract_totals
from datetime import datetime, timedelta
import random

# ===== CUSTOMERS =====
SAMPLE_CUSTOMERS = [
    {"first_name": "Arben", "last_name": "Krasniqi", "email": "arben.krasniqi@example.com", "city": "Pristina", "municipality": "Pristina", "customer_type": "Residential"},
    {"first_name": "Drita", "last_name": "Gashi", "email": "drita.gashi@example.com", "city": "Prizren", "municipality": "Prizren", "customer_type": "Individual Business", "nipt": "810123456", "company": "Gashi Consulting"},
    {"first_name": "Besnik", "last_name": "Berisha", "email": "besnik.berisha@example.com", "city": "Peja", "municipality": "Peja", "customer_type": "Limited Liability Company", "nipt": "810654321", "company": "Berisha Trade LLC"},
    {"first_name": "Valbona", "last_name": "Hoxha", "email": "valbona.hoxha@example.com", "city": "Gjakova", "municipality": "Gjakova", "customer_type": "Residential"},
    {"first_name": "Ilir", "last_name": "Shala", "email": "ilir.shala@example.com", "city": "Ferizaj", "municipality": "Ferizaj", "customer_type": "Limited Liability Company", "nipt": "810777888", "company": "Shala Logistics"},
]

# ===== EMPLOYEES =====
SAMPLE_EMPLOYEES = [
    {"first_name": "Blerta", "last_name": "Morina", "position": "Team Lead", "nationality": "Kosovo Citizen", "personal_number": "1234567890", "hourly_rate": 6.5},
    {"first_name": "Fatos", "last_name": "Rexhepi", "position": "Cleaner", "nationality": "Kosovo Citizen", "personal_number": "1234567891", "hourly_rate": 4.5},
    {"first_name": "Liridona", "last_name": "Bytyqi", "position": "Senior Cleaner", "nationality": "Kosovo Citizen", "personal_number": "1234567892", "hourly_rate": 5.5},
    {
        "first_name": "Marco", "last_name": "Rossi", "position": "Cleaner", "nationality": "EU Citizen", "hourly_rate": 4.5,
        "work_permit": {"type": "B", "number": "WP-2024-118", "issue_date": "2024-03-01", "expiry_date": "2027-03-01"},
        "residence_permit": {"type": "EU Long-term", "number": "RP-2024-077", "expiry_date": "2027-03-01"},
    },
    {"first_name": "Gentiana", "last_name": "Kelmendi", "position": "Supervisor", "nationality": "Kosovo Citizen", "personal_number": "1234567893", "hourly_rate": 7.0},
]

STREETS = ["Rr. Nena Tereze", "Rr. Agim Ramadani", "Rr. UCK", "Bulevardi Bill Clinton", "Rr. Luan Haradinaj"]
OBJECT_TYPES = ["Office", "Residential", "Commercial", "Healthcare", "Educational"]
START_TIMES = ["07:00", "08:00", "09:00", "13:00", "17:00"]


def _phone():
    return f"+383 4{random.randint(4, 9)} {random.randint(100, 999)} {random.randint(100, 999)}"


async def seed_all():
    print("🌱 Starting to seed all data...")

    for collection in (customers_collection, employees_collection, employee_contracts_collection,
                       objects_collection, customer_contracts_collection, schedules_collection, invoices_collection):
        await collection.delete_many({})
    print("✅ Cleared all collections.\n")

    # ===== SEED CUSTOMERS =====
    print("👤 Seeding Customers...")
    customers = []
    for data in SAMPLE_CUSTOMERS:
        customer = CustomerModel(
            **data,
            phone=_phone(),
            address=random.choice(STREETS),
            status="Active",
        ).model_dump()
        result = await customers_collection.insert_one(customer)
        customer["_id"] = result.inserted_id
        customers.append(customer)
        print(f"   ✓ Customer: {data['first_name']} {data['last_name']}")

    # ===== SEED EMPLOYEES & CONTRACTS =====
    print("\n👷 Seeding Employees & Contracts...")
    employees = []
    for data in SAMPLE_EMPLOYEES:
        employee = EmployeeModel(
            **data,
            email=f"{data['first_name'].lower()}.{data['last_name'].lower()}@cleaningpro.com",
            phone=_phone(),
            address=random.choice(STREETS),
            city="Pristina",
            municipality="Pristina",
            hire_date=datetime.now() - timedelta(days=random.randint(30, 700)),
        ).model_dump()
        result = await employees_collection.insert_one(employee)
        employee["_id"] = result.inserted_id
        employees.append(employee)

        contract = EmployeeContractModel(
            employee_id=str(result.inserted_id),
            contract_type="Full-time",
            start_date=employee["hire_date"],
            salary=round(data["hourly_rate"] * 40 * 4, 2),
            hourly_rate=data["hourly_rate"],
            working_hours={"weekly_hours": 40},
            status="Active",
        ).model_dump()
        contract["contract_number"] = await generate_employee_contract_number(db)
        await employee_contracts_collection.insert_one(contract)
        print(f"   ✓ Employee: {data['first_name']} {data['last_name']} ({contract['contract_number']})")

    # ===== SEED OBJECTS & CUSTOMER CONTRACTS =====
    print("\n🏢 Seeding Objects & Customer Contracts...")
    contracts = []
    objects = []
    for customer in customers:
        obj = ObjectModel(
            customer_id=str(customer["_id"]),
            name=f"{customer['company'] or customer['last_name']} {random.choice(['Office', 'Home', 'Branch'])}",
            type=random.choice(OBJECT_TYPES),
            address={"street": customer["address"], "city": customer["city"], "municipality": customer["municipality"]},
            contact_person={"name": f"{customer['first_name']} {customer['last_name']}", "phone": customer["phone"]},
            size={"area": random.choice([80, 120, 250, 600])},
            cleaning_frequency="Weekly",
            estimated_cleaning_time=random.choice([2, 3, 4]),
        ).model_dump()
        result = await objects_collection.insert_one(obj)
        obj["_id"] = result.inserted_id
        objects.append(obj)

        start = random.choice(START_TIMES)
        end = f"{int(start[:2]) + 3:02d}:{start[3:]}"
        services = [{"name": "Regular Cleaning", "frequency": "Weekly", "price": 12}]
        working_days = [
            {"day": day, "time_slots": [{"from": start, "to": end, "duration": 3}]}
            for day in random.sample(["Monday", "Tuesday", "Wednesday", "Thursday", "Friday"], 2)
        ]
        totals = calculate_contract_totals(services, working_days, "Monthly")
        contract = CustomerContractModel(
            customer_id=str(customer["_id"]),
            customer={
                "name": f"{customer['first_name']} {customer['last_name']}",
                "email": customer["email"],
                "phone": customer["phone"],
                "address": {"street": customer["address"], "city": customer["city"], "municipality": customer["municipality"]},
            },
            objects=[str(result.inserted_id)],
            start_date=datetime.now() - timedelta(days=random.randint(10, 90)),
            contract_type="Recurring",
            billing_frequency="Monthly",
            total_amount=totals["total_amount"],
            services=services,
            working_days_and_times=working_days,
            status="Active",
        ).model_dump()
        contract["contract_number"] = await generate_customer_contract_number(db)
        contract_result = await customer_contracts_collection.insert_one(contract)
        contract["_id"] = contract_result.inserted_id
        contracts.append(contract)
        print(f"   ✓ {obj['name']} / contract {contract['contract_number']} ({totals['total_amount']} EUR)")

    # ===== SEED SCHEDULES =====
    print("\n📅 Seeding Schedules...")
    count = 0
    for offset in range(-3, 7):
        day = datetime.now().replace(hour=0, minute=0, second=0, microsecond=0) + timedelta(days=offset)
        # One job per object per day, each with its own employee so nobody is double-booked
        for idx, (obj, contract) in enumerate(zip(objects, contracts)):
            if random.random() < 0.5:
                continue
            start = START_TIMES[idx % len(START_TIMES)]
            schedule = ScheduleModel(
                object_id=str(obj["_id"]),
                customer_contract_id=str(contract["_id"]),
                employees=[{"employee_id": str(employees[idx % len(employees)]["_id"]), "role": "Primary"}],
                scheduled_date=day,
                start_time=start,
                end_time=f"{int(start[:2]) + 3:02d}:{start[3:]}",
                status="Completed" if offset < 0 else "Scheduled",
            ).model_dump()
            await schedules_collection.insert_one(schedule)
            count += 1
    print(f"✅ Inserted {count} schedules.\n")

    # ===== SEED INVOICES =====
    print("🧾 Seeding Invoices...")
    for contract in contracts:
        invoice = InvoiceModel(
            customer_contract_id=str(contract["_id"]),
            related_objects=contract["objects"],
            customer={"customer_id": contract["customer_id"], **contract["customer"]},
            issue_date=datetime.now() - timedelta(days=random.randint(0, 40)),
            due_date=datetime.now() + timedelta(days=random.randint(-10, 30)),
            services=[{"description": "Monthly cleaning service", "quantity": 1, "unit_price": contract["total_amount"]}],
            status="Sent",
            paid_amount=random.choice([0, 0, contract["total_amount"]]),
        ).model_dump()
        invoice["invoice_number"] = await generate_invoice_number(db)
        await invoices_collection.insert_one(invoice)
        print(f"   ✓ Invoice {invoice['invoice_number']}: {invoice['status']}")

    print("=" * 50)
    print("🎉 ALL DATA SEEDED SUCCESSFULLY!")
    print("=" * 50)

if __name__ == "__main__":
    asyncio.run(seed_all())
