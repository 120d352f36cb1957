import pytest
from httpx import AsyncClient, ASGITransport
import os
from datetime import datetime, timedelta

# Set up test environment variables before anything else
worker_id = os.environ.get("PYTEST_XDIST_WORKER", "master")
db_name = f"cleaning_management_test_{worker_id}"

os.environ["ENV"] = "testing"
os.environ["DB_NAME"] = db_name
os.environ["RESEND_API_KEY"] = ""

from config import config
config.ENV = "testing"
config.DB_NAME = db_name
config.RESEND_API_KEY = None

from main import app

from pymongo import MongoClient
from pymongo.errors import PyMongoError

# Setup sync client for testing fixtures
sync_client = MongoClient(config.MONGO_URI or "mongodb://localhost:27017/", serverSelectionTimeoutMS=2000)
sync_db = sync_client[config.DB_NAME]


def _mongo_available() -> bool:
    try:
        sync_client.admin.command("ping")
        return True
    except PyMongoError:
        return False

MONGO_AVAILABLE = _mongo_available()


@pytest.fixture(scope="session")
def test_db_session():
    if not MONGO_AVAILABLE:
        pytest.skip("MongoDB is not reachable")
    # Ensure clean state from any previously crashed runs on startup
    sync_client.drop_database(config.DB_NAME)
    yield sync_db
    # Teardown: drop the database after tests are done
    sync_client.drop_database(config.DB_NAME)

@pytest.fixture(scope="function")
def clean_db(test_db_session):
    """Drop all collections before each test to ensure test isolation."""
    for collection in sync_db.list_collection_names():
        sync_db.drop_collection(collection)
    yield sync_db

@pytest.fixture(scope="function")
async def async_client(clean_db):
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://testserver") as test_client:
        yield test_client

@pytest.fixture(scope="function", autouse=True)
def reset_motor_client():
    from database import client
    client.reset()


# ── Payload builders ──────────────────────────────────────────────────────────

def customer_payload(**overrides) -> dict:
    data = {
        "first_name": "Arben",
        "last_name": "Krasniqi",
        "email": "arben.krasniqi@example.com",
        "phone": "+383 44 123 456",
        "address": "Rr. Nena Tereze 12",
        "city": "Pristina",
        "municipality": "Pristina",
        "customer_type": "Residential",
    }
    data.update(overrides)
    return data


def employee_payload(**overrides) -> dict:
    data = {
        "first_name": "Blerta",
        "last_name": "Morina",
        "email": "blerta.morina@cleaningpro.com",
        "phone": "+383 45 222 333",
        "position": "Cleaner",
        "hourly_rate": 5.0,
        "address": "Rr. UCK 4",
        "city": "Pristina",
        "municipality": "Pristina",
        "nationality": "Kosovo Citizen",
        "personal_number": "1234567890",
    }
    data.update(overrides)
    return data


def object_payload(customer_id: str, **overrides) -> dict:
    data = {
        "customer_id": customer_id,
        "name": "Krasniqi Office",
        "type": "Office",
        "address": {"street": "Rr. Agim Ramadani 5", "city": "Pristina", "municipality": "Pristina"},
        "contact_person": {"name": "Arben Krasniqi", "phone": "+383 44 123 456"},
        "cleaning_frequency": "Weekly",
        "estimated_cleaning_time": 3,
    }
    data.update(overrides)
    return data


def contract_payload(customer_id: str, object_ids=None, **overrides) -> dict:
    data = {
        "customer_id": customer_id,
        "objects": object_ids or [],
        "start_date": datetime.now().strftime("%Y-%m-%d"),
        "contract_type": "Recurring",
        "billing_frequency": "Monthly",
        "services": [{"name": "Regular Cleaning", "frequency": "Weekly", "price": 10}],
        "working_days_and_times": [
            {"day": "Monday", "time_slots": [{"from": "08:00", "to": "11:00", "duration": 3}]},
        ],
    }
    data.update(overrides)
    return data


def schedule_payload(object_id: str, employee_ids=(), **overrides) -> dict:
    data = {
        "object_id": object_id,
        "employees": [{"employee_id": e, "role": "Primary"} for e in employee_ids],
        "scheduled_date": (datetime.now() + timedelta(days=1)).strftime("%Y-%m-%dT00:00:00"),
        "start_time": "09:00",
        "end_time": "12:00",
    }
    data.update(overrides)
    return data


def invoice_payload(**overrides) -> dict:
    data = {
        "customer": {"name": "Arben Krasniqi", "email": "arben.krasniqi@example.com", "phone": "+383 44 123 456"},
        "due_date": (datetime.now() + timedelta(days=30)).strftime("%Y-%m-%dT00:00:00"),
        "services": [{"description": "Office cleaning", "quantity": 10, "unit_price": 20}],
    }
    data.update(overrides)
    return data


@pytest.fixture
async def customer(async_client: AsyncClient) -> dict:
    resp = await async_client.post("/api/customers", json=customer_payload())
    assert resp.status_code == 201
    return resp.json()


@pytest.fixture
async def employee(async_client: AsyncClient) -> dict:
    resp = await async_client.post("/api/employees", json=employee_payload())
    assert resp.status_code == 201
    return resp.json()


@pytest.fixture
async def location(async_client: AsyncClient, customer: dict) -> dict:
    resp = await async_client.post("/api/objects", json=object_payload(customer["_id"]))
    assert resp.status_code == 201
    return resp.json()
