from motor.motor_asyncio import AsyncIOMotorClient
from logging_config import get_logger
from config import config
import certifi

logger = get_logger("database")

uri = config.MONGO_URI

if uri:
    logger.info(f"MongoDB connection string found: {uri[:20]}...")
else:
    logger.error("MONGO_URI not found in configuration!")

class DatabaseProxy:
    """Lazily creates the motor client so tests can swap DB_NAME before first use."""

    def __init__(self):
        self._client = None

    def initialize(self):
        if self._client is None:
            if config.ENV == "production":
                self._client = AsyncIOMotorClient(uri, tlsCAFile=certifi.where())
            else:
                self._client = AsyncIOMotorClient(uri, serverSelectionTimeoutMS=5000)
            logger.info(f"Database client initialized on DB: {config.DB_NAME}")

    def reset(self):
        if self._client is not None:
            self._client.close()
            self._client = None
            logger.info("Database client closed")

    @property
    def database(self):
        self.initialize()
        return self._client[config.DB_NAME]


client = DatabaseProxy()

class DBProxy:
    def get_collection(self, name):
        return client.database[name]

    def __getattr__(self, attr):
        return client.database[attr]

    def __getitem__(self, key):
        return client.database[key]

db = DBProxy()

async def ping_database() -> bool:
    try:
        await client.database.command("ping")
        return True
    except Exception as e:
        logger.error("MongoDB ping failed", extra={"data": {"error": str(e)}})
        return False

class AsyncCollectionProxy:
    def __init__(self, name):
        self.name = name

    def __getattr__(self, attr):
        # Resolved on every access so a reset client is picked up
        return getattr(db.get_collection(self.name), attr)

    def __getitem__(self, key):
        return db.get_collection(self.name)[key]

customers_collection = AsyncCollectionProxy("customers")
employees_collection = AsyncCollectionProxy("employees")
employee_contracts_collection = AsyncCollectionProxy("employee_contracts")
objects_collection = AsyncCollectionProxy("objects")
customer_contracts_collection = AsyncCollectionProxy("customer_contracts")
schedules_collection = AsyncCollectionProxy("schedules")
invoices_collection = AsyncCollectionProxy("invoices")
