from logging_config import setup_logging

# Initialize logging BEFORE anything else
setup_logging()

from logging_config import get_logger
from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware
from middleware import RequestLifecycleMiddleware
from routes import customer, employee, employee_contract, object as object_router, customer_contract, schedule, invoice, dashboard
from config import config
from database import client, ping_database

logger = get_logger("app")

@asynccontextmanager
async def lifespan(app: FastAPI):
    yield
    client.reset()

app = FastAPI(title="Cleaning Management API", lifespan=lifespan)

# CORS remains here as it's a global setting
app.add_middleware(
    CORSMiddleware,
    allow_origins=[config.FRONTEND_URL] if config.ENV == "production" else ["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Request lifecycle middleware (request ID, context vars, duration logging)
app.add_middleware(RequestLifecycleMiddleware)

# REGISTER ROUTERS
app.include_router(customer.router)
app.include_router(employee.router)
app.include_router(employee_contract.router)
app.include_router(object_router.router)
app.include_router(customer_contract.router)
app.include_router(schedule.router)
app.include_router(invoice.router)
app.include_router(dashboard.router)

logger.info("All routers registered, Cleaning Management API ready")

@app.get("/")
async def root():
    return {"status": "online", "message": "Cleaning Management API is running"}

@app.get("/health")
async def health():
    if await ping_database():
        return {"status": "ok", "database": "connected"}
    return JSONResponse(status_code=503, content={"status": "degraded", "database": "unreachable"})
