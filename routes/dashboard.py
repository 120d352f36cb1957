from fastapi import APIRouter, Depends
from datetime import datetime, timedelta
from routes.deps import get_db
from utils.pricing import time_ago, relative_day
from utils.scheduling import day_bounds
from constants import EmployeeStatus, ContractStatus, ScheduleStatus, InvoiceStatus
from bson import ObjectId
from logging_config import get_logger

router = APIRouter(prefix="/api/dashboard", tags=["Dashboard"])
logger = get_logger("dashboard")

DISPLAY_STATUS = {
    ScheduleStatus.COMPLETED: "completed",
    ScheduleStatus.IN_PROGRESS: "in-progress",
}

STATUS_ICONS = {
    "completed": "check_circle",
    "in-progress": "play_arrow",
    "pending": "schedule",
}


def _full_name(person: dict) -> str:
    return f"{person.get('first_name') or ''} {person.get('last_name') or ''}".strip()


async def _upcoming_tasks(db, now: datetime) -> list:
    schedules = await db.schedules.find({
        "scheduled_date": {"$gte": datetime(now.year, now.month, now.day)},
        "status": {"$ne": ScheduleStatus.COMPLETED},
    }).sort([("scheduled_date", 1), ("start_time", 1)]).limit(5).to_list(length=5)

    object_ids = {ObjectId(s["object_id"]) for s in schedules if ObjectId.is_valid(s.get("object_id") or "")}
    employee_ids = {
        ObjectId(a["employee_id"])
        for s in schedules for a in s.get("employees") or []
        if ObjectId.is_valid(a.get("employee_id") or "")
    }

    objects = {}
    if object_ids:
        async for obj in db.objects.find({"_id": {"$in": list(object_ids)}}, {"name": 1}):
            objects[str(obj["_id"])] = obj.get("name")
    employees = {}
    if employee_ids:
        async for emp in db.employees.find({"_id": {"$in": list(employee_ids)}}, {"first_name": 1, "last_name": 1}):
            employees[str(emp["_id"])] = _full_name(emp) or "Unknown"

    tasks = []
    for s in schedules:
        names = [employees[a["employee_id"]] for a in s.get("employees") or [] if a.get("employee_id") in employees]
        display = DISPLAY_STATUS.get(s.get("status"), "pending")
        tasks.append({
            "id": str(s["_id"]),
            "title": s.get("cleaning_type") or "Cleaning Service",
            "time": s.get("start_time") or "09:00",
            "date": relative_day(s["scheduled_date"], now.date()),
            "location": objects.get(s.get("object_id")) or "Location TBD",
            "employees": ", ".join(names) or "Unassigned",
            "status": display,
            "status_icon": STATUS_ICONS[display],
        })
    return tasks


async def _recent_activities(db, now: datetime) -> list:
    activities = []

    recent_employees = await db.employees.find({}, {"first_name": 1, "last_name": 1, "created_at": 1, "hire_date": 1}) \
        .sort([("created_at", -1)]).limit(3).to_list(length=3)
    for emp in recent_employees:
        activities.append({
            "icon": "person_add",
            "type": "success",
            "title": f"{_full_name(emp) or 'New employee'} added",
            "time": time_ago(emp.get("created_at") or emp.get("hire_date"), now),
        })

    recent_contracts = await db.customer_contracts.find({}, {"contract_number": 1, "customer": 1, "created_at": 1}) \
        .sort([("created_at", -1)]).limit(3).to_list(length=3)
    for contract in recent_contracts:
        customer_name = (contract.get("customer") or {}).get("name") or "Customer"
        activities.append({
            "icon": "assignment",
            "type": "info",
            "title": f"{contract.get('contract_number') or 'New contract'} signed with {customer_name}",
            "time": time_ago(contract.get("created_at"), now),
        })

    return activities[:5]


@router.get("/stats")
async def get_dashboard_stats(db=Depends(get_db)):
    """Headline counts, performance figures, recent activity and the next few jobs"""
    now = datetime.now()
    today_start, today_end = day_bounds(now)

    total_employees = await db.employees.count_documents({})
    active_employees = await db.employees.count_documents({"status": EmployeeStatus.ACTIVE})
    total_contracts = await db.customer_contracts.count_documents({})
    active_contracts = await db.customer_contracts.count_documents({"status": ContractStatus.ACTIVE})
    total_locations = await db.objects.count_documents({})

    todays_tasks = await db.schedules.count_documents({"scheduled_date": {"$gte": today_start, "$lt": today_end}})
    all_schedules = await db.schedules.count_documents({})
    completed_schedules = await db.schedules.count_documents({"status": ScheduleStatus.COMPLETED})

    total_invoices = await db.invoices.count_documents({})
    paid_invoices = await db.invoices.count_documents({"status": InvoiceStatus.PAID})
    revenue = await db.invoices.aggregate([
        {"$match": {"status": InvoiceStatus.PAID}},
        {"$group": {"_id": None, "total": {"$sum": "$total_amount"}}},
    ]).to_list(length=1)

    completion_rate = round(completed_schedules / all_schedules * 100) if all_schedules else 0
    # No customer ratings are aggregated yet; derived from completion rate
    average_rating = min(5, max(1, completion_rate / 20 + 1))

    return {
        "total_employees": total_employees,
        "active_employees": active_employees,
        "total_contracts": total_contracts,
        "active_contracts": active_contracts,
        "total_locations": total_locations,
        "todays_tasks": todays_tasks,
        "recent_activities": await _recent_activities(db, now),
        "upcoming_tasks": await _upcoming_tasks(db, now),
        "performance": {
            "completion_rate": completion_rate,
            "average_rating": round(average_rating, 1),
            "total_revenue": revenue[0]["total"] if revenue else 0,
        },
        "summary": {
            "total_schedules": all_schedules,
            "completed_schedules": completed_schedules,
            "total_invoices": total_invoices,
            "paid_invoices_count": paid_invoices,
        },
    }
