# utils/scheduling.py
"""
Time arithmetic and double-booking checks for cleaning schedules.

Times are "HH:MM" strings on the schedule's calendar day; a schedule whose
end time is earlier than its start time runs past midnight.
"""
from datetime import datetime, time, timedelta
from typing import List, Optional

from bson import ObjectId

from constants import ScheduleStatus

MINUTES_PER_DAY = 24 * 60

# Schedules in these states never block an employee
INACTIVE_STATUSES = [ScheduleStatus.CANCELLED, ScheduleStatus.NO_SHOW]


def to_minutes(value: str) -> int:
    hours, minutes = value.split(":")
    return int(hours) * 60 + int(minutes)


def calculate_duration(start_time: str, end_time: str) -> float:
    """Hours between two times, rounded to the nearest half hour."""
    start = to_minutes(start_time)
    end = to_minutes(end_time)
    if end < start:
        end += MINUTES_PER_DAY
    hours = (end - start) / 60
    return round(hours * 2) / 2


def time_periods_overlap(start1: str, end1: str, start2: str, end2: str) -> bool:
    return to_minutes(start1) < to_minutes(end2) and to_minutes(start2) < to_minutes(end1)


def day_bounds(value: datetime):
    start = datetime.combine(value.date(), time.min)
    return start, start + timedelta(days=1)


def conflict_message(conflict: dict) -> str:
    return (
        f"{conflict['employee_name']} is already scheduled at {conflict['object_name']} "
        f"on {conflict['date']} from {conflict['time']}"
    )


async def check_employee_conflicts(
    db,
    employee_ids: List[str],
    scheduled_date: datetime,
    start_time: str,
    end_time: str,
    exclude_schedule_id: Optional[str] = None,
) -> List[dict]:
    """
    Find other active schedules on the same day that overlap the given time
    range and share at least one of the given employees.
    Returns one entry per conflicting (employee, schedule) pair.
    """
    if not employee_ids:
        return []

    day_start, day_end = day_bounds(scheduled_date)
    query = {
        "employees.employee_id": {"$in": list(employee_ids)},
        "scheduled_date": {"$gte": day_start, "$lt": day_end},
        "status": {"$nin": INACTIVE_STATUSES},
    }
    if exclude_schedule_id:
        query["_id"] = {"$ne": ObjectId(exclude_schedule_id)}

    conflicts = []
    async for schedule in db.schedules.find(query):
        if not time_periods_overlap(start_time, end_time, schedule["start_time"], schedule["end_time"]):
            continue

        obj = None
        if ObjectId.is_valid(schedule.get("object_id") or ""):
            obj = await db.objects.find_one({"_id": ObjectId(schedule["object_id"])}, {"name": 1})

        for assignment in schedule.get("employees", []):
            emp_id = assignment.get("employee_id")
            if emp_id not in employee_ids:
                continue
            employee = await db.employees.find_one(
                {"_id": ObjectId(emp_id)}, {"first_name": 1, "last_name": 1}
            )
            name = f"{employee['first_name']} {employee['last_name']}" if employee else emp_id
            conflicts.append({
                "employee_id": emp_id,
                "employee_name": name,
                "schedule_id": str(schedule["_id"]),
                "object_name": obj["name"] if obj else "Unknown Object",
                "date": schedule["scheduled_date"].strftime("%d/%m/%Y"),
                "time": f"{schedule['start_time']} - {schedule['end_time']}",
            })

    return conflicts
