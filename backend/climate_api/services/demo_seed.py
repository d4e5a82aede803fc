# backend/climate_api/services/demo_seed.py

r"""
Demo data for the climate dashboard.

- Users: admin / admin123 (admin), operator / operator123 (operator)
- Stations: Chennai, Mumbai, Delhi (Delhi in maintenance)
- A handful of readings + alerts per station, three projects, three tasks
  and three orders.

Idempotent: does nothing when the store already has users.

Run against the SQL database from backend/:

    python -m climate_api.services.demo_seed
"""

import logging
from datetime import datetime, timezone
from functools import lru_cache
from typing import Dict

from climate_api.core.security import hash_password
from climate_api.repositories.base import DataStore

logger = logging.getLogger("climate")


def _ts(year: int, month: int, day: int, hour: int = 0) -> datetime:
    return datetime(year, month, day, hour, tzinfo=timezone.utc)


@lru_cache(maxsize=None)
def _demo_password_hash(password: str) -> str:
    # argon2 is deliberately slow; tests reseed before every case
    return hash_password(password)


DEMO_USERS = [
    {"id": "user-1", "username": "admin", "email": "admin@climate.local", "role": "admin",
     "password": "admin123", "created_at": _ts(2024, 1, 1)},
    {"id": "user-2", "username": "operator", "email": "operator@climate.local", "role": "operator",
     "password": "operator123", "created_at": _ts(2024, 1, 2)},
]

DEMO_STATIONS = [
    {"id": "station-1", "name": "Chennai Central", "location": "Chennai, Tamil Nadu",
     "latitude": 13.0827, "longitude": 80.2707, "status": "active", "created_at": _ts(2024, 1, 1)},
    {"id": "station-2", "name": "Mumbai Coastal", "location": "Mumbai, Maharashtra",
     "latitude": 19.076, "longitude": 72.8777, "status": "active", "created_at": _ts(2024, 1, 2)},
    {"id": "station-3", "name": "Delhi North", "location": "New Delhi, Delhi",
     "latitude": 28.6139, "longitude": 77.209, "status": "maintenance", "created_at": _ts(2024, 1, 3)},
]

DEMO_READINGS = [
    {"id": "reading-1", "station_id": "station-1", "temperature": 31.2, "humidity": 74.0,
     "air_quality": 82.0, "rainfall": 0.0, "recorded_at": _ts(2024, 1, 10, 8)},
    {"id": "reading-2", "station_id": "station-1", "temperature": 33.8, "humidity": 70.5,
     "air_quality": 95.0, "rainfall": 1.2, "recorded_at": _ts(2024, 1, 11, 8)},
    {"id": "reading-3", "station_id": "station-2", "temperature": 29.4, "humidity": 81.0,
     "air_quality": 110.0, "rainfall": 12.5, "recorded_at": _ts(2024, 1, 11, 9)},
    {"id": "reading-4", "station_id": "station-3", "temperature": 18.1, "humidity": 55.0,
     "air_quality": 240.0, "rainfall": 0.0, "recorded_at": _ts(2024, 1, 12, 7)},
]

DEMO_ALERTS = [
    {"id": "alert-1", "station_id": "station-1", "type": "temperature", "threshold": 35.0,
     "current_value": 38.5, "status": "active", "created_at": _ts(2024, 1, 10, 12)},
    {"id": "alert-2", "station_id": "station-2", "type": "rainfall", "threshold": 50.0,
     "current_value": 72.0, "status": "acknowledged", "created_at": _ts(2024, 1, 11, 12)},
    {"id": "alert-3", "station_id": "station-3", "type": "airQuality", "threshold": 150.0,
     "current_value": 240.0, "status": "resolved", "created_at": _ts(2024, 1, 12, 12)},
]

DEMO_PROJECTS = [
    {"id": 1, "name": "Climate Dashboard", "description": "Real-time climate monitoring dashboard",
     "status": "in_progress", "user_id": "user-1", "created_at": _ts(2024, 1, 1)},
    {"id": 2, "name": "Weather API Integration", "description": "Integrate third-party weather APIs",
     "status": "planning", "user_id": "user-2", "created_at": _ts(2024, 1, 2)},
    {"id": 3, "name": "Data Visualization Module", "description": "Create interactive charts and graphs",
     "status": "completed", "user_id": "user-1", "created_at": _ts(2024, 1, 3)},
]

DEMO_TASKS = [
    {"id": 1, "title": "Setup project structure", "description": "Initialize the service skeleton",
     "status": "completed", "priority": "high", "project_id": 1, "assigned_to": "user-1",
     "due_date": _ts(2024, 1, 10), "created_at": _ts(2024, 1, 1)},
    {"id": 2, "title": "Design API endpoints", "description": "Create RESTful API structure",
     "status": "in_progress", "priority": "high", "project_id": 1, "assigned_to": "user-1",
     "due_date": _ts(2024, 1, 15), "created_at": _ts(2024, 1, 2)},
    {"id": 3, "title": "Research weather APIs", "description": "Evaluate third-party weather service providers",
     "status": "todo", "priority": "medium", "project_id": 2, "assigned_to": "user-2",
     "due_date": _ts(2024, 1, 20), "created_at": _ts(2024, 1, 3)},
]

DEMO_ORDERS = [
    {"id": 1, "user_id": "user-1", "order_number": "ORD-001", "total_amount": 299.99,
     "status": "delivered", "items": ["Climate Sensor Pro", "Weather Station Kit"],
     "order_date": _ts(2024, 1, 5), "delivered_date": _ts(2024, 1, 8)},
    {"id": 2, "user_id": "user-1", "order_number": "ORD-002", "total_amount": 149.99,
     "status": "shipped", "items": ["Temperature Monitor"], "order_date": _ts(2024, 1, 10)},
    {"id": 3, "user_id": "user-2", "order_number": "ORD-003", "total_amount": 449.99,
     "status": "processing", "items": ["Complete Weather System", "Installation Service"],
     "order_date": _ts(2024, 1, 12)},
]


def seed_demo_data(store: DataStore, *, only_if_empty: bool = True) -> Dict[str, int]:
    """
    Load the demo records into `store`. Returns inserted counts per collection.
    """
    if only_if_empty and store.users.count() > 0:
        logger.info("[demo_seed] store already has users; skipping (backend=%s)", store.backend)
        return {}

    for user in DEMO_USERS:
        values = {k: v for k, v in user.items() if k != "password"}
        values["password_hash"] = _demo_password_hash(user["password"])
        store.users.add(values)

    plan = (
        ("stations", store.stations, DEMO_STATIONS),
        ("readings", store.readings, DEMO_READINGS),
        ("alerts", store.alerts, DEMO_ALERTS),
        ("projects", store.projects, DEMO_PROJECTS),
        ("tasks", store.tasks, DEMO_TASKS),
        ("orders", store.orders, DEMO_ORDERS),
    )
    counts = {"users": len(DEMO_USERS)}
    for name, repo, rows in plan:
        for row in rows:
            repo.add(dict(row))
        counts[name] = len(rows)

    logger.info("[demo_seed] seeded backend=%s counts=%s", store.backend, counts)
    return counts


if __name__ == "__main__":
    from climate_api.db.init_db import init_db
    from climate_api.db.session import SessionLocal
    from climate_api.repositories.sql import build_sql_store

    logging.basicConfig(level=logging.INFO)
    init_db()
    session = SessionLocal()
    try:
        seed_demo_data(build_sql_store(session))
    finally:
        session.close()
