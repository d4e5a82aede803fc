# backend/climate_api/models.py
from sqlalchemy import (
    JSON,
    Column,
    DateTime,
    Float,
    Index,
    Integer,
    String,
    Text,
)
from sqlalchemy.sql import text

from climate_api.db.base import Base

# Cross-DB timestamp default (SQLite + Postgres)
DB_NOW = text("CURRENT_TIMESTAMP")


class User(Base):
    """
    Dashboard account. Role is "admin" | "operator".
    password_hash is nullable: accounts created through /api/users without a
    password cannot log in until one is set.
    """
    __tablename__ = "user"

    id = Column(String(64), primary_key=True)
    username = Column(String(255), nullable=False, unique=True, index=True)
    email = Column(String(255), nullable=False, unique=True, index=True)
    role = Column(String(32), nullable=False, server_default=text("'operator'"))
    password_hash = Column(String(255), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=DB_NOW, nullable=False)
    updated_at = Column(DateTime(timezone=True), nullable=True)


class WeatherStation(Base):
    __tablename__ = "weather_station"

    id = Column(String(64), primary_key=True)
    name = Column(String(255), nullable=False)
    location = Column(String(255), nullable=False)
    latitude = Column(Float, nullable=False)
    longitude = Column(Float, nullable=False)
    status = Column(String(32), nullable=False, server_default=text("'active'"))  # active|inactive|maintenance

    created_at = Column(DateTime(timezone=True), server_default=DB_NOW, nullable=False)


class SensorReading(Base):
    """
    One sample from a station. station_id is a plain string key (no FK);
    station deletes remove readings explicitly.
    """
    __tablename__ = "sensor_reading"

    id = Column(String(64), primary_key=True)
    station_id = Column(String(64), nullable=False, index=True)
    temperature = Column(Float, nullable=False)
    humidity = Column(Float, nullable=False)
    air_quality = Column(Float, nullable=False)
    rainfall = Column(Float, nullable=False)
    recorded_at = Column(DateTime(timezone=True), nullable=False)

    __table_args__ = (
        Index("ix_sensor_reading_station_recorded", "station_id", "recorded_at"),
    )


class SensorAlert(Base):
    __tablename__ = "sensor_alert"

    id = Column(String(64), primary_key=True)
    station_id = Column(String(64), nullable=False, index=True)
    type = Column(String(32), nullable=False)  # temperature|rainfall|airQuality
    threshold = Column(Float, nullable=False)
    current_value = Column(Float, nullable=False)
    status = Column(String(32), nullable=False, server_default=text("'active'"))
    created_at = Column(DateTime(timezone=True), nullable=False)


class Project(Base):
    __tablename__ = "project"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=False)
    status = Column(String(32), nullable=False, server_default=text("'planning'"))
    user_id = Column(String(64), nullable=False, index=True)

    created_at = Column(DateTime(timezone=True), nullable=False)
    updated_at = Column(DateTime(timezone=True), nullable=True)


class Task(Base):
    __tablename__ = "task"

    id = Column(Integer, primary_key=True, autoincrement=True)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=False)
    status = Column(String(32), nullable=False, server_default=text("'todo'"))
    priority = Column(String(32), nullable=False, server_default=text("'medium'"))
    project_id = Column(Integer, nullable=False, index=True)
    assigned_to = Column(String(64), nullable=True, index=True)
    due_date = Column(DateTime(timezone=True), nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=False)
    updated_at = Column(DateTime(timezone=True), nullable=True)


class Order(Base):
    __tablename__ = "orders"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(String(64), nullable=False, index=True)
    order_number = Column(String(32), nullable=False, unique=True)
    total_amount = Column(Float, nullable=False)
    status = Column(String(32), nullable=False, server_default=text("'pending'"))
    items = Column(JSON, nullable=False)  # list[str]
    order_date = Column(DateTime(timezone=True), nullable=False)
    delivered_date = Column(DateTime(timezone=True), nullable=True)
