"""
db.py
-----
Defines SQLAlchemy ORM models for module configs, task schedules and task runs.
Defines Pydantic schemas for API validation.
Handles database setup and initialization.
"""
import json
from datetime import datetime
from typing import Dict, Optional

from pydantic import BaseModel, ConfigDict, field_validator
from sqlalchemy import Column, DateTime, Integer, String, Text, create_engine, func
from sqlalchemy.orm import declarative_base, sessionmaker

from .config import settings

Base = declarative_base()


# Models

class ModuleRecord(Base):
    __tablename__ = "modules"
    id = Column(Integer, primary_key=True)
    title = Column(String, default="")
    module = Column(String, nullable=False)  # feature tag, e.g. mod_prettyreviews
    params = Column(Text, default="{}")  # JSON-encoded key/value params

class TaskSchedule(Base):
    __tablename__ = "task_schedules"
    id = Column(Integer, primary_key=True)
    task_name = Column(String, nullable=False)
    module_id = Column(String, nullable=False)
    schedule = Column(String, nullable=False)  # cron expression
    retries = Column(Integer, default=0)

class TaskRun(Base):
    __tablename__ = "task_runs"
    id = Column(Integer, primary_key=True)
    task_name = Column(String, nullable=False)
    module_id = Column(String)
    status = Column(String, default="RUNNING")
    exit_code = Column(Integer, nullable=True)
    log = Column(Text, nullable=True)
    attempt = Column(Integer, default=0)
    started_at = Column(DateTime(timezone=True), server_default=func.now())
    finished_at = Column(DateTime(timezone=True))


# Pydantic Schemas

class ModuleCreate(BaseModel):
    title: str = ""
    module: str
    params: Dict[str, str] = {}

class ModuleOut(BaseModel):
    id: int
    title: str
    module: str
    params: Dict[str, str] = {}
    model_config = ConfigDict(from_attributes=True)

    @field_validator("params", mode="before")
    @classmethod
    def decode_params(cls, value):
        if isinstance(value, str):
            return json.loads(value or "{}")
        return value

class ScheduleCreate(BaseModel):
    task_name: str
    module_id: str
    schedule: str
    retries: Optional[int] = 0

class ScheduleOut(ScheduleCreate):
    id: int
    model_config = ConfigDict(from_attributes=True)

class TaskRunOut(BaseModel):
    id: int
    task_name: str
    module_id: Optional[str] = None
    status: str
    exit_code: Optional[int] = None
    log: Optional[str] = None
    attempt: int = 0
    started_at: Optional[datetime] = None
    finished_at: Optional[datetime] = None
    model_config = ConfigDict(from_attributes=True)


# Database setup

# sqlite connections are shared across the API threadpool
connect_args = {"check_same_thread": False} if settings.DB_URL.startswith("sqlite") else {}
engine = create_engine(settings.DB_URL, echo=False, connect_args=connect_args)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

def init_db():
    Base.metadata.create_all(bind=engine)
