"""SQLModel data models.

This module defines the application's database tables using SQLModel.
Each class maps to one table; there are no relationships between them
(`Applicant.major_choice_*` are free text, not foreign keys).
"""

import uuid
from datetime import datetime, timezone
from typing import Optional

from sqlmodel import Field, SQLModel


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def new_id() -> str:
    return str(uuid.uuid4())


class ApiKey(SQLModel, table=True):
    """A client credential checked against the `x-api-key` header.

    Fields:
    - `api_key`: the secret token, unique across all rows
    - `is_active`: disabled keys are rejected by the auth dependency
    """
    __tablename__ = "api_keys"

    id: str = Field(default_factory=new_id, primary_key=True)
    name: str
    api_key: str = Field(index=True, unique=True, nullable=False)
    is_active: bool = True
    created_at: datetime = Field(default_factory=utc_now, index=True)


class Applicant(SQLModel, table=True):
    """An admission applicant; becomes a student once `nim` is assigned.

    `loa_date` is set exactly when `loa_published` is true and
    `converted_at` exactly when `nim` is set.
    """
    __tablename__ = "applicants"

    id: str = Field(default_factory=new_id, primary_key=True)
    registration_number: str = Field(index=True, unique=True, nullable=False)
    full_name: str
    admission_path: Optional[str] = Field(default=None, index=True)
    major_choice_1: Optional[str] = Field(default=None, index=True)
    major_choice_2: Optional[str] = None
    major_choice_3: Optional[str] = None
    major_choice_4: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    graduation_year: Optional[int] = None
    gender: Optional[str] = None
    school_origin: Optional[str] = None
    school_major: Optional[str] = None
    ranking: Optional[int] = None
    parent_name: Optional[str] = None
    parent_phone: Optional[str] = None
    religion: Optional[str] = None
    color_blind: bool = False
    province: Optional[str] = None
    city: Optional[str] = None
    village: Optional[str] = None
    district: Optional[str] = None
    postal_code: Optional[str] = None
    home_address: Optional[str] = None
    agent: Optional[str] = None
    loa_published: bool = False
    loa_date: Optional[datetime] = None
    nim: Optional[str] = Field(default=None, index=True, unique=True)
    converted_at: Optional[datetime] = None
    created_at: datetime = Field(default_factory=utc_now, index=True)
    updated_at: datetime = Field(default_factory=utc_now)


class StudyProgram(SQLModel, table=True):
    """A study program in the catalog, keyed by its short `code`."""
    __tablename__ = "study_programs"

    id: str = Field(default_factory=new_id, primary_key=True)
    code: str = Field(index=True, unique=True, nullable=False)
    name: str
    nim_format: Optional[str] = None
    level_id: Optional[str] = Field(default=None, index=True)
    level_name: Optional[str] = None
    faculty_id: Optional[str] = Field(default=None, index=True)
    faculty_name: Optional[str] = None
    is_active: bool = True
    created_at: datetime = Field(default_factory=utc_now, index=True)
    updated_at: datetime = Field(default_factory=utc_now)
