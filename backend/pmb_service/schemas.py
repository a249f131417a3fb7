"""Pydantic request/response schemas used by the API.

Schemas keep API input/output shapes stable and provide validation for
controller handlers and tests. JSON uses camelCase names; every schema
also accepts the snake_case attribute names.
"""

from datetime import datetime
from typing import Any, List, Optional

from fastapi.encoders import jsonable_encoder
from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

# largest integer the store columns accept
MAX_INT = 2**31 - 1


class CamelModel(BaseModel):
    """Base model serialising to camelCase and accepting either naming."""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
        coerce_numbers_to_str=True,
    )


def _blank_to_none(value):
    if isinstance(value, str) and not value.strip():
        return None
    return value


# ---------------------------------------------------------------------------
# API keys

class ApiKeyCreate(CamelModel):
    """Payload for issuing a new API key."""
    name: str = Field(min_length=1)


class ApiKeyRead(CamelModel):
    id: str
    name: str
    api_key: str
    is_active: bool
    created_at: datetime


# ---------------------------------------------------------------------------
# Applicants

class ApplicantFields(CamelModel):
    """Optional applicant attributes shared by create, update and sync."""
    admission_path: Optional[str] = None
    major_choice_2: Optional[str] = None
    major_choice_3: Optional[str] = None
    major_choice_4: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    graduation_year: Optional[int] = Field(default=None, ge=0, le=MAX_INT)
    gender: Optional[str] = None
    school_origin: Optional[str] = None
    school_major: Optional[str] = None
    ranking: Optional[int] = Field(default=None, ge=0, le=MAX_INT)
    parent_name: Optional[str] = None
    parent_phone: Optional[str] = None
    religion: Optional[str] = None
    color_blind: Optional[bool] = None
    province: Optional[str] = None
    city: Optional[str] = None
    village: Optional[str] = None
    district: Optional[str] = None
    postal_code: Optional[str] = None
    home_address: Optional[str] = None
    agent: Optional[str] = None
    loa_published: Optional[bool] = None
    loa_date: Optional[datetime] = None
    nim: Optional[str] = None
    converted_at: Optional[datetime] = None

    @field_validator("nim", mode="before")
    @classmethod
    def _nim_blank_is_none(cls, value):
        return _blank_to_none(value)


class ApplicantCreate(ApplicantFields):
    """Request format for creating a single applicant."""
    registration_number: str = Field(min_length=1)
    full_name: str = Field(min_length=1)
    major_choice_1: str = Field(min_length=1)


class ApplicantUpdate(ApplicantFields):
    """Partial update; only fields present in the request are applied."""
    registration_number: Optional[str] = Field(default=None, min_length=1)
    full_name: Optional[str] = Field(default=None, min_length=1)
    major_choice_1: Optional[str] = None


class ApplicantSyncRecord(ApplicantFields):
    """One normalised record of an external applicant snapshot."""
    registration_number: str = Field(min_length=1)
    full_name: Optional[str] = None
    major_choice_1: Optional[str] = None


class ApplicantRead(CamelModel):
    id: str
    registration_number: str
    full_name: str
    admission_path: Optional[str] = None
    major_choice_1: Optional[str] = None
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
    nim: Optional[str] = None
    converted_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime


class ConvertRequest(CamelModel):
    """Body of `POST /applicants/{id}/convert`."""
    nim: str = Field(min_length=1)


class SyncRequest(BaseModel):
    """Body of the bulk sync endpoints.

    Items stay untyped here so one malformed record is reported in the
    sync result instead of rejecting the whole batch.
    """
    data: List[Any]


class ApplicantListQuery(CamelModel):
    page: int = 1
    limit: int = 10
    search: str = ""
    admission_path: Optional[str] = None
    major_choice_1: Optional[str] = None
    loa_published: Optional[bool] = None
    has_nim: Optional[bool] = None
    sort_by: str = "created_at"
    sort_order: str = "desc"


# ---------------------------------------------------------------------------
# Study programs

class StudyProgramFields(CamelModel):
    level_id: Optional[str] = None
    level_name: Optional[str] = None
    faculty_id: Optional[str] = None
    faculty_name: Optional[str] = None


class StudyProgramCreate(StudyProgramFields):
    code: str = Field(min_length=1)
    name: str = Field(min_length=1)
    nim_format: str = Field(min_length=1)
    is_active: bool = True


class StudyProgramUpdate(StudyProgramFields):
    code: Optional[str] = Field(default=None, min_length=1)
    name: Optional[str] = Field(default=None, min_length=1)
    nim_format: Optional[str] = None
    is_active: Optional[bool] = None


class StudyProgramSyncRecord(StudyProgramFields):
    code: str = Field(min_length=1)
    name: Optional[str] = None
    nim_format: Optional[str] = None
    is_active: Optional[bool] = None


class StudyProgramRead(CamelModel):
    id: str
    code: str
    name: str
    nim_format: Optional[str] = None
    level_id: Optional[str] = None
    level_name: Optional[str] = None
    faculty_id: Optional[str] = None
    faculty_name: Optional[str] = None
    is_active: bool
    created_at: datetime
    updated_at: datetime


class StudyProgramOption(CamelModel):
    """Reduced projection used by selection dropdowns."""
    id: str
    code: str
    name: str
    nim_format: Optional[str] = None
    level_name: Optional[str] = None
    faculty_name: Optional[str] = None


class StudyProgramListQuery(CamelModel):
    page: int = 1
    limit: int = 10
    search: str = ""
    is_active: Optional[bool] = None
    level_id: Optional[str] = None
    faculty_id: Optional[str] = None
    sort_by: str = "created_at"
    sort_order: str = "desc"


# ---------------------------------------------------------------------------
# Envelope

class PaginationMeta(CamelModel):
    page: int
    limit: int
    total: int
    total_pages: int
    has_next: bool
    has_prev: bool


class SyncResult(CamelModel):
    created: int = 0
    updated: int = 0
    errors: List[dict] = Field(default_factory=list)


class Envelope(BaseModel):
    """Uniform response body: `{success, message, data|error}`.

    List responses also carry `pagination` next to `data`.
    """
    success: bool
    message: str
    data: Any = None
    error: Optional[str] = None
    pagination: Optional[PaginationMeta] = None

    def to_content(self) -> dict:
        content = {"success": self.success, "message": self.message}
        if self.error is not None:
            content["error"] = self.error
        if self.data is not None:
            content["data"] = jsonable_encoder(self.data)
        if self.pagination is not None:
            content["pagination"] = self.pagination.model_dump(by_alias=True)
        return content
