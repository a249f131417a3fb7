"""Business logic services used by HTTP controllers.

Each service is constructed with the request's `Session` and coordinates
one repository. Services are thin: they return records (or
`None` when a record is absent) and leave request validation, uniqueness
pre-checks and HTTP status mapping to the controllers.
"""

import logging
import uuid
from dataclasses import dataclass
from typing import Iterable, List, Optional

from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session

from . import models, repositories, schemas
from .errors import describe_validation_errors
from .utils import field_mapping
from .utils.pagination import build_pagination

logger = logging.getLogger("pmb_service.services")


@dataclass
class Page:
    """One page of records plus its pagination block."""
    data: List
    pagination: schemas.PaginationMeta


def _error_text(exc: Exception) -> str:
    if isinstance(exc, PydanticValidationError):
        return describe_validation_errors(exc.errors())
    if isinstance(exc, SQLAlchemyError):
        orig = getattr(exc, "orig", None)
        return str(orig or exc).splitlines()[0]
    return str(exc)


def apply_lifecycle_rules(values: dict, current: Optional[models.Applicant] = None) -> dict:
    """Keep the LOA and conversion field pairs consistent.

    `loa_date` is set iff `loa_published`, `converted_at` iff `nim`.
    Missing timestamps are stamped with the current time; existing ones
    on `current` are kept, also when `values` tries to clear them.
    """
    now = models.utc_now()

    if values.get("loa_date") and "loa_published" not in values:
        values["loa_published"] = True
    published = values.get("loa_published", current.loa_published if current else False)
    if published:
        kept = current.loa_date if current else None
        if not values.get("loa_date") and ("loa_date" in values or kept is None):
            values["loa_date"] = kept or now
    elif "loa_date" in values or (current and current.loa_date):
        values["loa_date"] = None

    nim = values["nim"] if "nim" in values else (current.nim if current else None)
    if nim:
        kept = current.converted_at if current else None
        if not values.get("converted_at") and ("converted_at" in values or kept is None):
            values["converted_at"] = kept or now
    elif "converted_at" in values or (current and current.converted_at):
        values["converted_at"] = None
    return values


class ApiKeyService:
    """Issue, list and toggle API keys."""
    def __init__(self, session: Session, prefix: str = "pmb_"):
        self.session = session
        self.prefix = prefix
        self.repo = repositories.ApiKeyRepository(session)

    def generate_token(self) -> str:
        return f"{self.prefix}{uuid.uuid4().hex}"

    def create(self, name: str) -> models.ApiKey:
        """Persist a new active key with a freshly generated secret."""
        key = models.ApiKey(name=name, api_key=self.generate_token(), is_active=True)
        return self.repo.add(key)

    def find_all(self) -> List[models.ApiKey]:
        return self.repo.list_newest_first()

    def find_by_id(self, key_id: str) -> Optional[models.ApiKey]:
        return self.repo.get(key_id)

    def find_by_token(self, token: str) -> Optional[models.ApiKey]:
        return self.repo.get_by_token(token)

    def _set_active(self, key_id: str, active: bool) -> Optional[models.ApiKey]:
        key = self.repo.get(key_id)
        if key is None:
            return None
        return self.repo.apply(key, {"is_active": active})

    def disable(self, key_id: str) -> Optional[models.ApiKey]:
        return self._set_active(key_id, False)

    def enable(self, key_id: str) -> Optional[models.ApiKey]:
        return self._set_active(key_id, True)

    def delete(self, key_id: str) -> bool:
        key = self.repo.get(key_id)
        if key is None:
            return False
        self.repo.delete(key)
        return True


class ApplicantService:
    """Applicant intake, listing, LOA publishing, conversion and sync."""
    def __init__(self, session: Session):
        self.session = session
        self.repo = repositories.ApplicantRepository(session)

    def create(self, data: dict) -> models.Applicant:
        """Create an applicant with a generated id.

        Uniqueness is left to the caller's pre-checks and the store's
        unique indexes.
        """
        values = apply_lifecycle_rules(dict(data))
        return self.repo.add(models.Applicant(**values))

    def find_all(self, query: schemas.ApplicantListQuery) -> Page:
        conditions = self.repo.build_conditions(
            search=query.search,
            admission_path=query.admission_path,
            major_choice_1=query.major_choice_1,
            loa_published=query.loa_published,
            has_nim=query.has_nim,
        )
        rows, total = self.repo.page(conditions, query.sort_by, query.sort_order, query.page, query.limit)
        return Page(data=rows, pagination=build_pagination(query.page, query.limit, total))

    def find_by_id(self, applicant_id: str) -> Optional[models.Applicant]:
        return self.repo.get(applicant_id)

    def find_by_registration_number(self, registration_number: str) -> Optional[models.Applicant]:
        return self.repo.get_by_registration_number(registration_number)

    def update(self, applicant_id: str, data: dict) -> Optional[models.Applicant]:
        """Apply a partial update; does not re-check unique fields."""
        applicant = self.repo.get(applicant_id)
        if applicant is None:
            return None
        return self.repo.apply(applicant, apply_lifecycle_rules(dict(data), applicant))

    def delete(self, applicant_id: str) -> bool:
        applicant = self.repo.get(applicant_id)
        if applicant is None:
            return False
        self.repo.delete(applicant)
        return True

    def registration_number_exists(self, value: str, exclude_id: Optional[str] = None) -> bool:
        return self.repo.registration_number_exists(value, exclude_id)

    def nim_exists(self, value: Optional[str], exclude_id: Optional[str] = None) -> bool:
        if not value:
            return False
        return self.repo.nim_exists(value, exclude_id)

    def convert_to_student(self, applicant_id: str, nim: str) -> Optional[models.Applicant]:
        """Assign `nim` and stamp `converted_at`.

        The caller checks that the applicant has no NIM yet and that
        `nim` is unused.
        """
        applicant = self.repo.get(applicant_id)
        if applicant is None:
            return None
        return self.repo.apply(applicant, {"nim": nim, "converted_at": models.utc_now()})

    def publish_loa(self, applicant_id: str) -> Optional[models.Applicant]:
        applicant = self.repo.get(applicant_id)
        if applicant is None:
            return None
        return self.repo.apply(applicant, {"loa_published": True, "loa_date": models.utc_now()})

    def sync_from_external(self, records: Iterable) -> schemas.SyncResult:
        """Upsert applicants from an external snapshot, one record at a time.

        Records are matched on registration number. Each record commits on
        its own; a failing record is rolled back, reported in `errors` and
        does not affect the others.
        """
        result = schemas.SyncResult()
        for record in records:
            key = None
            try:
                if not isinstance(record, dict):
                    raise ValueError("record must be an object")
                normalized = field_mapping.normalize_applicant(record)
                key = normalized.get("registration_number")
                if key in (None, ""):
                    raise ValueError("registrationNumber is required")
                values = schemas.ApplicantSyncRecord.model_validate(normalized).model_dump(exclude_unset=True)
                existing = self.repo.get_by_registration_number(values["registration_number"])
                if existing is not None:
                    self.repo.apply(existing, apply_lifecycle_rules(values, existing))
                    result.updated += 1
                else:
                    if not values.get("full_name"):
                        raise ValueError("fullName is required for new applicants")
                    self.repo.add(models.Applicant(**apply_lifecycle_rules(values)))
                    result.created += 1
            except Exception as exc:
                self.repo.rollback()
                message = _error_text(exc)
                logger.warning("applicant sync failed registration_number=%s error=%s", key, message)
                result.errors.append({"registrationNumber": key, "error": message})
        logger.info(
            "applicant sync finished created=%d updated=%d errors=%d",
            result.created, result.updated, len(result.errors),
        )
        return result


class StudyProgramService:
    """Study program catalog management and sync."""
    def __init__(self, session: Session):
        self.session = session
        self.repo = repositories.StudyProgramRepository(session)

    def create(self, data: dict) -> models.StudyProgram:
        values = dict(data)
        if values.get("is_active") is None:
            values["is_active"] = True
        return self.repo.add(models.StudyProgram(**values))

    def find_all(self, query: schemas.StudyProgramListQuery) -> Page:
        conditions = self.repo.build_conditions(
            search=query.search,
            is_active=query.is_active,
            level_id=query.level_id,
            faculty_id=query.faculty_id,
        )
        rows, total = self.repo.page(conditions, query.sort_by, query.sort_order, query.page, query.limit)
        return Page(data=rows, pagination=build_pagination(query.page, query.limit, total))

    def find_by_id(self, program_id: str) -> Optional[models.StudyProgram]:
        return self.repo.get(program_id)

    def find_by_code(self, code: str) -> Optional[models.StudyProgram]:
        """Look up by natural key; `idProdi` values are stored as `code`."""
        return self.repo.get_by_code(code)

    def update(self, program_id: str, data: dict) -> Optional[models.StudyProgram]:
        program = self.repo.get(program_id)
        if program is None:
            return None
        return self.repo.apply(program, dict(data))

    def delete(self, program_id: str) -> bool:
        program = self.repo.get(program_id)
        if program is None:
            return False
        self.repo.delete(program)
        return True

    def code_exists(self, value: str, exclude_id: Optional[str] = None) -> bool:
        return self.repo.code_exists(value, exclude_id)

    def find_all_active(self) -> List[models.StudyProgram]:
        """Active programs sorted by name, for selection dropdowns."""
        return self.repo.list_active()

    def sync_from_external(self, programs: Iterable) -> schemas.SyncResult:
        """Upsert programs by code with the same isolation as applicant sync."""
        result = schemas.SyncResult()
        for record in programs:
            key = None
            try:
                if not isinstance(record, dict):
                    raise ValueError("record must be an object")
                normalized = field_mapping.normalize_study_program(record)
                key = normalized.get("code")
                if key in (None, ""):
                    raise ValueError("code is required")
                values = schemas.StudyProgramSyncRecord.model_validate(normalized).model_dump(exclude_unset=True)
                existing = self.repo.get_by_code(values["code"])
                if existing is not None:
                    self.repo.apply(existing, values)
                    result.updated += 1
                else:
                    if not values.get("name"):
                        raise ValueError("name is required for new study programs")
                    if values.get("is_active") is None:
                        values["is_active"] = True
                    self.repo.add(models.StudyProgram(**values))
                    result.created += 1
            except Exception as exc:
                self.repo.rollback()
                message = _error_text(exc)
                logger.warning("study program sync failed code=%s error=%s", key, message)
                result.errors.append({"code": key, "error": message})
        logger.info(
            "study program sync finished created=%d updated=%d errors=%d",
            result.created, result.updated, len(result.errors),
        )
        return result
