"""Repository classes encapsulating database operations.

Each repository is small and focused on a single table (API keys,
applicants, study programs). Repositories return SQLModel objects and
perform commits/refreshes where appropriate; they never translate store
errors, which propagate to the central error handlers.
"""

from typing import List, Optional, Sequence, Tuple

from sqlalchemy import func, or_
from sqlmodel import Session, select

from . import models


def _touch(obj):
    if hasattr(obj, "updated_at"):
        obj.updated_at = models.utc_now()


class _TableRepository:
    """Shared CRUD helpers for a single SQLModel table."""
    model = None

    def __init__(self, session: Session):
        self.session = session

    def get(self, record_id: str):
        """Fetch a row by primary key, or `None`."""
        return self.session.get(self.model, record_id)

    def add(self, obj):
        """Persist a new row and return the managed instance."""
        self.session.add(obj)
        self.session.commit()
        self.session.refresh(obj)
        return obj

    def apply(self, obj, values: dict):
        """Set `values` on `obj`, bump `updated_at` and commit."""
        for key, value in values.items():
            setattr(obj, key, value)
        _touch(obj)
        self.session.add(obj)
        self.session.commit()
        self.session.refresh(obj)
        return obj

    def delete(self, obj):
        self.session.delete(obj)
        self.session.commit()

    def rollback(self):
        self.session.rollback()

    def _exists(self, column, value, exclude_id: Optional[str] = None) -> bool:
        stmt = select(self.model.id).where(column == value)
        if exclude_id:
            stmt = stmt.where(self.model.id != exclude_id)
        return self.session.exec(stmt).first() is not None

    def page(
        self,
        conditions: Sequence,
        sort_by: str,
        sort_order: str,
        page: int,
        limit: int,
    ) -> Tuple[List, int]:
        """Return one page of rows matching all `conditions` plus the total count."""
        count_stmt = select(func.count()).select_from(self.model)
        stmt = select(self.model)
        if conditions:
            count_stmt = count_stmt.where(*conditions)
            stmt = stmt.where(*conditions)
        total = self.session.exec(count_stmt).one()
        column = getattr(self.model, sort_by)
        order = column.asc() if sort_order == "asc" else column.desc()
        stmt = stmt.order_by(order, self.model.id.asc()).offset((page - 1) * limit).limit(limit)
        return list(self.session.exec(stmt).all()), total


class ApiKeyRepository(_TableRepository):
    """CRUD operations for `ApiKey` rows."""
    model = models.ApiKey

    def get_by_token(self, token: str) -> Optional[models.ApiKey]:
        """Return the key whose secret equals `token`."""
        stmt = select(models.ApiKey).where(models.ApiKey.api_key == token)
        return self.session.exec(stmt).first()

    def list_newest_first(self) -> List[models.ApiKey]:
        stmt = select(models.ApiKey).order_by(models.ApiKey.created_at.desc())
        return list(self.session.exec(stmt).all())


class ApplicantRepository(_TableRepository):
    """CRUD and query helpers for `Applicant` rows."""
    model = models.Applicant

    def get_by_registration_number(self, registration_number: str) -> Optional[models.Applicant]:
        stmt = select(models.Applicant).where(models.Applicant.registration_number == registration_number)
        return self.session.exec(stmt).first()

    def registration_number_exists(self, value: str, exclude_id: Optional[str] = None) -> bool:
        return self._exists(models.Applicant.registration_number, value, exclude_id)

    def nim_exists(self, value: str, exclude_id: Optional[str] = None) -> bool:
        return self._exists(models.Applicant.nim, value, exclude_id)

    def build_conditions(
        self,
        search: str = "",
        admission_path: Optional[str] = None,
        major_choice_1: Optional[str] = None,
        loa_published: Optional[bool] = None,
        has_nim: Optional[bool] = None,
    ) -> list:
        """Build the AND-combined filter list for a listing query.

        `search` is a case-insensitive substring match OR-ed across name,
        registration number, email and NIM. Wildcard characters in
        `search` match literally.
        """
        A = models.Applicant
        conditions = []
        if search:
            conditions.append(or_(
                A.full_name.icontains(search, autoescape=True),
                A.registration_number.icontains(search, autoescape=True),
                A.email.icontains(search, autoescape=True),
                A.nim.icontains(search, autoescape=True),
            ))
        if admission_path:
            conditions.append(A.admission_path == admission_path)
        if major_choice_1:
            conditions.append(A.major_choice_1 == major_choice_1)
        if loa_published is not None:
            conditions.append(A.loa_published == loa_published)
        if has_nim is True:
            conditions.append(A.nim.is_not(None))
        elif has_nim is False:
            conditions.append(A.nim.is_(None))
        return conditions


class StudyProgramRepository(_TableRepository):
    """CRUD and query helpers for `StudyProgram` rows."""
    model = models.StudyProgram

    def get_by_code(self, code: str) -> Optional[models.StudyProgram]:
        stmt = select(models.StudyProgram).where(models.StudyProgram.code == code)
        return self.session.exec(stmt).first()

    def code_exists(self, value: str, exclude_id: Optional[str] = None) -> bool:
        return self._exists(models.StudyProgram.code, value, exclude_id)

    def list_active(self) -> List[models.StudyProgram]:
        stmt = (
            select(models.StudyProgram)
            .where(models.StudyProgram.is_active == True)  # noqa: E712
            .order_by(models.StudyProgram.name.asc())
        )
        return list(self.session.exec(stmt).all())

    def build_conditions(
        self,
        search: str = "",
        is_active: Optional[bool] = None,
        level_id: Optional[str] = None,
        faculty_id: Optional[str] = None,
    ) -> list:
        P = models.StudyProgram
        conditions = []
        if search:
            conditions.append(or_(
                P.name.icontains(search, autoescape=True),
                P.code.icontains(search, autoescape=True),
                P.faculty_name.icontains(search, autoescape=True),
            ))
        if is_active is not None:
            conditions.append(P.is_active == is_active)
        if level_id:
            conditions.append(P.level_id == level_id)
        if faculty_id:
            conditions.append(P.faculty_id == faculty_id)
        return conditions
