"""HTTP controllers for API keys, applicants and study programs.

Controllers are thin: they validate the request, run the
uniqueness and existence pre-checks that turn into 409/404 responses,
delegate to a service and wrap the result in the uniform envelope.
Unexpected errors propagate to the handlers in `errors`.

Routers:
- /api-keys        key lifecycle (guarded only when ADMIN_TOKEN is set)
- /applicants      applicant CRUD, convert, publish-loa, sync (x-api-key)
- /study-programs  catalog CRUD, active projection, sync (x-api-key)
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import JSONResponse
from sqlmodel import Session

from . import errors, schemas, services
from .auth import require_admin_token, require_api_key
from .database import get_session
from .utils.pagination import parse_bool_flag, resolve_sort_field, resolve_sort_order

APPLICANT_SORT_FIELDS = (
    "created_at",
    "updated_at",
    "registration_number",
    "full_name",
    "admission_path",
    "major_choice_1",
    "graduation_year",
    "ranking",
    "loa_date",
    "nim",
    "converted_at",
)
STUDY_PROGRAM_SORT_FIELDS = ("created_at", "updated_at", "code", "name", "level_id", "faculty_id")

# columns that may not be cleared through an update
APPLICANT_REQUIRED_COLUMNS = ("registration_number", "full_name", "color_blind", "loa_published")
STUDY_PROGRAM_REQUIRED_COLUMNS = ("code", "name", "is_active")

MAX_CODE_LENGTH = 4


def respond(message: str, data=None, status_code: int = 200, pagination=None) -> JSONResponse:
    body = schemas.Envelope(success=True, message=message, data=data, pagination=pagination)
    return JSONResponse(status_code=status_code, content=body.to_content())


def dump(schema, obj) -> dict:
    """Serialise a table row through a read schema using camelCase keys."""
    return schema.model_validate(obj).model_dump(mode="json", by_alias=True)


def _drop_nulls(data: dict, columns) -> dict:
    for column in columns:
        if column in data and data[column] is None:
            data.pop(column)
    return data


def _page_limit(request: Request, limit: Optional[int]) -> int:
    return limit or request.app.state.settings.DEFAULT_PAGE_LIMIT


def _sort(sort_by: Optional[str], sort_order: Optional[str], allowed) -> tuple:
    try:
        return resolve_sort_field(sort_by, allowed), resolve_sort_order(sort_order)
    except ValueError as e:
        raise errors.ValidationError(str(e))


# ---------------------------------------------------------------------------
# API keys

api_keys_router = APIRouter(
    prefix="/api-keys",
    tags=["api-keys"],
    dependencies=[Depends(require_admin_token)],
)


def _api_key_service(request: Request, db: Session) -> services.ApiKeyService:
    return services.ApiKeyService(db, prefix=request.app.state.settings.API_KEY_PREFIX)


def _existing_key(svc: services.ApiKeyService, key_id: str):
    key = svc.find_by_id(key_id)
    if key is None:
        raise errors.NotFoundError("API key not found.")
    return key


@api_keys_router.post("")
def create_api_key(payload: schemas.ApiKeyCreate, request: Request, db: Session = Depends(get_session)):
    """Generate a new API key. The secret is returned in the response."""
    key = _api_key_service(request, db).create(payload.name)
    return respond("API key created successfully.", dump(schemas.ApiKeyRead, key), status_code=201)


@api_keys_router.get("")
def list_api_keys(request: Request, db: Session = Depends(get_session)):
    keys = _api_key_service(request, db).find_all()
    return respond("API keys retrieved successfully.", [dump(schemas.ApiKeyRead, k) for k in keys])


@api_keys_router.get("/{key_id}")
def get_api_key(key_id: str, request: Request, db: Session = Depends(get_session)):
    key = _existing_key(_api_key_service(request, db), key_id)
    return respond("API key retrieved successfully.", dump(schemas.ApiKeyRead, key))


@api_keys_router.put("/{key_id}/disable")
def disable_api_key(key_id: str, request: Request, db: Session = Depends(get_session)):
    svc = _api_key_service(request, db)
    _existing_key(svc, key_id)
    key = svc.disable(key_id)
    return respond("API key disabled successfully.", dump(schemas.ApiKeyRead, key))


@api_keys_router.put("/{key_id}/enable")
def enable_api_key(key_id: str, request: Request, db: Session = Depends(get_session)):
    svc = _api_key_service(request, db)
    _existing_key(svc, key_id)
    key = svc.enable(key_id)
    return respond("API key enabled successfully.", dump(schemas.ApiKeyRead, key))


@api_keys_router.delete("/{key_id}")
def delete_api_key(key_id: str, request: Request, db: Session = Depends(get_session)):
    svc = _api_key_service(request, db)
    _existing_key(svc, key_id)
    svc.delete(key_id)
    return respond("API key deleted successfully.")


# ---------------------------------------------------------------------------
# Applicants

applicants_router = APIRouter(
    prefix="/applicants",
    tags=["applicants"],
    dependencies=[Depends(require_api_key)],
)


def _existing_applicant(svc: services.ApplicantService, applicant_id: str):
    applicant = svc.find_by_id(applicant_id)
    if applicant is None:
        raise errors.NotFoundError("Applicant not found.")
    return applicant


@applicants_router.post("")
def create_applicant(payload: schemas.ApplicantCreate, db: Session = Depends(get_session)):
    """Create an applicant.

    `registrationNumber`, `fullName` and `majorChoice1` are required; a
    `nim` may be supplied for applicants that are already students.
    """
    svc = services.ApplicantService(db)
    if svc.registration_number_exists(payload.registration_number):
        raise errors.ConflictError(
            f"Applicant with registration number {payload.registration_number} already exists."
        )
    if payload.nim and svc.nim_exists(payload.nim):
        raise errors.ConflictError(f"NIM {payload.nim} already exists.")
    applicant = svc.create(payload.model_dump(exclude_none=True))
    return respond("Applicant created successfully.", dump(schemas.ApplicantRead, applicant), status_code=201)


@applicants_router.get("")
def list_applicants(
    request: Request,
    page: int = Query(1, ge=1, le=schemas.MAX_INT),
    limit: Optional[int] = Query(None, ge=1, le=schemas.MAX_INT),
    search: str = "",
    admission_path: Optional[str] = Query(None, alias="admissionPath"),
    major_choice_1: Optional[str] = Query(None, alias="majorChoice1"),
    loa_published: Optional[str] = Query(None, alias="loaPublished"),
    has_nim: Optional[str] = Query(None, alias="hasNim"),
    sort_by: Optional[str] = Query(None, alias="sortBy"),
    sort_order: Optional[str] = Query(None, alias="sortOrder"),
    db: Session = Depends(get_session),
):
    """List applicants with pagination, search and filters.

    Boolean filters only react to the literal strings "true" and "false".
    """
    sort_field, order = _sort(sort_by, sort_order, APPLICANT_SORT_FIELDS)
    query = schemas.ApplicantListQuery(
        page=page,
        limit=_page_limit(request, limit),
        search=search,
        admission_path=admission_path,
        major_choice_1=major_choice_1,
        loa_published=parse_bool_flag(loa_published),
        has_nim=parse_bool_flag(has_nim),
        sort_by=sort_field,
        sort_order=order,
    )
    result = services.ApplicantService(db).find_all(query)
    return respond(
        "Applicants retrieved successfully.",
        [dump(schemas.ApplicantRead, a) for a in result.data],
        pagination=result.pagination,
    )


@applicants_router.post("/sync")
def sync_applicants(payload: schemas.SyncRequest, db: Session = Depends(get_session)):
    """Bulk upsert applicants from an external system by registration number."""
    result = services.ApplicantService(db).sync_from_external(payload.data)
    return respond(
        f"Sync completed. Created: {result.created}, Updated: {result.updated}",
        result.model_dump(by_alias=True),
    )


@applicants_router.get("/{applicant_id}")
def get_applicant(applicant_id: str, db: Session = Depends(get_session)):
    applicant = _existing_applicant(services.ApplicantService(db), applicant_id)
    return respond("Applicant retrieved successfully.", dump(schemas.ApplicantRead, applicant))


@applicants_router.put("/{applicant_id}")
def update_applicant(applicant_id: str, payload: schemas.ApplicantUpdate, db: Session = Depends(get_session)):
    svc = services.ApplicantService(db)
    existing = _existing_applicant(svc, applicant_id)
    data = _drop_nulls(payload.model_dump(exclude_unset=True), APPLICANT_REQUIRED_COLUMNS)

    new_reg = data.get("registration_number")
    if new_reg and new_reg != existing.registration_number:
        if svc.registration_number_exists(new_reg, applicant_id):
            raise errors.ConflictError(f"Registration number {new_reg} already exists.")
    new_nim = data.get("nim")
    if new_nim and new_nim != existing.nim:
        if svc.nim_exists(new_nim, applicant_id):
            raise errors.ConflictError(f"NIM {new_nim} already exists.")

    applicant = svc.update(applicant_id, data)
    return respond("Applicant updated successfully.", dump(schemas.ApplicantRead, applicant))


@applicants_router.delete("/{applicant_id}")
def delete_applicant(applicant_id: str, db: Session = Depends(get_session)):
    svc = services.ApplicantService(db)
    _existing_applicant(svc, applicant_id)
    svc.delete(applicant_id)
    return respond("Applicant deleted successfully.")


@applicants_router.post("/{applicant_id}/convert")
def convert_applicant(applicant_id: str, payload: schemas.ConvertRequest, db: Session = Depends(get_session)):
    """Convert an applicant into a student by assigning a NIM."""
    svc = services.ApplicantService(db)
    existing = _existing_applicant(svc, applicant_id)
    if existing.nim:
        raise errors.ValidationError("Applicant already converted to student.")
    if svc.nim_exists(payload.nim):
        raise errors.ConflictError(f"NIM {payload.nim} already exists.")
    applicant = svc.convert_to_student(applicant_id, payload.nim)
    return respond("Applicant converted to student successfully.", dump(schemas.ApplicantRead, applicant))


@applicants_router.post("/{applicant_id}/publish-loa")
def publish_loa(applicant_id: str, db: Session = Depends(get_session)):
    svc = services.ApplicantService(db)
    existing = _existing_applicant(svc, applicant_id)
    if existing.loa_published:
        raise errors.ValidationError("LOA already published for this applicant.")
    applicant = svc.publish_loa(applicant_id)
    return respond("LOA published successfully.", dump(schemas.ApplicantRead, applicant))


# ---------------------------------------------------------------------------
# Study programs

study_programs_router = APIRouter(
    prefix="/study-programs",
    tags=["study-programs"],
    dependencies=[Depends(require_api_key)],
)


def _existing_program(svc: services.StudyProgramService, program_id: str):
    program = svc.find_by_id(program_id)
    if program is None:
        raise errors.NotFoundError("Study program not found.")
    return program


def _check_code_length(code: Optional[str]):
    if code and len(code) > MAX_CODE_LENGTH:
        raise errors.ValidationError(f"Code must be maximum {MAX_CODE_LENGTH} characters.")


@study_programs_router.post("")
def create_study_program(payload: schemas.StudyProgramCreate, db: Session = Depends(get_session)):
    _check_code_length(payload.code)
    svc = services.StudyProgramService(db)
    if svc.code_exists(payload.code):
        raise errors.ConflictError(f"Study program with code {payload.code} already exists.")
    program = svc.create(payload.model_dump(exclude_none=True))
    return respond("Study program created successfully.", dump(schemas.StudyProgramRead, program), status_code=201)


@study_programs_router.get("")
def list_study_programs(
    request: Request,
    page: int = Query(1, ge=1, le=schemas.MAX_INT),
    limit: Optional[int] = Query(None, ge=1, le=schemas.MAX_INT),
    search: str = "",
    is_active: Optional[str] = Query(None, alias="isActive"),
    level_id: Optional[str] = Query(None, alias="levelId"),
    faculty_id: Optional[str] = Query(None, alias="facultyId"),
    sort_by: Optional[str] = Query(None, alias="sortBy"),
    sort_order: Optional[str] = Query(None, alias="sortOrder"),
    db: Session = Depends(get_session),
):
    sort_field, order = _sort(sort_by, sort_order, STUDY_PROGRAM_SORT_FIELDS)
    query = schemas.StudyProgramListQuery(
        page=page,
        limit=_page_limit(request, limit),
        search=search,
        is_active=parse_bool_flag(is_active),
        level_id=level_id,
        faculty_id=faculty_id,
        sort_by=sort_field,
        sort_order=order,
    )
    result = services.StudyProgramService(db).find_all(query)
    return respond(
        "Study programs retrieved successfully.",
        [dump(schemas.StudyProgramRead, p) for p in result.data],
        pagination=result.pagination,
    )


@study_programs_router.get("/active")
def list_active_study_programs(db: Session = Depends(get_session)):
    """Active programs for dropdowns, sorted by name."""
    programs = services.StudyProgramService(db).find_all_active()
    return respond(
        "Active study programs retrieved successfully.",
        [dump(schemas.StudyProgramOption, p) for p in programs],
    )


@study_programs_router.post("/sync")
def sync_study_programs(payload: schemas.SyncRequest, db: Session = Depends(get_session)):
    """Bulk upsert study programs by code (or `idProdi`)."""
    result = services.StudyProgramService(db).sync_from_external(payload.data)
    return respond(
        f"Sync completed. Created: {result.created}, Updated: {result.updated}",
        result.model_dump(by_alias=True),
    )


@study_programs_router.get("/{program_id}")
def get_study_program(program_id: str, db: Session = Depends(get_session)):
    program = _existing_program(services.StudyProgramService(db), program_id)
    return respond("Study program retrieved successfully.", dump(schemas.StudyProgramRead, program))


@study_programs_router.put("/{program_id}")
def update_study_program(program_id: str, payload: schemas.StudyProgramUpdate, db: Session = Depends(get_session)):
    svc = services.StudyProgramService(db)
    existing = _existing_program(svc, program_id)
    data = _drop_nulls(payload.model_dump(exclude_unset=True), STUDY_PROGRAM_REQUIRED_COLUMNS)
    _check_code_length(data.get("code"))
    new_code = data.get("code")
    if new_code and new_code != existing.code and svc.code_exists(new_code, program_id):
        raise errors.ConflictError(f"Study program with code {new_code} already exists.")
    program = svc.update(program_id, data)
    return respond("Study program updated successfully.", dump(schemas.StudyProgramRead, program))


@study_programs_router.delete("/{program_id}")
def delete_study_program(program_id: str, db: Session = Depends(get_session)):
    svc = services.StudyProgramService(db)
    _existing_program(svc, program_id)
    svc.delete(program_id)
    return respond("Study program deleted successfully.")
