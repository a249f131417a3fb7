"""Key normalisation for records arriving through the bulk sync endpoints.

External systems send the same record under three naming conventions:
camelCase (the canonical API), snake_case, and the legacy Indonesian
student/study-program schema. `normalize_record` folds all of them into
the snake_case attribute names of the local models.
"""

from __future__ import annotations

from typing import Dict, Iterable, List, Optional

from pydantic.alias_generators import to_camel, to_snake

APPLICANT_FIELDS = (
    "registration_number",
    "full_name",
    "admission_path",
    "major_choice_1",
    "major_choice_2",
    "major_choice_3",
    "major_choice_4",
    "email",
    "phone",
    "graduation_year",
    "gender",
    "school_origin",
    "school_major",
    "ranking",
    "parent_name",
    "parent_phone",
    "religion",
    "color_blind",
    "province",
    "city",
    "village",
    "district",
    "postal_code",
    "home_address",
    "agent",
    "loa_published",
    "loa_date",
    "nim",
    "converted_at",
)

# legacy student table (Indonesian field names)
APPLICANT_LEGACY_KEYS = {
    "registration_number": ["noReg"],
    "full_name": ["namaLengkap"],
    "admission_path": ["jalur"],
    "major_choice_1": ["jurusan"],
    "major_choice_2": ["pilihanJurusan2"],
    "major_choice_3": ["pilihanJurusan3"],
    "major_choice_4": ["pilihanJurusan4"],
    "graduation_year": ["tahunLulus"],
    "school_origin": ["asalSekolah"],
    "school_major": ["jurusanSekolah"],
    "parent_name": ["namaOrangTua"],
    "parent_phone": ["hpOrangTua"],
    "religion": ["agama"],
    "color_blind": ["butaWarna"],
    "province": ["provinsi"],
    "city": ["kotaKabupaten"],
    "village": ["kelurahan"],
    "district": ["kecamatan"],
    "postal_code": ["kodePos"],
    "home_address": ["alamatRumah"],
    "loa_date": ["tanggalLoa"],
}

STUDY_PROGRAM_FIELDS = (
    "code",
    "name",
    "nim_format",
    "level_id",
    "level_name",
    "faculty_id",
    "faculty_name",
    "is_active",
)

# descriptive study-program variant (academic information system export)
STUDY_PROGRAM_LEGACY_KEYS = {
    "code": ["idProdi"],
    "name": ["namaProdi"],
    "level_id": ["idJenjang"],
    "level_name": ["namaJenjang"],
    "faculty_id": ["idFakultas"],
    "faculty_name": ["namaFakultas"],
}


def candidate_keys(field: str, legacy: Optional[Dict[str, List[str]]] = None) -> List[str]:
    """Return the accepted input keys for `field`, highest precedence first."""
    keys = [to_camel(field), field]
    for key in (legacy or {}).get(field, []):
        keys.extend([key, to_snake(key)])
    seen = set()
    ordered = []
    for key in keys:
        if key not in seen:
            seen.add(key)
            ordered.append(key)
    return ordered


def pick(record: dict, field: str, legacy: Optional[Dict[str, List[str]]] = None):
    """Return the first non-null value for `field` across naming conventions."""
    for key in candidate_keys(field, legacy):
        value = record.get(key)
        if value is not None:
            return value
    return None


def normalize_record(
    record: dict,
    fields: Iterable[str],
    legacy: Optional[Dict[str, List[str]]] = None,
) -> dict:
    """Fold `record` into a dict keyed by snake_case field names.

    Only fields with a non-null value in some accepted spelling are
    returned, so the result can drive a partial update.
    """
    out = {}
    for field in fields:
        value = pick(record, field, legacy)
        if value is not None:
            out[field] = value
    return out


def normalize_applicant(record: dict) -> dict:
    return normalize_record(record, APPLICANT_FIELDS, APPLICANT_LEGACY_KEYS)


def normalize_study_program(record: dict) -> dict:
    return normalize_record(record, STUDY_PROGRAM_FIELDS, STUDY_PROGRAM_LEGACY_KEYS)
