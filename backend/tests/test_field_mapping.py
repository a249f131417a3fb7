from pmb_service.utils.field_mapping import (
    candidate_keys,
    normalize_applicant,
    normalize_study_program,
    APPLICANT_LEGACY_KEYS,
)


def test_candidate_keys_order():
    assert candidate_keys('major_choice_1') == ['majorChoice1', 'major_choice_1']
    assert candidate_keys('email') == ['email']
    keys = candidate_keys('registration_number', APPLICANT_LEGACY_KEYS)
    assert keys[:3] == ['registrationNumber', 'registration_number', 'noReg']


def test_camel_case_takes_precedence():
    out = normalize_applicant({'fullName': 'Camel', 'full_name': 'Snake', 'namaLengkap': 'Legacy'})
    assert out == {'full_name': 'Camel'}


def test_null_values_fall_through_and_are_dropped():
    out = normalize_applicant({'fullName': None, 'full_name': 'Snake', 'email': None})
    assert out == {'full_name': 'Snake'}


def test_legacy_and_false_values_are_kept():
    out = normalize_applicant({'noReg': 'R-1', 'butaWarna': False, 'loa_published': False})
    assert out == {'registration_number': 'R-1', 'color_blind': False, 'loa_published': False}


def test_study_program_descriptive_variant():
    out = normalize_study_program({
        'idProdi': '55201', 'namaProdi': 'TI', 'idJenjang': 'S1', 'namaJenjang': 'Sarjana',
        'idFakultas': 'FT', 'namaFakultas': 'Teknik', 'isActive': False, 'ignored': 1,
    })
    assert out == {
        'code': '55201', 'name': 'TI', 'level_id': 'S1', 'level_name': 'Sarjana',
        'faculty_id': 'FT', 'faculty_name': 'Teknik', 'is_active': False,
    }
