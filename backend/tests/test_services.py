from datetime import datetime

from pmb_service import models, schemas, services


def test_api_key_service_toggle_and_delete(session):
    svc = services.ApiKeyService(session, prefix='test_')
    key = svc.create('svc')
    assert key.api_key.startswith('test_')
    assert svc.find_by_token(key.api_key).id == key.id
    assert svc.disable(key.id).is_active is False
    assert svc.enable(key.id).is_active is True
    assert svc.disable('missing') is None
    assert svc.delete(key.id) is True
    assert svc.delete(key.id) is False


def test_applicant_exists_predicates(session):
    svc = services.ApplicantService(session)
    a = svc.create({'registration_number': 'R-1', 'full_name': 'A', 'nim': 'N-1'})
    assert svc.registration_number_exists('R-1')
    assert not svc.registration_number_exists('R-1', exclude_id=a.id)
    assert svc.nim_exists('N-1')
    assert not svc.nim_exists('N-1', exclude_id=a.id)
    assert not svc.nim_exists('')
    assert not svc.nim_exists(None)
    assert svc.find_by_registration_number('R-1').id == a.id
    assert a.converted_at is not None


def test_applicant_find_all_pages(session):
    svc = services.ApplicantService(session)
    for i in range(5):
        svc.create({'registration_number': f'R-{i}', 'full_name': f'Name {i}'})
    page = svc.find_all(schemas.ApplicantListQuery(page=2, limit=2, sort_by='registration_number', sort_order='asc'))
    assert [a.registration_number for a in page.data] == ['R-2', 'R-3']
    assert page.pagination.total == 5
    assert page.pagination.total_pages == 3
    assert page.pagination.has_next is True


def test_lifecycle_rules_pair_timestamps():
    values = services.apply_lifecycle_rules({'loa_published': True, 'nim': 'N'})
    assert isinstance(values['loa_date'], datetime)
    assert isinstance(values['converted_at'], datetime)

    assert services.apply_lifecycle_rules({'loa_published': False, 'loa_date': datetime(2025, 1, 1)}) == {
        'loa_published': False, 'loa_date': None,
    }
    assert services.apply_lifecycle_rules({'converted_at': datetime(2025, 1, 1)}) == {'converted_at': None}


def test_lifecycle_rules_keep_existing_timestamps():
    stamped = datetime(2025, 1, 15)
    current = models.Applicant(
        registration_number='R', full_name='A', loa_published=True, loa_date=stamped,
        nim='N', converted_at=stamped,
    )
    assert services.apply_lifecycle_rules({'city': 'X'}, current) == {'city': 'X'}
    assert services.apply_lifecycle_rules({'nim': None}, current) == {'nim': None, 'converted_at': None}


def test_study_program_sync_counts(session):
    svc = services.StudyProgramService(session)
    svc.create({'code': 'TI', 'name': 'Teknik Informatika', 'nim_format': 'TI'})
    result = svc.sync_from_external([
        {'code': 'TI', 'name': 'Informatika'},
        {'code': 'SI', 'name': 'Sistem Informasi'},
        {'name': 'no code'},
    ])
    assert result.created == 1
    assert result.updated == 1
    assert result.errors == [{'code': None, 'error': 'code is required'}]
    assert svc.find_by_code('TI').name == 'Informatika'
    assert [p.code for p in svc.find_all_active()] == ['TI', 'SI']


def test_applicant_sync_keeps_going_after_unexpected_error(session, monkeypatch):
    svc = services.ApplicantService(session)
    add = svc.repo.add

    def add_failing_first(row):
        if row.registration_number == 'R-1':
            raise OverflowError('int too large')
        return add(row)

    monkeypatch.setattr(svc.repo, 'add', add_failing_first)
    result = svc.sync_from_external([
        {'registrationNumber': 'R-1', 'fullName': 'A'},
        {'registrationNumber': 'R-2', 'fullName': 'B'},
    ])
    assert result.created == 1
    assert result.errors == [{'registrationNumber': 'R-1', 'error': 'int too large'}]
    assert svc.find_by_registration_number('R-2') is not None
