def _create(client, headers, **overrides):
    payload = {'code': 'TI', 'name': 'Teknik Informatika', 'nimFormat': 'TI{YY}{SEQ}'}
    payload.update(overrides)
    r = client.post('/api/v1/study-programs', json=payload, headers=headers)
    assert r.status_code == 201, r.json()
    return r.json()['data']


def test_create_study_program_defaults_active(client, auth_headers):
    program = _create(client, auth_headers)
    assert program['code'] == 'TI'
    assert program['isActive'] is True
    r = client.get(f"/api/v1/study-programs/{program['id']}", headers=auth_headers)
    assert r.json()['data'] == program


def test_create_study_program_validation(client, auth_headers):
    _create(client, auth_headers)
    r = client.post('/api/v1/study-programs', json={'code': 'TI', 'name': 'Dup', 'nimFormat': 'X'},
                    headers=auth_headers)
    assert r.status_code == 409
    assert r.json()['message'] == 'Study program with code TI already exists.'

    r = client.post('/api/v1/study-programs', json={'code': 'TOOLONG', 'name': 'X', 'nimFormat': 'X'},
                    headers=auth_headers)
    assert r.status_code == 400
    assert r.json()['message'] == 'Code must be maximum 4 characters.'

    r = client.post('/api/v1/study-programs', json={'code': 'SI', 'name': 'X'}, headers=auth_headers)
    assert r.status_code == 400
    assert 'nimFormat' in r.json()['message']


def test_list_study_programs_search_and_filters(client, auth_headers):
    _create(client, auth_headers, code='TI', name='Teknik Informatika', levelId='S1',
            facultyId='FT', facultyName='Fakultas Teknik')
    _create(client, auth_headers, code='MI', name='Manajemen Informatika', levelId='D3',
            facultyId='FT', facultyName='Fakultas Teknik', isActive=False)
    _create(client, auth_headers, code='AK', name='Akuntansi', levelId='S1',
            facultyId='FEB', facultyName='Fakultas Ekonomi')

    def codes(**params):
        r = client.get('/api/v1/study-programs', params=params, headers=auth_headers)
        assert r.status_code == 200
        return sorted(p['code'] for p in r.json()['data'])

    assert codes(search='informatika') == ['MI', 'TI']
    assert codes(search='ekonomi') == ['AK']
    assert codes(search='AKUN') == ['AK']
    assert codes(isActive='false') == ['MI']
    assert codes(isActive='true', facultyId='FT') == ['TI']
    assert codes(levelId='S1') == ['AK', 'TI']
    r = client.get('/api/v1/study-programs', params={'limit': 2}, headers=auth_headers)
    assert r.json()['pagination']['totalPages'] == 2
    assert r.json()['pagination']['hasNext'] is True


def test_active_study_programs_projection(client, auth_headers):
    _create(client, auth_headers, code='TI', name='Teknik Informatika')
    _create(client, auth_headers, code='AK', name='Akuntansi', facultyName='Fakultas Ekonomi')
    _create(client, auth_headers, code='MI', name='Manajemen Informatika', isActive=False)
    r = client.get('/api/v1/study-programs/active', headers=auth_headers)
    assert r.status_code == 200
    data = r.json()['data']
    assert [p['name'] for p in data] == ['Akuntansi', 'Teknik Informatika']
    assert set(data[0]) == {'id', 'code', 'name', 'nimFormat', 'levelName', 'facultyName'}


def test_update_study_program(client, auth_headers):
    ti = _create(client, auth_headers, code='TI')
    _create(client, auth_headers, code='SI', name='Sistem Informasi')

    r = client.put(f"/api/v1/study-programs/{ti['id']}", json={'name': 'Informatika', 'isActive': False},
                   headers=auth_headers)
    assert r.status_code == 200
    assert r.json()['data']['name'] == 'Informatika'
    assert r.json()['data']['isActive'] is False

    r = client.put(f"/api/v1/study-programs/{ti['id']}", json={'code': 'ABCDE'}, headers=auth_headers)
    assert r.status_code == 400
    r = client.put(f"/api/v1/study-programs/{ti['id']}", json={'code': 'SI'}, headers=auth_headers)
    assert r.status_code == 409
    r = client.put(f"/api/v1/study-programs/{ti['id']}", json={'code': 'IF'}, headers=auth_headers)
    assert r.status_code == 200
    assert r.json()['data']['code'] == 'IF'
    assert client.put('/api/v1/study-programs/nope', json={}, headers=auth_headers).status_code == 404


def test_delete_study_program(client, auth_headers):
    ti = _create(client, auth_headers)
    r = client.delete(f"/api/v1/study-programs/{ti['id']}", headers=auth_headers)
    assert r.status_code == 200
    assert r.json()['message'] == 'Study program deleted successfully.'
    r = client.get(f"/api/v1/study-programs/{ti['id']}", headers=auth_headers)
    assert r.status_code == 404
    assert r.json()['message'] == 'Study program not found.'
