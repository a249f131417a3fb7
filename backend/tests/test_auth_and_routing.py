def test_health_is_public(client):
    r = client.get('/api/v1/health')
    assert r.status_code == 200
    assert r.json()['success'] is True
    assert r.json()['message'] == 'API is running'
    assert 'timestamp' in r.json()
    assert 'X-Request-ID' in r.headers


def test_root_describes_service(client):
    r = client.get('/')
    assert r.status_code == 200
    assert r.json()['data']['documentation'] == '/api/v1/health'


def test_missing_api_key_is_rejected(client):
    for path in ('/api/v1/applicants', '/api/v1/study-programs', '/api/v1/study-programs/active'):
        r = client.get(path)
        assert r.status_code == 401
        assert r.json()['error'] == 'Unauthorized'
        assert r.json()['message'].startswith('API key is required')


def test_unknown_api_key_is_rejected(client):
    r = client.get('/api/v1/applicants', headers={'x-api-key': 'pmb_doesnotexist'})
    assert r.status_code == 401
    assert r.json()['message'] == 'Invalid API key.'


def test_disabled_api_key_is_rejected_everywhere(client, api_key, auth_headers):
    assert client.get('/api/v1/applicants', headers=auth_headers).status_code == 200
    client.put(f"/api/v1/api-keys/{api_key['id']}/disable")
    for method, path in (
        ('get', '/api/v1/applicants'),
        ('get', '/api/v1/study-programs/active'),
        ('get', '/api/v1/study-programs'),
    ):
        r = getattr(client, method)(path, headers=auth_headers)
        assert r.status_code == 401
        assert r.json()['message'] == 'API key has been disabled.'
    client.put(f"/api/v1/api-keys/{api_key['id']}/enable")
    assert client.get('/api/v1/applicants', headers=auth_headers).status_code == 200


def test_unknown_route_uses_envelope(client):
    r = client.get('/api/v1/nope')
    assert r.status_code == 404
    assert r.json() == {
        'success': False,
        'error': 'Not Found',
        'message': 'Route GET /api/v1/nope not found.',
    }
