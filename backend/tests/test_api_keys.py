from fastapi.testclient import TestClient

from pmb_service.config import Settings
from pmb_service.main import create_app


def test_create_api_key_returns_secret(client):
    r = client.post('/api/v1/api-keys', json={'name': 'integration'})
    assert r.status_code == 201
    body = r.json()
    assert body['success'] is True
    assert body['message'] == 'API key created successfully.'
    key = body['data']
    assert key['name'] == 'integration'
    assert key['isActive'] is True
    assert key['apiKey'].startswith('pmb_')
    assert len(key['apiKey']) == len('pmb_') + 32


def test_create_api_key_requires_name(client):
    r = client.post('/api/v1/api-keys', json={})
    assert r.status_code == 400
    body = r.json()
    assert body['success'] is False
    assert body['error'] == 'Bad Request'
    assert 'name' in body['message']


def test_list_api_keys_newest_first(client):
    first = client.post('/api/v1/api-keys', json={'name': 'first'}).json()['data']
    second = client.post('/api/v1/api-keys', json={'name': 'second'}).json()['data']
    r = client.get('/api/v1/api-keys')
    assert r.status_code == 200
    ids = [k['id'] for k in r.json()['data']]
    assert ids == [second['id'], first['id']]
    # secrets are listed as-is for admin use
    assert r.json()['data'][0]['apiKey'] == second['apiKey']


def test_get_disable_enable_delete_api_key(client, api_key):
    key_id = api_key['id']
    r = client.get(f'/api/v1/api-keys/{key_id}')
    assert r.status_code == 200
    assert r.json()['data']['apiKey'] == api_key['apiKey']

    r = client.put(f'/api/v1/api-keys/{key_id}/disable')
    assert r.status_code == 200
    assert r.json()['data']['isActive'] is False

    r = client.put(f'/api/v1/api-keys/{key_id}/enable')
    assert r.status_code == 200
    assert r.json()['data']['isActive'] is True

    r = client.delete(f'/api/v1/api-keys/{key_id}')
    assert r.status_code == 200
    assert 'data' not in r.json()
    assert client.get(f'/api/v1/api-keys/{key_id}').status_code == 404


def test_unknown_api_key_id_is_404(client):
    for method, path in (
        ('get', '/api/v1/api-keys/missing'),
        ('put', '/api/v1/api-keys/missing/disable'),
        ('put', '/api/v1/api-keys/missing/enable'),
        ('delete', '/api/v1/api-keys/missing'),
    ):
        r = getattr(client, method)(path)
        assert r.status_code == 404
        assert r.json()['message'] == 'API key not found.'


def test_admin_token_guards_key_management_when_configured(tmp_path):
    settings = Settings(ENV='test', DATABASE_URL=f"sqlite:///{tmp_path / 'admin.db'}", ADMIN_TOKEN='s3cret')
    with TestClient(create_app(settings)) as c:
        r = c.post('/api/v1/api-keys', json={'name': 'x'})
        assert r.status_code == 401
        r = c.post('/api/v1/api-keys', json={'name': 'x'}, headers={'x-admin-token': 'wrong'})
        assert r.status_code == 401
        r = c.post('/api/v1/api-keys', json={'name': 'x'}, headers={'x-admin-token': 's3cret'})
        assert r.status_code == 201
