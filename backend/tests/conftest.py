import pytest
from fastapi.testclient import TestClient
from sqlmodel import Session

from pmb_service.config import Settings
from pmb_service.database import build_engine, create_db_and_tables
from pmb_service.main import create_app


@pytest.fixture
def settings(tmp_path):
    """Settings pointing at a fresh SQLite file per test."""
    return Settings(ENV="test", DATABASE_URL=f"sqlite:///{tmp_path / 'test.db'}", ADMIN_TOKEN=None)


@pytest.fixture
def app(settings):
    return create_app(settings)


@pytest.fixture
def client(app):
    # entering the client runs the lifespan, which creates the tables
    with TestClient(app) as c:
        yield c


@pytest.fixture
def api_key(client):
    r = client.post('/api/v1/api-keys', json={'name': 'test key'})
    assert r.status_code == 201
    return r.json()['data']


@pytest.fixture
def auth_headers(api_key):
    return {'x-api-key': api_key['apiKey']}


@pytest.fixture
def session(settings):
    """A bare database session for service-level tests."""
    engine = build_engine(settings.DATABASE_URL)
    create_db_and_tables(engine)
    with Session(engine) as s:
        yield s
    engine.dispose()


def make_applicant(client, headers, **overrides):
    payload = {'registrationNumber': 'REG-1', 'fullName': 'A', 'majorChoice1': 'CS'}
    payload.update(overrides)
    r = client.post('/api/v1/applicants', json=payload, headers=headers)
    assert r.status_code == 201, r.json()
    return r.json()['data']
