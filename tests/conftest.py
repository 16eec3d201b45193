import itertools

import pytest
from fastapi.testclient import TestClient
from sqlmodel import Session

from backtrack.core.config import Settings
from backtrack.main import create_app
from backtrack.services.credential_service import TokenClaims
from backtrack.services.item_repository import ItemRepository
from backtrack.services.lifecycle_service import ItemLifecycleService
from backtrack.services.search_service import SearchFacade
from backtrack.services.verification_service import VerificationWorkflow
from backtrack.utils.media_store import LocalMediaStore

PASSWORD = "secret123"


class FlakyMediaStore(LocalMediaStore):
    """Local store that can be told to fail specific uploads or deletes."""

    def __init__(self, root, base_url="/uploads"):
        super().__init__(root, base_url)
        self.fail_uploads = set()
        self.fail_deletes = set()
        self.upload_calls = 0
        self.deleted = []

    def _store(self, local_path, namespace):
        self.upload_calls += 1
        if self.upload_calls in self.fail_uploads:
            raise RuntimeError("storage unavailable")
        return super()._store(local_path, namespace)

    def _remove(self, url):
        if url in self.fail_deletes:
            raise RuntimeError("storage unavailable")
        super()._remove(url)
        self.deleted.append(url)


@pytest.fixture
def settings(tmp_path):
    return Settings(
        database_url=f"sqlite:///{tmp_path / 'test.db'}",
        jwt_secret="test-secret",
        media_backend="local",
        upload_dir=str(tmp_path / "uploads"),
        allow_admin_registration=True,
        log_level="WARNING",
    )


@pytest.fixture
def media(tmp_path):
    return FlakyMediaStore(tmp_path / "uploads")


@pytest.fixture
def app(settings, media):
    return create_app(settings, media=media)


@pytest.fixture
def client(app):
    return TestClient(app)


@pytest.fixture
def session(app):
    with Session(app.state.context.engine) as session:
        yield session


@pytest.fixture
def repository(session):
    return ItemRepository(session)


@pytest.fixture
def lifecycle(repository, media):
    return ItemLifecycleService(repository, media)


@pytest.fixture
def workflow(session, lifecycle):
    return VerificationWorkflow(session, lifecycle)


@pytest.fixture
def search(repository):
    return SearchFacade(repository)


@pytest.fixture
def owner():
    return TokenClaims(actor_id=1, role="member")


@pytest.fixture
def stranger():
    return TokenClaims(actor_id=2, role="member")


@pytest.fixture
def admin():
    return TokenClaims(actor_id=99, role="admin")


@pytest.fixture
def make_image(tmp_path):
    counter = itertools.count()

    def _make(name=None, content=b"\x89PNG\r\n\x1a\nfake image bytes"):
        path = tmp_path / (name or f"photo{next(counter)}.png")
        path.write_bytes(content)
        return str(path)

    return _make


@pytest.fixture
def register(client):
    def _register(username, role="member"):
        response = client.post(
            "/auth/register",
            json={"username": username, "password": PASSWORD, "name": username.title(), "role": role},
        )
        assert response.status_code == 201, response.text
        body = response.json()
        return {"Authorization": f"Bearer {body['token']}"}, body["actor"]["id"]

    return _register
