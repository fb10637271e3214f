import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker

import crud
import models  # noqa: F401  registers the tables on Base
from config import Settings, get_settings
from database import Base, get_db, make_engine
from main import app

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00\x00\x00\rIHDR" + b"\x00" * 48


@pytest.fixture
def settings(tmp_path):
    return Settings(
        database_url=f"sqlite:///{tmp_path / 'test.db'}",
        storage_root=tmp_path / "storage",
        max_file_size=64 * 1024,
        stream_chunk_size=1024,
        admin_token="admin-secret",
    )


@pytest.fixture
def engine(settings):
    engine = make_engine(settings.database_url)
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client(session_factory, settings):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_settings] = lambda: settings
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def project_a(db):
    project = crud.create_project(db, name="Project A")
    crud.create_bucket(db, project.id, "media", is_public=False)
    crud.create_bucket(db, project.id, "shared", is_public=False)
    crud.create_bucket(db, project.id, "assets", is_public=True)
    return project


@pytest.fixture
def project_b(db):
    project = crud.create_project(db, name="Project B")
    crud.create_bucket(db, project.id, "shared", is_public=False)
    return project


def auth(project) -> dict:
    return {"Authorization": f"Bearer {project.api_key}"}


def upload(client, project, bucket, filename="cat.png", content=PNG_BYTES, mime_type="image/png"):
    return client.post(
        "/api/upload",
        headers=auth(project),
        data={"bucket": bucket},
        files={"file": (filename, content, mime_type)},
    )


def stored_files(settings):
    root = settings.storage_root
    if not root.exists():
        return []
    return [p for p in root.rglob("*") if p.is_file()]
