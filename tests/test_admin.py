from dataclasses import replace

from config import get_settings
import main
from main import app, seed_default_project
from tests.conftest import auth, stored_files, upload

ADMIN = {"X-Admin-Token": "admin-secret"}


def test_admin_requires_token(client):
    assert client.get("/admin/projects").status_code == 401
    assert client.get("/admin/projects", headers={"X-Admin-Token": "wrong"}).status_code == 401


def test_admin_disabled_without_configured_token(client, settings):
    app.dependency_overrides[get_settings] = lambda: replace(settings, admin_token=None)
    assert client.get("/admin/projects", headers=ADMIN).status_code == 401


def test_create_project_returns_key_once(client):
    created = client.post("/admin/projects", json={"name": "Photos"}, headers=ADMIN)
    assert created.status_code == 201
    api_key = created.json()["api_key"]
    assert api_key.startswith("sk-") and len(api_key) == 35

    listed = client.get("/admin/projects", headers=ADMIN).json()["projects"]
    assert [p["name"] for p in listed] == ["Photos"]
    assert "api_key" not in listed[0]
    assert api_key not in client.get("/admin/projects", headers=ADMIN).text

    # The new key works against the object API straight away
    assert client.get("/api/buckets", headers={"Authorization": f"Bearer {api_key}"}).status_code == 200


def test_list_projects_counts_buckets(client, project_a, project_b):
    listed = client.get("/admin/projects", headers=ADMIN).json()["projects"]
    assert [(p["name"], p["bucket_count"]) for p in listed] == [("Project A", 3), ("Project B", 1)]


def test_delete_project_cascades(client, db, project_a, project_b, settings):
    upload(client, project_a, "media")
    upload(client, project_b, "shared", filename="keep.png")
    key_a = project_a.api_key
    project_a_id = project_a.id

    response = client.delete(f"/admin/projects/{project_a_id}", headers=ADMIN)
    assert response.status_code == 200

    assert client.get("/api/buckets", headers={"Authorization": f"Bearer {key_a}"}).status_code == 401
    assert not (settings.storage_root / str(project_a_id)).exists()
    assert len(stored_files(settings)) == 1
    assert client.get("/api/object", params={"bucket": "shared", "file": "keep.png"},
                      headers=auth(project_b)).status_code == 200

    assert client.delete(f"/admin/projects/{project_a_id}", headers=ADMIN).status_code == 404


def test_seed_default_project_is_idempotent(db):
    first = seed_default_project(db, "Default", "sk-default")
    second = seed_default_project(db, "Default", "sk-default")
    assert first.id == second.id
    assert seed_default_project(db, None, "sk-default") is None


def test_admin_creates_first_bucket_for_new_project(client):
    created = client.post("/admin/projects", json={"name": "Photos"}, headers=ADMIN).json()
    project_id, api_key = created["id"], created["api_key"]

    bucket = client.post(f"/admin/projects/{project_id}/buckets",
                         json={"name": "gallery", "public": True}, headers=ADMIN)
    assert bucket.status_code == 201
    assert bucket.json()["public"] is True

    listed = client.get(f"/admin/projects/{project_id}/buckets", headers=ADMIN).json()["buckets"]
    assert [b["name"] for b in listed] == ["gallery"]

    # The project's own key sees the bucket the admin made
    own = client.get("/api/buckets", headers={"Authorization": f"Bearer {api_key}"}).json()["buckets"]
    assert [b["name"] for b in own] == ["gallery"]


def test_admin_bucket_duplicate_name_conflicts(client, project_a):
    response = client.post(f"/admin/projects/{project_a.id}/buckets", json={"name": "media"}, headers=ADMIN)
    assert response.status_code == 409


def test_admin_buckets_for_unknown_project(client):
    assert client.get("/admin/projects/999/buckets", headers=ADMIN).status_code == 404
    assert client.post("/admin/projects/999/buckets", json={"name": "x"}, headers=ADMIN).status_code == 404


def test_admin_bucket_endpoints_require_token(client, project_a):
    assert client.get(f"/admin/projects/{project_a.id}/buckets").status_code == 401
    assert client.post(f"/admin/projects/{project_a.id}/buckets", json={"name": "x"}).status_code == 401


def test_run_serves_app_with_configured_host_and_port(monkeypatch, settings):
    calls = {}
    monkeypatch.setattr(main, "get_settings", lambda: replace(settings, host="0.0.0.0", port=9100))
    monkeypatch.setattr(main.uvicorn, "run", lambda app, **kwargs: calls.update(app=app, **kwargs))

    main.run()

    assert calls == {"app": "main:app", "host": "0.0.0.0", "port": 9100}
