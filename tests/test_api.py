"""Tests for API functionality."""

import tempfile
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from folgezettel.api.app import create_app, generate_token
from folgezettel.runtime import build_runtime


@pytest.fixture
def runtime():
    """Create a runtime with test vault."""
    with tempfile.TemporaryDirectory() as tmpdir:
        vault_path = Path(tmpdir) / "vault"
        vault_path.mkdir()
        (vault_path / "1 Root.md").write_text("# Root\n")
        (vault_path / "1a Child.md").write_text("# Child\n")

        yield build_runtime(vault_path=vault_path, quiet=True)


@pytest.fixture
def client(runtime):
    return TestClient(create_app(runtime, token=None))


def test_health_endpoint(client):
    """Test /health endpoint."""
    response = client.get("/health")
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "ok"
    assert data["version"]


def test_auth_required(runtime):
    """Test that endpoints require authentication when token is set."""
    token = generate_token()
    client = TestClient(create_app(runtime, token=token))

    response = client.get("/health")
    assert response.status_code == 401

    response = client.get("/health", headers={"Authorization": "Bearer wrong"})
    assert response.status_code == 401

    response = client.get("/health", headers={"Authorization": f"Bearer {token}"})
    assert response.status_code == 200


def test_describe_address(client):
    """Test /addresses/{address} endpoint."""
    response = client.get("/addresses/1")
    assert response.status_code == 200
    data = response.json()
    assert data["canonical"] == "1"
    assert data["parent"] is None
    assert data["children"] == ["1a"]
    assert data["next_child"] == "1b"
    assert data["note"] == "1 Root.md"

    data = client.get("/addresses/01.2a3").json()
    assert data["canonical"] == "1.2a3"
    assert data["segments"] == [1, 2, "a", 3]
    assert data["kinds"] == ["number", "number", "letters", "number"]
    assert data["parent"] == "1.2a"
    assert data["last_kind"] == "number"
    assert data["note"] is None


def test_describe_invalid_address(client):
    response = client.get("/addresses/a1")
    assert response.status_code == 422


def test_suggest_endpoint(client, runtime):
    """Suggestion does not create anything."""
    response = client.get("/suggest", params={"path": "1a Child.md"})
    assert response.status_code == 200
    data = response.json()
    assert data["address"] == "1a1"
    assert data["is_duplicate"] is False
    assert not (runtime.config.vault.root / "1a1.md").exists()


def test_suggest_unknown_note(client):
    assert client.get("/suggest", params={"path": "nope.md"}).status_code == 404


def test_suggest_note_without_address(client, runtime):
    (runtime.config.vault.root / "Inbox.md").write_text("")
    assert client.get("/suggest", params={"path": "Inbox.md"}).status_code == 422


def test_create_child_endpoint(client, runtime):
    """Test /children creates the note and links it to its parent."""
    response = client.post("/children", params={"path": "1 Root.md"})
    assert response.status_code == 200
    assert response.json() == {"address": "1b", "path": "1b.md"}

    vault = runtime.config.vault.root
    assert "[[1 Root]]" in (vault / "1b.md").read_text()
    assert "[[1b]]" in (vault / "1 Root.md").read_text()


def test_create_child_duplicate_needs_confirm(client, runtime):
    vault = runtime.config.vault.root
    (vault / "5 Parent.md").write_text("")
    (vault / "5z.md").write_text("")
    (vault / "archive").mkdir()
    (vault / "archive" / "5aa.md").write_text("")

    response = client.post("/children", params={"path": "5 Parent.md"})
    assert response.status_code == 409
    assert "archive/5aa.md" in response.json()["detail"]
    assert not (vault / "5aa.md").exists()

    response = client.post("/children", params={"path": "5 Parent.md", "confirm": "true"})
    assert response.status_code == 200
    assert response.json()["path"] == "5aa.md"


def test_backlink_endpoint(client, runtime):
    """Test /backlink links both ways, once."""
    response = client.post("/backlink", params={"path": "1a Child.md"})
    assert response.status_code == 200
    assert response.json() == {"inserted": True, "parent": "1"}

    vault = runtime.config.vault.root
    assert "- [[1 Root]] (Parent)" in (vault / "1a Child.md").read_text()
    assert "- [[1a Child]] (Child)" in (vault / "1 Root.md").read_text()

    response = client.post("/backlink", params={"path": "1a Child.md"})
    assert response.json() == {"inserted": False, "parent": "1"}


def test_backlink_root_and_orphan(client, runtime):
    assert client.post("/backlink", params={"path": "1 Root.md"}).status_code == 422

    (runtime.config.vault.root / "7c Orphan.md").write_text("")
    response = client.post("/backlink", params={"path": "7c Orphan.md"})
    assert response.status_code == 404
    assert response.json()["detail"] == "Parent note not found for address: 7"


def test_duplicates_endpoint(client, runtime):
    assert client.get("/duplicates").json() == {}

    vault = runtime.config.vault.root
    (vault / "other").mkdir()
    (vault / "other" / "1a Copy.md").write_text("")

    assert client.get("/duplicates").json() == {"1a": ["1a Child.md", "other/1a Copy.md"]}
