"""Smoke tests for API routes."""

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from conftest import legacy_entry, seed_legacy
from lingua_articles.api.routes import get_migration, get_user_data, router
from lingua_articles.errors import StoreRejected
from lingua_articles.userdata.migration import MigrationCoordinator
from lingua_articles.userdata.stats import ARTICLES_TABLE

ARTICLE_BODY = {
    "topic": "fútbol",
    "level": "A2",
    "content": {
        "article": "El partido fue emocionante.",
        "vocabulary": [{"word": "partido", "meaning": "試合"}],
    },
}


@pytest.fixture
def client(manager, legacy):
    app = FastAPI()
    app.include_router(router)
    app.dependency_overrides[get_user_data] = lambda: manager
    app.dependency_overrides[get_migration] = lambda: MigrationCoordinator(legacy, manager)
    with TestClient(app) as c:
        yield c


class TestHealthCheck:
    def test_health_returns_ok(self, client):
        response = client.get("/api/health")
        assert response.status_code == 200
        assert response.json() == {"status": "ok"}


class TestArticles:
    def test_list_empty(self, client):
        response = client.get("/api/users/user1/articles")
        assert response.status_code == 200
        assert response.json() == []

    def test_save_list_delete(self, client):
        response = client.post("/api/users/user1/articles", json=ARTICLE_BODY)
        assert response.status_code == 201
        body = response.json()
        assert body["statsRecorded"] is True
        article_id = body["article"]["id"]

        listed = client.get("/api/users/user1/articles").json()
        assert listed[0]["id"] == article_id
        assert listed[0]["userId"] == "user1"
        assert listed[0]["content"]["vocabulary"][0]["word"] == "partido"

        assert client.delete(f"/api/users/user1/articles/{article_id}").status_code == 204
        assert client.get("/api/users/user1/articles").json() == []

    def test_delete_unknown_is_204(self, client):
        assert client.delete("/api/users/user2/articles/nope").status_code == 204

    def test_unknown_identity(self, client):
        assert client.get("/api/users/user9/articles").status_code == 422

    def test_invalid_body(self, client):
        response = client.post("/api/users/user1/articles", json={"topic": "x"})
        assert response.status_code == 422

    def test_save_failure_is_502(self, client, store):
        store.fail("insert", ARTICLES_TABLE, StoreRejected("rejected", 400))
        response = client.post("/api/users/user1/articles", json=ARTICLE_BODY)
        assert response.status_code == 502

    def test_backend_down_is_503(self, client, store):
        store.fail("select", "user_profiles")
        assert client.get("/api/users/user1/profile").status_code == 503
        # Reads stay available with empty results
        assert client.get("/api/users/user1/articles").json() == []


class TestStatsAndSettings:
    def test_stats(self, client):
        client.post("/api/users/user2/articles", json=ARTICLE_BODY)
        stats = client.get("/api/users/user2/stats").json()
        assert stats["totalArticles"] == 1
        assert stats["favoriteTopics"] == ["fútbol"]
        assert stats["levelDistribution"] == {"A2": 1}

    def test_profile(self, client):
        profile = client.get("/api/users/user2/profile").json()
        assert profile["name"] == "JOSÉ"
        assert profile["interface_language"] == "spanish"

    def test_settings_round_trip(self, client):
        assert client.get("/api/users/user1/settings").json() == {"interfaceLanguage": "spanish"}
        response = client.put("/api/users/user1/settings", json={"interfaceLanguage": "japanese"})
        assert response.status_code == 200
        assert response.json() == {"interfaceLanguage": "japanese"}

    def test_settings_unknown_language(self, client):
        response = client.put("/api/users/user1/settings", json={"interfaceLanguage": "latin"})
        assert response.status_code == 422


class TestMigration:
    def test_pending_and_migrate(self, client, local_store):
        seed_legacy(local_store, "user1", [legacy_entry(0), legacy_entry(1)])
        assert client.get("/api/migration").json() == {"pending": ["user1"]}

        response = client.post("/api/users/user1/migration")
        assert response.status_code == 200
        assert response.json()["status"] == "migrated"
        assert response.json()["migrated"] == 2
        assert client.get("/api/migration").json() == {"pending": []}
        assert len(client.get("/api/users/user1/articles").json()) == 2

    def test_nothing_to_migrate(self, client):
        response = client.post("/api/users/user2/migration")
        assert response.json()["status"] == "no_legacy_data"

    def test_migration_failure(self, client, store, local_store):
        seed_legacy(local_store, "user1", [legacy_entry(0)])
        store.fail("insert", ARTICLES_TABLE)
        response = client.post("/api/users/user1/migration")
        assert response.status_code == 502
        assert response.json()["detail"]["migrated"] == 0

    def test_local_backend_has_no_migration(self, manager):
        app = FastAPI()
        app.include_router(router)
        app.dependency_overrides[get_user_data] = lambda: manager
        app.dependency_overrides[get_migration] = lambda: None
        with TestClient(app) as c:
            assert c.get("/api/migration").json() == {"pending": []}
            assert c.post("/api/users/user1/migration").status_code == 409
