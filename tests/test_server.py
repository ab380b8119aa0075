"""Tests for the HTTP service."""

import pytest
from starlette.testclient import TestClient

from oas_datasource.config import Settings
from oas_datasource.openapi import OpenAPILoader
from oas_datasource.schema_generation import OpenAPISchemaGenerator, RemoteSchemaGenerator
from oas_datasource.server import build_app, build_schema_generator


@pytest.fixture
def client():
    return TestClient(build_app(Settings(auth_token=None)))


@pytest.fixture
def secured_client():
    return TestClient(build_app(Settings(auth_token="secret")))


class TestRoutes:
    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json() == {"status": "ok"}

    def test_generate_data_source(self, client, pets_with_limit_document):
        response = client.post(
            "/data-sources",
            json={
                "name": "petStore",
                "url": "http://example.com",
                "headers": {"X-Tenant": "acme"},
                "openapi": pets_with_limit_document,
            },
        )

        assert response.status_code == 200
        body = response.json()
        assert body["data_sources"][0]["default_attributes"] == [
            {"key": "url", "value": "http://example.com"},
            {"key": "headers", "value": {"X-Tenant": "acme"}},
        ]
        assert body["resolvers"][0]["field_names"] == ["pets"]
        assert body["resolvers"][0]["attributes"][1]["value"]["fields"][0]["arguments"] == [
            {"name": "limit", "source": "field_argument"}
        ]
        assert body["mappings"] == []

    def test_generate_schema(self, client, pets_document):
        response = client.post("/schema", json={"openapi": pets_document})

        assert response.status_code == 200
        assert "type Query {\n  pets: [PetsItem]\n}" in response.json()["schema"]

    def test_invalid_json(self, client):
        response = client.post("/data-sources", content=b"{not json", headers={"content-type": "application/json"})
        assert response.status_code == 400

    def test_invalid_payload(self, client):
        response = client.post("/data-sources", json={"name": "petStore"})

        assert response.status_code == 422
        assert response.json()["error"] == "Invalid payload"

    def test_generation_failure(self, client):
        response = client.post(
            "/data-sources",
            json={"name": "petStore", "url": "http://example.com", "openapi": {"swagger": "2.0", "paths": {}}},
        )

        assert response.status_code == 422
        assert response.json()["error"] == "Schema generation failed"


class TestRemoteDocuments:
    def test_openapi_url_is_fetched_once(self, monkeypatch, client, pets_with_limit_text):
        calls = []

        async def fake_load_text(self, url):
            calls.append(url)
            return pets_with_limit_text

        monkeypatch.setattr(OpenAPILoader, "load_text", fake_load_text)
        payload = {"name": "petStore", "url": "http://example.com", "openapi_url": "http://specs.example.com/pets.json"}

        first = client.post("/data-sources", json=payload)
        second = client.post("/data-sources", json=payload)

        assert first.status_code == 200
        assert second.json() == first.json()
        assert first.json()["resolvers"][0]["field_names"] == ["pets"]
        assert calls == ["http://specs.example.com/pets.json"]

    def test_schema_from_openapi_url(self, monkeypatch, client, pets_text):
        async def fake_load_text(self, url):
            return pets_text

        monkeypatch.setattr(OpenAPILoader, "load_text", fake_load_text)

        response = client.post("/schema", json={"openapi_url": "http://specs.example.com/pets.json"})

        assert response.status_code == 200
        assert "type Query {\n  pets: [PetsItem]\n}" in response.json()["schema"]

    def test_unreachable_openapi_url(self, monkeypatch, client):
        async def fake_load_text(self, url):
            return None

        monkeypatch.setattr(OpenAPILoader, "load_text", fake_load_text)

        response = client.post(
            "/data-sources",
            json={"name": "petStore", "url": "http://example.com", "openapi_url": "http://specs.example.com/missing"},
        )

        assert response.status_code == 502
        assert response.json() == {"error": "Unable to fetch OpenAPI document"}

    def test_requires_one_document_source(self, client, pets_document):
        neither = client.post("/schema", json={})
        both = client.post(
            "/schema", json={"openapi": pets_document, "openapi_url": "http://specs.example.com/pets.json"}
        )

        assert neither.status_code == 422
        assert both.status_code == 422
        assert both.json()["error"] == "Invalid payload"


class TestAuth:
    def test_rejects_missing_token(self, secured_client, pets_document):
        response = secured_client.post("/schema", json={"openapi": pets_document})
        assert response.status_code == 401

    def test_accepts_bearer_token(self, secured_client, pets_document):
        response = secured_client.post(
            "/schema", json={"openapi": pets_document}, headers={"Authorization": "Bearer secret"}
        )
        assert response.status_code == 200

    def test_health_is_public(self, secured_client):
        assert secured_client.get("/health").status_code == 200


class TestSchemaGeneratorSelection:
    def test_local_by_default(self):
        assert isinstance(build_schema_generator(Settings(schema_service_url=None)), OpenAPISchemaGenerator)

    def test_remote_when_configured(self):
        generator = build_schema_generator(
            Settings(schema_service_url="http://schema.example.com/", schema_service_timeout_seconds=5)
        )

        assert isinstance(generator, RemoteSchemaGenerator)
        assert generator.service_url == "http://schema.example.com"
        assert generator.timeout_seconds == 5
