"""Unit tests for the mock partner feed server."""

import pytest
from fastapi.testclient import TestClient
from lxml import etree

from partner_import.mock_servers import build_sample_feed, create_app, create_feed_app, load_feeds
from tests.fixtures.sample_feeds import feed_product, sample_feed, stock_row


class TestBuildSampleFeed:

    def test_is_well_formed(self):
        root = etree.fromstring(sample_feed())

        assert root.tag == "products"
        assert len(root.findall("product")) == 3

    def test_has_xml_declaration(self):
        assert build_sample_feed([]).startswith(b"<?xml")

    def test_escapes_markup(self):
        data = build_sample_feed([feed_product("SKU-1", "Tom & Jerry <kids>", {"RU-77": [stock_row()]})])

        assert etree.fromstring(data).findtext("product/title") == "Tom & Jerry <kids>"


class TestFeedServer:

    @pytest.fixture
    def client(self):
        return TestClient(create_feed_app({"acme": sample_feed()}))

    def test_health_endpoint(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        assert response.json() == {"status": "healthy", "feeds": ["acme"]}

    def test_serves_feed(self, client):
        response = client.get("/feeds/acme.xml")

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("application/xml")
        assert response.content == sample_feed()

    def test_unknown_partner(self, client):
        assert client.get("/feeds/nobody.xml").status_code == 404

    def test_error_injection(self):
        client = TestClient(create_feed_app({"acme": sample_feed()}, error_rate=1.0, random_seed=1))

        codes = {client.get("/feeds/acme.xml").status_code for _ in range(20)}
        assert codes <= {502, 503}

    def test_error_injection_is_deterministic(self):
        def run():
            client = TestClient(create_feed_app({"acme": sample_feed()}, error_rate=0.5, random_seed=42))
            return [client.get("/feeds/acme.xml").status_code for _ in range(20)]

        assert run() == run()


class TestFactory:

    def test_load_feeds(self, tmp_path):
        (tmp_path / "acme.xml").write_bytes(sample_feed())
        (tmp_path / "notes.txt").write_text("ignored")

        assert load_feeds(tmp_path) == {"acme": sample_feed()}

    def test_load_feeds_missing_directory(self, tmp_path):
        assert load_feeds(tmp_path / "missing") == {}

    def test_create_app_from_env(self, tmp_path, monkeypatch):
        (tmp_path / "acme.xml").write_bytes(sample_feed())
        monkeypatch.setenv("FEED_DIR", str(tmp_path))
        monkeypatch.setenv("ERROR_RATE", "0")

        client = TestClient(create_app())

        assert client.get("/feeds/acme.xml").content == sample_feed()
