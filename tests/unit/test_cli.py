"""Unit tests for CLI interface."""

import json
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
import yaml
from click.testing import CliRunner

from partner_import.models.data_models import FetchResult, FetchStatus, ImportStatistics
from partner_import.pipeline.main import cli
from partner_import.storage import InMemoryCatalog
from tests.fixtures.sample_feeds import sample_feed


@pytest.fixture
def workspace(tmp_path, catalog):
    """Config file plus catalog snapshot in a temporary directory."""
    catalog_path = tmp_path / "catalog.json"
    catalog.dump(catalog_path)

    config_path = tmp_path / "config.yaml"
    config_path.write_text(yaml.safe_dump({
        "log_level": "WARNING",
        "catalog_path": str(catalog_path),
        "output_directory": str(tmp_path / "out"),
        "partners": [
            {"id": "acme", "name": "Acme", "unique_id": "P7", "import_url": "http://feeds.test/feeds/acme.xml"},
            {"id": "idle", "name": "Idle", "unique_id": "P9", "import_url": "http://feeds.test/feeds/idle.xml",
             "published": False},
        ],
    }))
    return tmp_path


@pytest.fixture
def feed_fetcher():
    with patch("partner_import.pipeline.orchestrator.FeedFetcher") as fetcher_class:
        fetcher_class.return_value.fetch = AsyncMock(return_value=FetchResult(
            url="http://feeds.test/feeds/acme.xml",
            status=FetchStatus.OK,
            content=sample_feed(),
        ))
        yield fetcher_class.return_value


def test_cli_help():
    result = CliRunner().invoke(cli, ["--help"])

    assert result.exit_code == 0
    assert "Partner Import" in result.output
    assert "run" in result.output
    assert "disable" in result.output


def test_run_help():
    result = CliRunner().invoke(cli, ["run", "--help"])

    assert result.exit_code == 0
    assert "--config" in result.output
    assert "--partner" in result.output
    assert "--workers" in result.output
    assert "--timeout" in result.output


def test_cli_version():
    result = CliRunner().invoke(cli, ["--version"])

    assert result.exit_code == 0
    assert "1.0.0" in result.output


def test_run_imports_published_partners(workspace, feed_fetcher):
    result = CliRunner().invoke(cli, ["run", "--config", str(workspace / "config.yaml")])

    assert result.exit_code == 0, result.output
    assert "Import Complete" in result.output
    assert feed_fetcher.fetch.await_count == 1

    report = json.loads((workspace / "out" / "acme_statistics.json").read_text())
    assert report["statistics"]["count"] == 2
    assert not (workspace / "out" / "idle_statistics.json").exists()

    snapshot = InMemoryCatalog.load(workspace / "catalog.json")
    assert snapshot.find_store("P7_RU-77") is not None
    assert snapshot.partner_statistics["acme"].created == 2


def test_run_overrides(workspace, feed_fetcher):
    output = workspace / "reports"
    result = CliRunner().invoke(cli, [
        "run",
        "--config", str(workspace / "config.yaml"),
        "--partner", "acme",
        "--output", str(output),
        "--workers", "3",
        "--log-level", "error",
    ])

    assert result.exit_code == 0, result.output
    assert (output / "acme_statistics.json").exists()


def test_run_unknown_partner(workspace):
    result = CliRunner().invoke(cli, ["run", "--config", str(workspace / "config.yaml"), "--partner", "nope"])

    assert result.exit_code == 1
    assert "Unknown partner" in result.output


def test_run_without_partners(tmp_path):
    result = CliRunner().invoke(cli, ["run", "--config", str(tmp_path / "missing.yaml")])

    assert result.exit_code == 0
    assert "No partners to import" in result.output


def test_run_interrupted(workspace):
    with patch("partner_import.pipeline.main._run_imports", side_effect=KeyboardInterrupt):
        result = CliRunner().invoke(cli, ["run", "--config", str(workspace / "config.yaml")])

    assert result.exit_code == 130


def test_run_mocked_orchestrator_results(workspace):
    statistics = ImportStatistics(date="2026-10-19T08:00:00", regions_count=1, count=7, created=7)
    orchestrator = MagicMock()
    orchestrator.run = AsyncMock(return_value=statistics)

    with patch("partner_import.pipeline.main.ImportOrchestrator") as orchestrator_class:
        orchestrator_class.from_backend.return_value = orchestrator
        result = CliRunner().invoke(cli, ["run", "--config", str(workspace / "config.yaml")])

    assert result.exit_code == 0, result.output
    assert orchestrator.run.await_count == 1
    assert orchestrator.run.await_args.args[0].id == "acme"
    report = json.loads((workspace / "out" / "acme_statistics.json").read_text())
    assert report["statistics"]["count"] == 7


def test_disable(workspace):
    result = CliRunner().invoke(cli, [
        "disable",
        "--config", str(workspace / "config.yaml"),
        "--partner", "acme",
        "--reason", "Contract ended",
    ])

    assert result.exit_code == 0, result.output
    assert "disabled" in result.output

    snapshot = InMemoryCatalog.load(workspace / "catalog.json")
    assert "acme" in snapshot.unpublished_partners
    report = json.loads((workspace / "out" / "acme_statistics.json").read_text())
    assert report["statistics"]["errors"] == ["Contract ended"]


def test_disable_unknown_partner(workspace):
    result = CliRunner().invoke(cli, ["disable", "--config", str(workspace / "config.yaml"), "--partner", "nope"])

    assert result.exit_code == 1
    assert "Unknown partner: nope" in result.output


def test_disable_requires_partner(workspace):
    result = CliRunner().invoke(cli, ["disable", "--config", str(workspace / "config.yaml")])

    assert result.exit_code == 2
