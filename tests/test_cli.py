"""Tests for the formulary command line interface."""

import json
from pathlib import Path

import pytest
from click.testing import CliRunner

from formulary import cli as cli_module
from formulary.cli import cli
from formulary.driver.medicines_driver import MedicinesDriver
from tests.utils import BASE_URL, FakeRenderer


@pytest.fixture
def runner() -> CliRunner:
    return CliRunner()


@pytest.fixture
def cli_env(tmp_path: Path, monkeypatch) -> dict[str, str]:
    """Environment pointing the CLI at the mock site and a temp dir."""
    monkeypatch.chdir(tmp_path)
    return {
        "BASE_URL": BASE_URL,
        "OUTPUT_DIR": str(tmp_path / "data"),
        "RETRY_DELAY_MS": "0",
        "LOG_LEVEL": "WARNING",
    }


@pytest.fixture
def fake_driver(monkeypatch, site_pages) -> FakeRenderer:
    """Make the CLI build its driver on top of a FakeRenderer."""
    renderer = FakeRenderer(site_pages)

    def build_driver(settings):
        return MedicinesDriver(settings, renderer_factory=renderer.open)

    monkeypatch.setattr(cli_module, "MedicinesDriver", build_driver)
    return renderer


class TestRunCommand:
    def test_prints_summary(self, runner, cli_env, fake_driver, tmp_path):
        result = runner.invoke(cli, ["run", "--limit", "2"], env=cli_env)

        assert result.exit_code == 0, result.output
        summary = json.loads(result.stdout)
        assert summary == {
            "total": 2,
            "succeeded": 2,
            "failed": 0,
            "skipped": 0,
            "metadataPath": str(
                (tmp_path / "data" / "metadata.json").resolve()
            ),
        }

    def test_options_forwarded(self, runner, cli_env, fake_driver):
        result = runner.invoke(
            cli,
            [
                "run",
                "-s",
                "beetlamol",
                "-p",
                "3",
                "--headless",
                "false",
                "--proxy-server",
                "http://proxy.test:3128",
                "--proxy-bypass",
                "localhost",
            ],
            env=cli_env,
        )

        assert result.exit_code == 0, result.output
        assert json.loads(result.stdout)["total"] == 1
        assert fake_driver.open_kwargs["headless"] is False
        proxy = fake_driver.open_kwargs["proxy"]
        assert proxy.server == "http://proxy.test:3128"
        assert proxy.bypass == "localhost"
        assert proxy.username is None

    def test_output_dir_option(self, runner, cli_env, fake_driver, tmp_path):
        out = tmp_path / "elsewhere"

        result = runner.invoke(
            cli,
            ["run", "--slug", "mothrazole", "--output-dir", str(out)],
            env=cli_env,
        )

        assert result.exit_code == 0, result.output
        assert (out / "medicines" / "Mothrazole.json").exists()

    def test_hard_refresh(self, runner, cli_env, fake_driver):
        runner.invoke(cli, ["run"], env=cli_env)

        cached = runner.invoke(cli, ["run"], env=cli_env)
        refreshed = runner.invoke(cli, ["run", "--hard-refresh"], env=cli_env)

        assert json.loads(cached.stdout)["skipped"] == 3
        assert json.loads(refreshed.stdout)["succeeded"] == 3

    def test_invalid_configuration(self, runner, cli_env, fake_driver):
        """A bad environment value shall be reported, not a traceback."""
        env = {**cli_env, "PARALLEL_TABS": "lots"}

        result = runner.invoke(cli, ["run"], env=env)

        assert result.exit_code == 1
        assert "Invalid configuration" in result.output

    def test_negative_limit_rejected(self, runner, cli_env, fake_driver):
        result = runner.invoke(cli, ["run", "--limit", "-1"], env=cli_env)

        assert result.exit_code == 2

    def test_catalog_unavailable(self, runner, cli_env, fake_driver):
        fake_driver.fail(f"{BASE_URL}/medicines/")

        result = runner.invoke(cli, ["run"], env=cli_env)

        assert result.exit_code == 1
        assert "Could not load the catalog" in result.output


class TestCatalogCommand:
    def test_lists_slugs_and_urls(self, runner, cli_env, fake_driver):
        result = runner.invoke(cli, ["catalog", "-l", "2"], env=cli_env)

        assert result.exit_code == 0, result.output
        assert result.stdout.splitlines() == [
            f"beetlamol\t{BASE_URL}/medicines/beetlamol/",
            f"antihistamite\t{BASE_URL}/medicines/antihistamite/",
        ]


class TestIndexCommand:
    def test_empty(self, runner, cli_env):
        result = runner.invoke(cli, ["index"], env=cli_env)

        assert result.exit_code == 0
        assert "No cached medicines" in result.output

    def test_marks_missing_files(
        self, runner, cli_env, fake_driver, tmp_path
    ):
        runner.invoke(cli, ["run"], env=cli_env)
        (tmp_path / "data" / "medicines" / "Beetlamol.json").unlink()

        result = runner.invoke(cli, ["index"], env=cli_env)

        assert result.exit_code == 0, result.output
        lines = result.output.splitlines()
        beetlamol = next(line for line in lines if line.startswith("beetl"))
        assert beetlamol.endswith("[missing]")
        assert "3 entries, 1 missing files" in result.output

    def test_corrupt_index(self, runner, cli_env, tmp_path):
        (tmp_path / "data").mkdir()
        (tmp_path / "data" / "metadata.json").write_text("nope")

        result = runner.invoke(cli, ["index"], env=cli_env)

        assert result.exit_code == 1
        assert "Could not load metadata index" in result.output
