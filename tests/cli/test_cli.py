"""Tests for the rbxfetch CLI (typer CliRunner over a fake origin)."""

from __future__ import annotations

import importlib
import json

import pytest
from typer.testing import CliRunner

from rbxfetch.cli import app
from rbxfetch.cli.utils import get_settings
from rbxfetch.client import Client, ClientConfig
from rbxfetch.core.settings import CacheMode
from rbxfetch.defaults import VERSION_COMPATIBILITY_URL

runner = CliRunner()

GUID = "version-1a2b3c4d5e6f7a8b"
HISTORY = (
    b"New Studio version-aaa at 3/15/2019 4:56:21 PM, file version: 0, 373, 0, 283457... Done!\n"
    b"New Studio64 version-bbb at 3/16/2019 9:00:00 AM, file version: 0, 374, 0, 1... Done!\n"
    b"New Studio64 version-ccc at 3/17/2019 9:00:00 AM, file version: 0, 375, 0, 2... Done!\n"
)


@pytest.fixture(autouse=True)
def fake_transport(monkeypatch, http_client, cache_dir):
    """Route every CLI-built client through the fake origin."""

    def _make_client(ctx):
        settings = get_settings(ctx)
        config = None
        if settings.config_file is not None:
            config = ClientConfig.from_yaml_file(settings.config_file)
        return Client(config, cache_mode=CacheMode.CUSTOM, cache_location=cache_dir, http_client=http_client)

    monkeypatch.setattr(importlib.import_module("rbxfetch.cli.app"), "make_client", _make_client)
    for key in ("CACHE_MODE", "CACHE_LOCATION", "CONFIG_FILE", "LOG_LEVEL"):
        monkeypatch.delenv(f"RBXFETCH_{key}", raising=False)


class TestRoot:
    def test_version(self):
        result = runner.invoke(app, ["--version"])
        assert result.exit_code == 0
        assert result.output.startswith("rbxfetch ")

    def test_no_args_shows_help(self):
        result = runner.invoke(app, [])
        assert "latest" in result.output

    def test_cache_dir_implies_custom(self, tmp_path):
        result = runner.invoke(app, ["--cache-dir", str(tmp_path), "config", "show"])
        assert result.exit_code == 0
        assert "cache_mode: custom" in result.output


class TestBuildEndpoints:
    def test_latest(self, origin):
        origin.routes["https://setup.rbxcdn.com/versionQTStudio"] = b"version-abc\n"
        result = runner.invoke(app, ["latest"])
        assert result.exit_code == 0
        assert result.output == "version-abc\n"

    def test_latest_error(self, origin):
        origin.routes["https://setup.rbxcdn.com/versionQTStudio"] = (503, b"")
        result = runner.invoke(app, ["latest"])
        assert result.exit_code == 1
        assert "SOURCE" in result.output
        assert "503" in result.output

    def test_live(self, origin):
        origin.routes[f"{VERSION_COMPATIBILITY_URL}&binaryType=WindowsStudio64"] = b'"version-64"'
        origin.routes[f"{VERSION_COMPATIBILITY_URL}&binaryType=WindowsStudio"] = b'"version-32"'
        result = runner.invoke(app, ["live"])
        assert result.exit_code == 0
        assert result.output.splitlines() == ["version-64", "version-32"]

    def test_builds_json_with_limit(self, origin):
        origin.routes["https://setup.rbxcdn.com/DeployHistory.txt"] = HISTORY
        result = runner.invoke(app, ["builds", "--json", "--limit", "2"])
        assert result.exit_code == 0
        rows = json.loads(result.output)
        assert [r["guid"] for r in rows] == ["version-bbb", "version-ccc"]
        assert rows[0]["version"] == "0.374.0.1"

    def test_builds_table(self, origin):
        origin.routes["https://setup.rbxcdn.com/DeployHistory.txt"] = HISTORY
        result = runner.invoke(app, ["builds"])
        assert result.exit_code == 0
        assert "version-aaa" in result.output


class TestFetch:
    def test_fetch_to_stdout(self, origin):
        origin.routes[f"https://setup.rbxcdn.com/{GUID}-API-Dump.json"] = b'{"Classes": []}'
        result = runner.invoke(app, ["fetch", "APIDump", GUID])
        assert result.exit_code == 0
        assert result.stdout_bytes == b'{"Classes": []}'

    def test_fetch_to_file(self, origin, make_zip, tmp_path):
        origin.routes[f"https://setup.rbxcdn.com/{GUID}-RobloxStudio.zip"] = make_zip(
            {"ReflectionMetadata.xml": b"<roblox/>"}
        )
        out = tmp_path / "rmd.xml"
        result = runner.invoke(app, ["fetch", "ReflectionMetadata", GUID, "--output", str(out)])
        assert result.exit_code == 0
        assert out.read_bytes() == b"<roblox/>"

    def test_fetch_unconfigured_method(self):
        result = runner.invoke(app, ["fetch", "Nope", GUID])
        assert result.exit_code == 1
        assert "not configured" in result.output

    def test_fetch_missing_member(self, origin, make_zip):
        origin.routes[f"https://setup.rbxcdn.com/{GUID}-RobloxStudio.zip"] = make_zip({"other.txt": b""})
        result = runner.invoke(app, ["fetch", "ReflectionMetadata", GUID])
        assert result.exit_code == 1
        assert "ReflectionMetadata.xml" in result.output

    def test_fetch_with_config_file(self, tmp_path):
        (tmp_path / f"{GUID}.json").write_bytes(b"local dump")
        config = tmp_path / "client.yaml"
        config.write_text(
            "methods:\n  APIDump: [Local]\n"
            "chains:\n  Local:\n    - filter: file\n"
            f"      params: {{Path: '{tmp_path}/$GUID.json'}}\n"
        )
        result = runner.invoke(app, ["--config", str(config), "fetch", "APIDump", GUID])
        assert result.exit_code == 0
        assert result.stdout_bytes == b"local dump"


class TestConfigCommands:
    def test_dump_yaml(self):
        result = runner.invoke(app, ["config", "dump"])
        assert result.exit_code == 0
        config = ClientConfig.from_yaml(result.output)
        assert config == Client().config()

    def test_dump_json(self):
        result = runner.invoke(app, ["config", "dump", "--format", "json"])
        assert result.exit_code == 0
        assert json.loads(result.output)["methods"]["Live"] == ["Live64", "Live"]

    def test_dump_unknown_format(self):
        result = runner.invoke(app, ["config", "dump", "--format", "xml"])
        assert result.exit_code == 1

    def test_dump_bad_config_file(self, tmp_path):
        config = tmp_path / "bad.yaml"
        config.write_text("chains:\n  X:\n    - filter: tar\n")
        result = runner.invoke(app, ["--config", str(config), "config", "dump"])
        assert result.exit_code == 1
        assert "CONFIG" in result.output

    def test_methods(self):
        result = runner.invoke(app, ["config", "methods"])
        assert result.exit_code == 0
        assert "ExplorerIcons" in result.output
