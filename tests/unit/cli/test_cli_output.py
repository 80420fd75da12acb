from __future__ import annotations

import json

import pytest

from layerkit.cli import OutputFormatter, format_json
from layerkit.core.exceptions import InstallError


def test_success_json_mode(capsys: pytest.CaptureFixture[str]) -> None:
    OutputFormatter(json_mode=True).success({"installedLayers": ["deps"]}, "Installed 1 layer(s)")
    assert json.loads(capsys.readouterr().out) == {"status": "success", "installedLayers": ["deps"]}


def test_success_text_mode(capsys: pytest.CaptureFixture[str]) -> None:
    OutputFormatter().success({"installedLayers": ["deps"]}, "Installed 1 layer(s)")
    assert capsys.readouterr().out == "Installed 1 layer(s)\n"


def test_error_json_carries_context(capsys: pytest.CaptureFixture[str]) -> None:
    err = InstallError("install failed", layer="deps", command="npm install", returncode=1)
    OutputFormatter(json_mode=True).error(err)

    payload = json.loads(capsys.readouterr().err)
    assert payload["error"] == "InstallError"
    assert payload["context"] == {"layer": "deps", "command": "npm install", "returncode": 1}


def test_error_text_mode(capsys: pytest.CaptureFixture[str]) -> None:
    OutputFormatter().error(ValueError("bad"))
    assert capsys.readouterr().err == "Error: bad\n"


def test_text_kv_is_silent_in_json_mode(capsys: pytest.CaptureFixture[str]) -> None:
    OutputFormatter(json_mode=True).text_kv("a", 1)
    OutputFormatter().text_kv("a", 1)
    assert capsys.readouterr().out == "  a: 1\n"


def test_format_json_handles_paths() -> None:
    from pathlib import Path

    assert format_json({"p": Path("/x")}) == '{\n  "p": "/x"\n}'
