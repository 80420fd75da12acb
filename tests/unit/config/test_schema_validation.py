from __future__ import annotations

import pytest

from layerkit.core.exceptions import ConfigurationError
from layerkit.core.schemas import load_schema, validate_payload, validate_payload_safe
from layerkit.data import get_data_path, node_builtin_modules


def test_bundled_schema_loads() -> None:
    schema = load_schema("layer-config")
    assert schema["title"] == "layerConfig"
    assert get_data_path("schemas", "layer-config.schema.yaml").is_file()


def test_valid_payload_passes() -> None:
    validate_payload({"packager": "yarn", "exportPrefix": "", "webpack": False}, "layer-config")


def test_missing_required_key() -> None:
    with pytest.raises(ConfigurationError, match="exportPrefix"):
        validate_payload({"packager": "npm"}, "layer-config")


def test_safe_validation_collects_every_error() -> None:
    errors = validate_payload_safe({"packager": "pnpm", "exportPrefix": 1, "installLayers": "yes"}, "layer-config")
    assert len(errors) == 3
    assert any(e.startswith("packager:") for e in errors)


def test_node_builtins_table() -> None:
    builtins = node_builtin_modules()
    assert {"fs", "path", "http", "crypto"} <= builtins
    assert "lodash" not in builtins
