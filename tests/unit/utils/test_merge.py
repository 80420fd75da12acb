from __future__ import annotations

from layerkit.core.utils.merge import deep_merge


def test_nested_mappings_merge_recursively() -> None:
    base = {"webpack": {"clean": True, "configPath": "./webpack.config.js"}, "packager": "npm"}
    merged = deep_merge(base, {"webpack": {"clean": False}})

    assert merged == {"webpack": {"clean": False, "configPath": "./webpack.config.js"}, "packager": "npm"}


def test_lists_are_replaced_not_concatenated() -> None:
    merged = deep_merge({"forceInclude": ["a", "b"]}, {"forceInclude": ["c"]})
    assert merged["forceInclude"] == ["c"]


def test_scalar_override_replaces_mapping() -> None:
    """`webpack: false` must survive the merge as a plain false."""
    merged = deep_merge({"webpack": {"clean": True}}, {"webpack": False})
    assert merged == {"webpack": False}


def test_inputs_are_not_mutated() -> None:
    base = {"a": {"b": [1]}}
    override = {"a": {"c": 2}}
    merged = deep_merge(base, override)
    merged["a"]["b"].append(2)

    assert base == {"a": {"b": [1]}}
    assert override == {"a": {"c": 2}}


def test_none_override_returns_copy() -> None:
    base = {"a": 1}
    assert deep_merge(base, None) == base
    assert deep_merge(base, None) is not base
