from __future__ import annotations

import asyncio
import logging
from pathlib import Path

import pytest

from helpers.fakes import FakeCompiler, FakeRunner, make_stats
from layerkit.core.exceptions import ConfigurationError
from layerkit.core.logs import VERBOSE
from layerkit.core.manager import BEFORE_DEPLOY, PACKAGE_INITIALIZE, LayerManager
from layerkit.core.service import load_service


def _template() -> dict:
    return {
        "Resources": {
            "UsersLambdaFunction": {
                "Type": "AWS::Lambda::Function",
                "Properties": {"Layers": [{"Ref": "DepsLambdaLayer"}]},
            }
        },
        "Outputs": {"DepsLambdaLayerQualifiedArn": {"Value": {"Ref": "DepsLambdaLayerV1"}}},
    }


def test_hooks_are_bound_to_lifecycle_events(project: Path) -> None:
    manager = LayerManager(load_service(root=project), environ={})
    assert set(manager.hooks) == {PACKAGE_INITIALIZE, BEFORE_DEPLOY}


def test_package_initialize_installs_layers(project: Path, fake_runner: FakeRunner) -> None:
    manager = LayerManager(
        load_service(root=project),
        environ={},
        compiler=FakeCompiler(make_stats(['external "lodash"'])),
        runner=fake_runner,
    )

    report = asyncio.run(manager.run_hook(PACKAGE_INITIALIZE))

    assert report.to_dict()["installedLayers"] == ["deps"]
    assert fake_runner.calls[0]["argv"] == ["npm", "install", "lodash@^4.17.21"]


def test_before_deploy_transforms_the_template(project: Path) -> None:
    service = load_service(root=project)
    service.compiled_template = _template()
    manager = LayerManager(service, environ={})

    result = asyncio.run(manager.run_hook(BEFORE_DEPLOY))

    layers = service.compiled_template["Resources"]["UsersLambdaFunction"]["Properties"]["Layers"]
    assert layers == [{"Ref": "DepsLambdaLayerV1"}]
    assert len(result.exported_layers) == 1


def test_transform_without_template_is_a_noop(project: Path, caplog: pytest.LogCaptureFixture) -> None:
    manager = LayerManager(load_service(root=project), environ={})

    with caplog.at_level(logging.INFO, logger="layerkit"):
        result = asyncio.run(manager.transform_layer_resources())

    assert result.exported_layers == [] and result.upgraded_layer_references == []
    assert "template unavailable" in caplog.text


def test_unknown_hook(project: Path) -> None:
    manager = LayerManager(load_service(root=project), environ={})
    with pytest.raises(KeyError):
        asyncio.run(manager.run_hook("after:deploy:deploy"))


def test_log_level_from_options_and_environment(project: Path) -> None:
    service = load_service(root=project)

    LayerManager(service, {"verbose": True}, environ={})
    assert logging.getLogger("layerkit").level == VERBOSE

    LayerManager(service, environ={"LOG_LEVEL": "debug"})
    assert logging.getLogger("layerkit").level == logging.DEBUG


def test_environment_overrides_reach_the_config(project: Path) -> None:
    manager = LayerManager(load_service(root=project), environ={"LAYERKIT_layerConfig__packager": "yarn"})
    assert manager.config.packager == "yarn"


def test_invalid_service_config_fails_at_init(project: Path) -> None:
    service = load_service(root=project)
    service.custom["layerConfig"] = {"packager": "bower"}
    with pytest.raises(ConfigurationError):
        LayerManager(service, environ={})
