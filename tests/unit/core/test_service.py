from __future__ import annotations

import json
from pathlib import Path

import pytest

from helpers.fakes import write_service
from layerkit.core.exceptions import ServiceDefinitionError
from layerkit.core.models import FunctionDefinition, ImageFunction, Layer, LayerReference
from layerkit.core.service import (
    Service,
    find_service_file,
    load_compiled_template,
    load_service,
    save_compiled_template,
    template_path,
)


def test_load_service_parses_functions_and_layers(project: Path) -> None:
    service = load_service(root=project)

    assert service.root == project
    assert service.layers == {"deps": Layer(name="deps", path="layers/deps")}
    users = service.functions["users"]
    assert isinstance(users, FunctionDefinition)
    assert users.layers == (LayerReference("DepsLambdaLayer"),)
    assert users.uses_layer("DepsLambdaLayer")
    assert not service.functions["other"].uses_layer("DepsLambdaLayer")
    assert service.environment == {"STAGE": "test"}
    assert service.layer_config == {"webpack": {"configPath": "./webpack.config.json"}}


def test_short_form_ref_tags_are_understood(tmp_path: Path) -> None:
    (tmp_path / "serverless.yml").write_text(
        """
service: svc
layers:
  shared-deps:
    path: layers/shared
functions:
  api:
    handler: src/api.handler
    layers:
      - !Ref SharedDepsLambdaLayer
      - arn:aws:lambda:us-east-1:123456789012:layer:external:1
""",
        encoding="utf-8",
    )
    service = load_service(root=tmp_path)

    assert service.functions["api"].layers == (LayerReference("SharedDepsLambdaLayer"),)


def test_function_options_and_image_functions(tmp_path: Path) -> None:
    write_service(
        tmp_path,
        {
            "functions": {
                "worker": {
                    "handler": "worker.run",
                    "shouldLayer": False,
                    "entry": ["src/extra/*.js"],
                    "forceInclude": ["pg"],
                    "forceExclude": ["aws-sdk"],
                    "layers": [{"Ref": "DepsLambdaLayer"}],
                },
                "container": {"image": "123.dkr.ecr/app:latest"},
            }
        },
        name="serverless.json",
    )
    service = load_service(tmp_path / "serverless.json")

    worker = service.functions["worker"]
    assert isinstance(worker, FunctionDefinition)
    assert worker.should_layer is False
    assert worker.entry == ["src/extra/*.js"]
    assert worker.force_include == ("pg",)
    assert worker.force_exclude == ("aws-sdk",)
    assert worker.uses_layer("DepsLambdaLayer")
    assert not worker.qualifies_for("DepsLambdaLayer")
    assert isinstance(service.functions["container"], ImageFunction)


def test_package_exclude_and_negated_patterns(tmp_path: Path) -> None:
    service = Service.from_mapping(
        {"package": {"exclude": ["**/*.md"], "patterns": ["!node_modules/aws-sdk/**", "src/**"]}},
        tmp_path,
    )
    assert service.package_exclude == ["**/*.md", "node_modules/aws-sdk/**"]


def test_layer_defaults() -> None:
    layer = Layer.from_declaration("deps", {})
    assert layer.name == "deps"
    assert layer.node_path(Path("/srv")) == Path("/srv/nodejs")


def test_missing_service_file(tmp_path: Path) -> None:
    with pytest.raises(ServiceDefinitionError):
        find_service_file(tmp_path)
    with pytest.raises(ServiceDefinitionError):
        load_service(root=tmp_path)


def test_non_mapping_service_file(tmp_path: Path) -> None:
    (tmp_path / "serverless.yml").write_text("- a\n- b\n", encoding="utf-8")
    with pytest.raises(ServiceDefinitionError, match="must be a mapping"):
        load_service(root=tmp_path)


def test_unparsable_service_file(tmp_path: Path) -> None:
    (tmp_path / "serverless.yml").write_text("functions: [\n", encoding="utf-8")
    with pytest.raises(ServiceDefinitionError, match="Unable to read"):
        load_service(root=tmp_path)


def test_compiled_template_roundtrip(tmp_path: Path) -> None:
    path = template_path(tmp_path)
    assert path == tmp_path / ".serverless" / "cloudformation-template-update-stack.json"

    save_compiled_template(path, {"Resources": {}, "Outputs": {}})
    assert load_compiled_template(path) == {"Resources": {}, "Outputs": {}}


def test_compiled_template_errors(tmp_path: Path) -> None:
    with pytest.raises(ServiceDefinitionError):
        load_compiled_template(tmp_path / "missing.json")
    bad = tmp_path / "list.json"
    bad.write_text(json.dumps([1]), encoding="utf-8")
    with pytest.raises(ServiceDefinitionError, match="JSON object"):
        load_compiled_template(bad)
