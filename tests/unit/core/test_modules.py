from __future__ import annotations

import asyncio
import json
from pathlib import Path

import pytest

from helpers.fakes import FakeCompiler, make_stats
from layerkit.core.bundler import StatsModule
from layerkit.core.config import WebpackOptions
from layerkit.core.exceptions import CompilationError, ManifestError
from layerkit.core.manifest import PackageManifest, lockfile_for
from layerkit.core.models import FunctionDefinition, LayerReference
from layerkit.core.modules import (
    ExternalModuleAnalyzer,
    apply_overrides,
    external_module_name,
    external_modules_from_stats,
    is_builtin_module,
    is_external_module,
    pin_versions,
)
from layerkit.core.service import load_service

REF = "DepsLambdaLayer"


@pytest.mark.parametrize(
    "identifier, expected",
    [
        ('external "lodash"', "lodash"),
        ('external "lodash/fp"', "lodash"),
        ('external "@aws-sdk/client-s3"', "@aws-sdk/client-s3"),
        ('external "@aws-sdk/client-s3/dist/cjs"', "@aws-sdk/client-s3"),
        ('external commonjs "pg"', "pg"),
        ('external node-commonjs "fs"', "fs"),
        ("./src/handler.js", None),
        ("external lodash", None),
    ],
)
def test_external_module_name(identifier: str, expected) -> None:
    assert external_module_name(identifier) == expected


@pytest.mark.parametrize("name", ["fs", "fs/promises", "path", "node:crypto", "child_process"])
def test_builtins(name: str) -> None:
    assert is_builtin_module(name)


@pytest.mark.parametrize("name", ["lodash", "@aws-sdk/client-s3", "fsevents"])
def test_not_builtins(name: str) -> None:
    assert not is_builtin_module(name)


def test_is_external_module_excludes_builtins_and_sources() -> None:
    assert is_external_module(StatsModule('external "knex"'))
    assert not is_external_module(StatsModule('external "crypto"'))
    assert not is_external_module(StatsModule("./node_modules/knex/index.js"))


def test_externals_are_collected_across_chunks_without_duplicates() -> None:
    stats = make_stats(
        ['external "lodash"', "./src/a.js", 'external "fs"'],
        ['external "lodash/fp"', 'external "@scope/pkg/sub"'],
    )
    assert external_modules_from_stats(stats) == {"lodash", "@scope/pkg"}


def test_overrides_exclusion_wins() -> None:
    result = apply_overrides({"lodash", "aws-sdk"}, ["pg", "aws-sdk"], ["aws-sdk"])
    assert result == {"lodash", "pg"}


class TestManifest:
    def test_production_version_wins_over_dev(self, project: Path) -> None:
        manifest = PackageManifest.load(project)

        assert manifest.version_of("lodash") == "^4.17.21"
        assert manifest.version_of("webpack") == "^5.88.0"
        assert manifest.version_of("left-pad") is None
        assert pin_versions(["lodash", "left-pad", "lodash"], manifest) == ["left-pad", "lodash@^4.17.21"]

    def test_empty_version_counts_as_missing(self, tmp_path: Path) -> None:
        (tmp_path / "package.json").write_text(
            json.dumps({"dependencies": {"a": ""}, "devDependencies": {"a": "1.0.0"}}),
            encoding="utf-8",
        )
        assert PackageManifest.load(tmp_path).specifier("a") == "a@1.0.0"

    def test_missing_manifest(self, tmp_path: Path) -> None:
        with pytest.raises(ManifestError):
            PackageManifest.load(tmp_path)

    def test_lockfiles(self) -> None:
        assert lockfile_for("npm") == "package-lock.json"
        assert lockfile_for("yarn") == "yarn.lock"
        assert lockfile_for("pnpm") is None


class TestAnalyzer:
    def _analyzer(self, project: Path, compiler: FakeCompiler, **options) -> ExternalModuleAnalyzer:
        service = load_service(root=project)
        webpack = WebpackOptions(config_path="./webpack.config.json", **options)
        return ExternalModuleAnalyzer(service, webpack, compiler=compiler)

    def test_analyze_pins_discovered_and_forced_modules(self, project: Path) -> None:
        compiler = FakeCompiler(make_stats(['external "lodash/fp"', 'external "path"', 'external "@aws-sdk/client-s3"']))
        analyzer = self._analyzer(project, compiler, force_include=["pg"], force_exclude=["@aws-sdk/client-s3"])

        specifiers = asyncio.run(analyzer.analyze(REF))

        assert specifiers == ["lodash@^4.17.21", "pg"]
        assert len(compiler.calls) == 1

    def test_bundler_config_carries_entries_and_stats(self, project: Path) -> None:
        compiler = FakeCompiler(make_stats([]))
        analyzer = self._analyzer(project, compiler)

        asyncio.run(analyzer.analyze(REF))

        config_file = compiler.calls[0]
        assert config_file == project / ".serverless" / "layerkit" / REF / "webpack.layer.config.json"
        document = json.loads(config_file.read_text(encoding="utf-8"))
        assert document["mode"] == "production"
        assert set(document["entry"]) == {"src/api/users", "src/jobs/sync"}
        assert document["stats"]["chunkModules"] is True

    def test_function_level_force_lists_are_added(self, project: Path) -> None:
        service = load_service(root=project)
        service.functions["users"] = FunctionDefinition(
            name="users",
            handler="src/api/users.list",
            layers=(LayerReference(REF),),
            force_include=("knex",),
            force_exclude=("lodash",),
        )
        analyzer = ExternalModuleAnalyzer(
            service,
            WebpackOptions(config_path="./webpack.config.json", force_exclude=["aws-sdk"]),
            compiler=FakeCompiler(make_stats(['external "lodash"'])),
        )

        assert analyzer.force_lists(REF) == (["knex"], ["aws-sdk", "lodash"])
        assert asyncio.run(analyzer.analyze(REF)) == ["knex"]

    def test_discovery_off_skips_the_build(self, project: Path) -> None:
        compiler = FakeCompiler(make_stats(['external "lodash"']))
        analyzer = self._analyzer(project, compiler, discover_modules=False, force_include=["lodash"])

        assert asyncio.run(analyzer.analyze(REF)) == ["lodash@^4.17.21"]
        assert compiler.calls == []

    def test_no_entries_skips_the_build(self, project: Path) -> None:
        compiler = FakeCompiler(make_stats(['external "lodash"']))
        analyzer = self._analyzer(project, compiler)

        assert asyncio.run(analyzer.analyze("UnusedLambdaLayer")) == []
        assert compiler.calls == []

    def test_compilation_errors_propagate(self, project: Path, caplog: pytest.LogCaptureFixture) -> None:
        compiler = FakeCompiler(error=CompilationError("Bundler reported 1 error(s)", errors=["Module not found"]))
        analyzer = self._analyzer(project, compiler)

        with pytest.raises(CompilationError) as exc_info:
            asyncio.run(analyzer.analyze(REF))

        assert exc_info.value.context["errors"] == ["Module not found"]
        assert "Unable to analyze dependencies of DepsLambdaLayer" in caplog.text

    def test_unexpected_failures_are_logged_and_propagate(self, project: Path, caplog: pytest.LogCaptureFixture) -> None:
        failure = OSError(13, "Permission denied", "stats.json")
        analyzer = self._analyzer(project, FakeCompiler(error=failure))

        with pytest.raises(OSError) as exc_info:
            asyncio.run(analyzer.analyze(REF))

        assert exc_info.value is failure
        assert "Unable to analyze dependencies of DepsLambdaLayer" in caplog.text
        assert "Permission denied" in caplog.text

    def test_missing_manifest_fails_before_building(self, project: Path) -> None:
        (project / "package.json").unlink()
        compiler = FakeCompiler(make_stats([]))
        analyzer = self._analyzer(project, compiler)

        with pytest.raises(ManifestError):
            asyncio.run(analyzer.analyze(REF))
        assert compiler.calls == []
