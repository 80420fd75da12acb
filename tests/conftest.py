from __future__ import annotations

import json
import os
import sys
from pathlib import Path

import pytest

# Keep the repository free of Python bytecode and __pycache__ artifacts during tests.
sys.dont_write_bytecode = True

TESTS_ROOT = Path(__file__).resolve().parent
REPO_ROOT = TESTS_ROOT.parent
SRC_ROOT = REPO_ROOT / "src"

# Make src/ importable as 'layerkit'
for p in (SRC_ROOT, TESTS_ROOT):
    if str(p) not in sys.path:
        sys.path.insert(0, str(p))


from helpers.fakes import FakeRunner, write_service  # noqa: E402
from layerkit.core.logs import reset_logging_for_tests  # noqa: E402
from layerkit.data import clear_caches  # noqa: E402


@pytest.fixture(autouse=True)
def _isolate_layerkit_state(monkeypatch: pytest.MonkeyPatch):
    """Drop LAYERKIT_* / LOG_LEVEL from the environment and reset module state."""
    for key in list(os.environ):
        if key.startswith("LAYERKIT_") or key == "LOG_LEVEL":
            monkeypatch.delenv(key, raising=False)
    clear_caches()
    yield
    reset_logging_for_tests()
    clear_caches()


@pytest.fixture
def fake_runner() -> FakeRunner:
    return FakeRunner()


@pytest.fixture
def project(tmp_path: Path) -> Path:
    """A service with one layer ``deps`` consumed by two functions.

    Layout::

        serverless.yml
        package.json / package-lock.json
        webpack.config.json
        layers/deps/nodejs/
        src/api/users.js, src/api/users.test.js
        src/jobs/sync.ts
    """
    root = tmp_path / "svc"
    (root / "layers" / "deps" / "nodejs").mkdir(parents=True)
    (root / "src" / "api").mkdir(parents=True)
    (root / "src" / "jobs").mkdir(parents=True)
    (root / "src" / "api" / "users.js").write_text("module.exports.list = () => {};\n", encoding="utf-8")
    (root / "src" / "api" / "users.test.js").write_text("// test\n", encoding="utf-8")
    (root / "src" / "jobs" / "sync.ts").write_text("export const run = () => {};\n", encoding="utf-8")
    (root / "package.json").write_text(
        json.dumps(
            {
                "name": "svc",
                "dependencies": {"lodash": "^4.17.21", "@aws-sdk/client-s3": "3.400.0"},
                "devDependencies": {"webpack": "^5.88.0", "lodash": "^3.0.0"},
            }
        ),
        encoding="utf-8",
    )
    (root / "package-lock.json").write_text("{}", encoding="utf-8")
    (root / "webpack.config.json").write_text(json.dumps({"mode": "production", "target": "node"}), encoding="utf-8")
    write_service(
        root,
        {
            "service": "svc",
            "provider": {"name": "aws", "environment": {"STAGE": "test"}},
            "custom": {"layerConfig": {"webpack": {"configPath": "./webpack.config.json"}}},
            "layers": {"deps": {"path": "layers/deps"}},
            "functions": {
                "users": {"handler": "src/api/users.list", "layers": [{"Ref": "DepsLambdaLayer"}]},
                "sync": {"handler": "src/jobs/sync.run", "layers": [{"Ref": "DepsLambdaLayer"}]},
                "other": {"handler": "src/api/users.list"},
            },
        },
    )
    return root
