import os
import sys
from pathlib import Path

import pytest
import yaml

# Keep the repository free of Python bytecode and __pycache__ artifacts during tests.
sys.dont_write_bytecode = True

TESTS_ROOT = Path(__file__).resolve().parent
REPO_ROOT = TESTS_ROOT.parent
SRC_ROOT = REPO_ROOT / "src"

# Make src/ importable as 'policystack' and tests/ importable for helpers
for p in (SRC_ROOT, TESTS_ROOT):
    if str(p) not in sys.path:
        sys.path.insert(0, str(p))

from policystack.cli._logging import reset_logging_for_tests


@pytest.fixture(autouse=True)
def isolated_env(monkeypatch: pytest.MonkeyPatch):
    """Strip POLICYSTACK_* variables so config loads are deterministic."""
    for key in list(os.environ):
        if key.startswith("POLICYSTACK_"):
            monkeypatch.delenv(key, raising=False)
    yield
    reset_logging_for_tests()


@pytest.fixture
def project_root(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Isolated project with an empty .policystack/config directory."""
    root = tmp_path / "project"
    (root / ".policystack" / "config").mkdir(parents=True)
    monkeypatch.chdir(root)
    return root


@pytest.fixture
def write_config(project_root: Path):
    """Write a YAML file into the project's .policystack/config directory."""

    def _write(data: dict, filename: str = "project.yaml") -> Path:
        path = project_root / ".policystack" / "config" / filename
        path.write_text(yaml.safe_dump(data, sort_keys=False), encoding="utf-8")
        return path

    return _write


@pytest.fixture
def policy_dir(project_root: Path, write_config) -> Path:
    """A project-local policy directory used instead of the bundled corpus."""
    directory = project_root / "policies"
    directory.mkdir()
    write_config({"policies": {"includeBundled": False, "directories": ["policies"]}})
    return directory
