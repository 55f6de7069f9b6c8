import importlib.util
from pathlib import Path

import pytest

SCRIPT = Path(__file__).resolve().parent.parent / "scripts" / "check_core_imports.py"


@pytest.fixture(scope="module")
def guard():
    spec = importlib.util.spec_from_file_location("check_core_imports", SCRIPT)
    module = importlib.util.module_from_spec(spec)
    assert spec.loader is not None  # for mypy
    spec.loader.exec_module(module)
    return module


def test_core_import_guard_passes(guard):
    assert guard.main() == 0, "core import guard failed"


def test_core_import_guard_flags_mcp_imports(guard, tmp_path):
    bad = tmp_path / "bad.py"
    bad.write_text(
        "from mcp.server.fastmcp import FastMCP\n"
        "import shortcut_mcp.transports.stdio\n"
        "from .client import ShortcutClient\n"
    )

    errors = guard.scan_file(bad)

    assert len(errors) == 2
    assert "forbidden import 'mcp.server.fastmcp'" in errors[0]
    assert guard.is_forbidden("shortcut_mcp.core.client")
    assert not guard.is_forbidden("mcpx")
