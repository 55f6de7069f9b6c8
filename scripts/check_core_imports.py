#!/usr/bin/env python3
"""
Keep src/shortcut_mcp/core/ transport-agnostic: no MCP SDK imports, and no
absolute imports of the server or transport layers. Core modules reach each
other through relative imports only.
"""

from __future__ import annotations

import ast
import sys
from pathlib import Path
from typing import Iterator

CORE_DIR = Path(__file__).resolve().parent.parent / "src" / "shortcut_mcp" / "core"

FORBIDDEN_PREFIXES = ("mcp", "fastmcp", "shortcut_mcp")


def is_forbidden(module: str) -> bool:
    return any(
        module == prefix or module.startswith(prefix + ".")
        for prefix in FORBIDDEN_PREFIXES
    )


def _absolute_imports(tree: ast.AST) -> Iterator[str]:
    for node in ast.walk(tree):
        if isinstance(node, ast.Import):
            yield from (alias.name for alias in node.names)
        elif isinstance(node, ast.ImportFrom) and not node.level and node.module:
            yield node.module


def scan_file(path: Path) -> list[str]:
    tree = ast.parse(path.read_text())
    return [
        f"{path}: forbidden import '{mod}'"
        for mod in _absolute_imports(tree)
        if is_forbidden(mod)
    ]


def main() -> int:
    violations = [v for f in sorted(CORE_DIR.rglob("*.py")) for v in scan_file(f)]
    for v in violations:
        print(v, file=sys.stderr)
    return 1 if violations else 0


if __name__ == "__main__":
    sys.exit(main())
