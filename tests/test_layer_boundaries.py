"""Architecture boundary checks between beanbill layers.

domain is pure: it may import util but nothing that does I/O or owns
process state. runtime and importers never reach up into application/cli.
"""

from __future__ import annotations

import ast
from pathlib import Path

_PACKAGE = Path(__file__).resolve().parents[1] / "beanbill"

_FORBIDDEN: dict[str, tuple[str, ...]] = {
    "domain": ("beanbill.runtime", "beanbill.importers", "beanbill.application", "beanbill.cli"),
    "runtime": ("beanbill.importers", "beanbill.application", "beanbill.cli"),
    "importers": ("beanbill.application", "beanbill.cli"),
    "application": ("beanbill.cli",),
}


def _imports(path: Path) -> list[str]:
    tree = ast.parse(path.read_text(encoding="utf-8"), filename=str(path))
    result: list[str] = []
    for node in ast.walk(tree):
        if isinstance(node, ast.Import):
            for alias in node.names:
                result.append(alias.name)
        elif isinstance(node, ast.ImportFrom):
            base = "." * node.level + (node.module or "")
            result.append(base)
    return result


def test_layers_do_not_import_upward() -> None:
    violations: list[str] = []
    for layer, forbidden in _FORBIDDEN.items():
        layer_dir = _PACKAGE / layer
        assert layer_dir.exists(), f"Missing layer directory: {layer_dir}"
        for path in sorted(layer_dir.rglob("*.py")):
            for mod in _imports(path):
                if any(mod == prefix or mod.startswith(f"{prefix}.") for prefix in forbidden):
                    violations.append(f"{path.relative_to(_PACKAGE)}: {mod}")
    assert not violations, "Layer import violations:\n" + "\n".join(violations)


def test_domain_has_no_relative_imports() -> None:
    violations: list[str] = []
    for path in sorted((_PACKAGE / "domain").rglob("*.py")):
        for mod in _imports(path):
            if mod.startswith("."):
                violations.append(f"{path.name}: {mod}")
    assert not violations, "Relative imports in domain:\n" + "\n".join(violations)
