from __future__ import annotations

import re
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]

_EXCLUDED_PARTS = {"tests", "docs", "__pycache__", ".venv", "venv", "build"}
_PRINT_CALL = re.compile(r"^\s*print\(")


def _runtime_files() -> list[Path]:
    return [p for p in REPO_ROOT.rglob("*.py") if not (_EXCLUDED_PARTS & set(p.relative_to(REPO_ROOT).parts))]


def test_no_stubs_or_todos_in_runtime_code() -> None:
    """
    Runtime code carries no placeholder markers.
    """
    forbidden_substrings = ["TODO", "FIXME", "XXX", "not yet implemented"]

    hits: list[str] = []
    for p in _runtime_files():
        text = p.read_text(encoding="utf-8", errors="replace")
        for i, line in enumerate(text.splitlines(), start=1):
            for s in forbidden_substrings:
                if s in line:
                    hits.append(f"{p.relative_to(REPO_ROOT)}:{i}:{line.strip()}")

    assert not hits, "Found stub/TODO markers in runtime code:\n" + "\n".join(hits)


def test_runtime_code_logs_instead_of_printing() -> None:
    """
    Relay output goes through observability.log_event so it stays machine-readable.
    """
    hits: list[str] = []
    for p in _runtime_files():
        text = p.read_text(encoding="utf-8", errors="replace")
        for i, line in enumerate(text.splitlines(), start=1):
            if _PRINT_CALL.match(line):
                hits.append(f"{p.relative_to(REPO_ROOT)}:{i}:{line.strip()}")

    assert not hits, "Found print() calls in runtime code:\n" + "\n".join(hits)
