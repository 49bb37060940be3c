"""Pytest configuration.

Ensures the package under ``src/`` can be imported without installing it.
"""

import sys
from pathlib import Path


def _prepend_sys_path(path: Path) -> None:
    resolved = str(path.resolve())
    if resolved not in sys.path:
        sys.path.insert(0, resolved)


REPO_ROOT = Path(__file__).resolve().parent

# Allow `import afas_gateway` from a plain checkout.
_prepend_sys_path(REPO_ROOT / "src")
