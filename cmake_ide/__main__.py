"""Entry point for ``python -m cmake_ide``."""
from __future__ import annotations

from .cli import main

raise SystemExit(main())
