"""Legacy wrapper for the exprcheck scale-check CLI."""

from __future__ import annotations

import warnings

from exprcheck.cli import scale_check_main


def main() -> int:
    return scale_check_main()


if __name__ == "__main__":
    warnings.warn(
        "scripts/scaling_check.py is deprecated; use the canonical 'exprcheck scale-check' entrypoint.",
        DeprecationWarning,
        stacklevel=1,
    )
    raise SystemExit(main())
