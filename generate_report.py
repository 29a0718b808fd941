"""Run the flash-report CLI from a source checkout without installing the package."""
from __future__ import annotations

from flash_report.cli.app import run_cli


def main() -> int:
    return run_cli()


if __name__ == "__main__":
    raise SystemExit(main())
