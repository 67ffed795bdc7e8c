"""Check that the image model and the catalog are reachable with the current credentials."""

from __future__ import annotations

import asyncio
from typing import Sequence

from crosscart.integrations import IntegrationCheckResult, run_all_checks
from crosscart.monitoring.logging import configure_logging


def _format_result(result: IntegrationCheckResult) -> str:
    status = "✅" if result.success else "❌"
    return f"{status} {result.name}: {result.message}"


def report(results: Sequence[IntegrationCheckResult]) -> int:
    """Print one line per check and return the process exit code."""

    for result in results:
        print(_format_result(result))
    failed = sum(1 for result in results if not result.success)
    if failed:
        print(f"{failed} of {len(results)} checks failed.")
    return 1 if failed else 0


def main() -> int:
    configure_logging(level="WARNING")
    return report(asyncio.run(run_all_checks()))


if __name__ == "__main__":
    raise SystemExit(main())
