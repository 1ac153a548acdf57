"""Worker that periodically advances stored election statuses."""

from __future__ import annotations

import asyncio
import logging

from clubhub.core.config import get_settings
from clubhub.core.logging import configure_logging
from clubhub.db.session import SessionLocal
from clubhub.services.elections import ElectionService
from clubhub.workers.observability import configure_worker, worker_span

LOGGER = logging.getLogger(__name__)


async def run_once(service: ElectionService) -> int:
    """Execute a single sweep and return how many elections moved."""

    with worker_span("election_status.sweep") as span:
        advanced = service.advance_statuses()
        span.set_attribute("elections.advanced", advanced)
        LOGGER.info("election status sweep complete", extra={"advanced": advanced})
        return advanced


async def run() -> None:
    """Continuously sweep election statuses at the configured cadence."""

    settings = get_settings()
    configure_worker("election-status-worker")
    interval = max(5, settings.election_status_sweep_interval_seconds)
    LOGGER.info("starting election status worker", extra={"interval_seconds": interval})
    while True:
        with SessionLocal() as session:
            await run_once(ElectionService(session))
        await asyncio.sleep(interval)


def main() -> None:
    configure_logging()
    try:
        asyncio.run(run())
    except KeyboardInterrupt:  # pragma: no cover - manual shutdown
        LOGGER.info("election status worker stopped")


if __name__ == "__main__":
    main()
