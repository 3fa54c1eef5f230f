import asyncio
import logging

from housing.services.ads import AdService

logger = logging.getLogger(__name__)


async def run_priority_worker(service: AdService, interval: float) -> None:
    logger.info("priority worker started, interval %ss", interval)
    while True:
        try:
            await service.reset_expired_priorities()
        except asyncio.CancelledError:
            raise
        except Exception:
            logger.exception("priority reset failed")
        await asyncio.sleep(interval)


def start_priority_worker(service: AdService, interval: float) -> asyncio.Task:
    return asyncio.create_task(run_priority_worker(service, interval))


async def stop_priority_worker(task: asyncio.Task) -> None:
    task.cancel()
    try:
        await task
    except asyncio.CancelledError:
        pass
    logger.info("priority worker stopped")
