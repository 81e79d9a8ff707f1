"""Readiness probe across several buckets.

The service is ready as soon as any one configured bucket answers a metadata
request. All buckets are probed concurrently so a single slow or missing
bucket does not delay the answer.
"""

import asyncio
from typing import Sequence

import structlog

from .storage import StorageGateway
from .schemas import ReadinessResult

logger = structlog.get_logger()

DEFAULT_TIMEOUT = 5.0

class ReadinessProber:
    def __init__(self, gateway: StorageGateway, buckets: Sequence[str], timeout: float = DEFAULT_TIMEOUT):
        self.gateway = gateway
        self.buckets = list(buckets)
        self.timeout = timeout

    async def probe(self, bucket: str) -> ReadinessResult:
        """Fetch one bucket's metadata, never raising."""
        try:
            await asyncio.wait_for(
                asyncio.to_thread(self.gateway.bucket_attrs, bucket),
                timeout=self.timeout,
            )
        except asyncio.TimeoutError:
            return ReadinessResult(
                bucket=bucket,
                succeeded=False,
                error=f"timed out after {self.timeout}s",
            )
        except Exception as exc:
            return ReadinessResult(bucket=bucket, succeeded=False, error=str(exc))
        return ReadinessResult(bucket=bucket, succeeded=True)

    async def check(self) -> bool:
        """Return True on the first successful probe, False once all have failed.

        Probes still running when the first success arrives are cancelled.
        Their worker threads cannot be interrupted and finish on their own.
        """
        tasks = [asyncio.create_task(self.probe(bucket)) for bucket in self.buckets]
        try:
            for next_done in asyncio.as_completed(tasks):
                result = await next_done
                if result.succeeded:
                    logger.debug("readiness_probe_succeeded", bucket=result.bucket)
                    return True
                logger.warning("readiness_probe_failed", bucket=result.bucket, error=result.error)
            return False
        finally:
            for task in tasks:
                if not task.done():
                    task.cancel()
