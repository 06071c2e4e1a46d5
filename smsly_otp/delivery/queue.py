"""
Delivery Queue
==============
Single-worker FIFO queue serializing SMS delivery.

At most one job is in flight at a time and jobs complete in enqueue order.
Enqueueing never blocks; the worker task suspends only on the transport.
"""

import asyncio
import time
import uuid
from collections import deque
from typing import Callable, Deque, List, Optional
import structlog

from ..errors import DeliveryFailed, QueueClosedError
from ..validation import mask_phone
from .models import DeliveryJob, DeliveryResult, DeliveryStatus, QueueStats
from .transports import BaseDeliveryTransport

logger = structlog.get_logger(__name__)


class DeliveryQueue:
    """
    FIFO of pending delivery jobs drained by one long-lived asyncio task.

    Jobs are never retried or cancelled once enqueued; a failed job rejects
    its future with DeliveryFailed and the worker moves on.
    """

    def __init__(
        self,
        transport: BaseDeliveryTransport,
        spacing_seconds: float = 0.5,
        clock: Callable[[], float] = time.time,
    ):
        """
        Args:
            transport: Backend that sends one SMS per call
            spacing_seconds: Pause after each job before the next one starts
            clock: Time source for `enqueued_at`
        """
        self.transport = transport
        self.spacing_seconds = spacing_seconds
        self._clock = clock
        self._pending: Deque[DeliveryJob] = deque()
        self._in_flight: Optional[DeliveryJob] = None
        self._worker: Optional[asyncio.Task] = None
        self._wakeup: Optional[asyncio.Event] = None
        self._idle: Optional[asyncio.Event] = None
        self._closed = False
        self.stats = QueueStats()

    def __len__(self) -> int:
        return len(self._pending)

    @property
    def pending(self) -> List[DeliveryJob]:
        """Snapshot of jobs not yet picked up by the worker, head first."""
        return list(self._pending)

    @property
    def in_flight(self) -> Optional[DeliveryJob]:
        return self._in_flight

    @property
    def is_running(self) -> bool:
        return self._worker is not None and not self._worker.done()

    def start(self) -> None:
        """Start the worker task on the running event loop."""
        if self.is_running:
            return
        loop = asyncio.get_running_loop()
        self._closed = False
        self._wakeup = asyncio.Event()
        self._idle = asyncio.Event()
        if self._pending:
            self._wakeup.set()
        else:
            self._idle.set()
        self._worker = loop.create_task(self._run(), name="otp-delivery-worker")
        logger.info("Delivery worker started", transport=self.transport.name)

    def enqueue(self, phone_number: str, code: str) -> int:
        """
        Queue an SMS for delivery.

        Returns:
            1-based position of the new job among pending jobs
        """
        self.enqueue_job(phone_number, code)
        return len(self._pending)

    def enqueue_job(self, phone_number: str, code: str) -> DeliveryJob:
        """Queue an SMS for delivery and return the job with its completion future."""
        if self._closed:
            raise QueueClosedError("Delivery queue is stopped")
        self.start()

        job = DeliveryJob(
            id=uuid.uuid4().hex,
            phone_number=phone_number,
            code=code,
            enqueued_at=self._clock(),
            future=asyncio.get_running_loop().create_future(),
        )
        self._pending.append(job)
        self.stats.enqueued += 1
        self._idle.clear()
        self._wakeup.set()

        logger.debug(
            "Delivery job queued",
            job_id=job.id,
            phone=mask_phone(phone_number),
            position=len(self._pending),
        )
        return job

    def get_queue_position(self, phone_number: str) -> int:
        """
        1-based rank of the most recent pending job for a number.

        Returns:
            Position, or 0 if the number has no pending job
        """
        position = 0
        for index, job in enumerate(self._pending, start=1):
            if job.phone_number == phone_number:
                position = index
        return position

    async def join(self) -> None:
        """Wait until every queued job has been processed."""
        if self._idle is None:
            return
        await self._idle.wait()

    async def stop(self, drain: bool = True) -> None:
        """
        Stop the worker.

        Args:
            drain: Process remaining jobs first. Otherwise they are rejected
                with DeliveryFailed.
        """
        if drain and self.is_running:
            await self.join()

        self._closed = True
        if self._worker is not None:
            self._worker.cancel()
            try:
                await self._worker
            except asyncio.CancelledError:
                pass
            self._worker = None

        rejected = 0
        while self._pending:
            job = self._pending.popleft()
            self._finish(job, DeliveryResult(success=False, error_message="Delivery queue stopped"))
            rejected += 1

        logger.info("Delivery worker stopped", rejected=rejected, **self.stats.as_dict())

    async def _run(self) -> None:
        while True:
            if not self._pending:
                self._idle.set()
                self._wakeup.clear()
                await self._wakeup.wait()
                continue

            job = self._pending.popleft()
            await self._process(job)

            if self.spacing_seconds > 0:
                await asyncio.sleep(self.spacing_seconds)

    async def _process(self, job: DeliveryJob) -> None:
        self._in_flight = job
        job.status = DeliveryStatus.IN_FLIGHT
        try:
            result = await self.transport.deliver(job.phone_number, job.code)
        except asyncio.CancelledError:
            self._finish(job, DeliveryResult(success=False, error_message="Delivery cancelled"))
            raise
        except Exception as e:
            logger.error(
                "Delivery transport raised",
                job_id=job.id,
                transport=self.transport.name,
                error=str(e),
                exc_info=True,
            )
            result = DeliveryResult(
                success=False,
                error_code="TRANSPORT_EXCEPTION",
                error_message=str(e),
            )
        finally:
            self._in_flight = None

        self.stats.processed += 1
        self._finish(job, result)

    def _finish(self, job: DeliveryJob, result: DeliveryResult) -> None:
        if result.success:
            job.status = DeliveryStatus.DELIVERED
            self.stats.delivered += 1
            if not job.future.done():
                job.future.set_result(result)
            return

        job.status = DeliveryStatus.FAILED
        self.stats.failed += 1
        if not job.future.done():
            job.future.set_exception(DeliveryFailed(
                result.error_message or "SMS delivery failed",
                phone_number=job.phone_number,
                job_id=job.id,
            ))
