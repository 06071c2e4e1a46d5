"""
Delivery Models
===============
Data models for SMS delivery jobs and their outcomes.
"""

import asyncio
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional


class DeliveryStatus(str, Enum):
    PENDING = "pending"
    IN_FLIGHT = "in_flight"
    DELIVERED = "delivered"
    FAILED = "failed"


@dataclass
class DeliveryResult:
    """Result of a single transport send."""
    success: bool
    provider_message_id: Optional[str] = None
    error_code: Optional[str] = None
    error_message: Optional[str] = None
    latency_ms: Optional[float] = None
    raw_response: Optional[Dict[str, Any]] = None


@dataclass
class DeliveryJob:
    """
    A queued SMS for one phone number.

    The queue owns the job until the worker pops it. Whoever enqueued it
    observes `future`, which resolves with a DeliveryResult or fails with
    DeliveryFailed.
    """
    id: str
    phone_number: str
    code: str
    enqueued_at: float
    future: asyncio.Future
    status: DeliveryStatus = DeliveryStatus.PENDING


@dataclass
class QueueStats:
    """Counters for jobs the worker has finished."""
    enqueued: int = 0
    processed: int = 0
    delivered: int = 0
    failed: int = 0

    def as_dict(self) -> Dict[str, int]:
        return {
            "enqueued": self.enqueued,
            "processed": self.processed,
            "delivered": self.delivered,
            "failed": self.failed,
        }
