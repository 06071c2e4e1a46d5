"""
SMS Delivery
============
Single-worker delivery queue and pluggable SMS transports.
"""

from .models import DeliveryJob, DeliveryResult, DeliveryStatus, QueueStats
from .transports import BaseDeliveryTransport, SimulatedTransport
from .twilio import TwilioTransport
from .queue import DeliveryQueue
from .factory import create_transport

__all__ = [
    # Models
    "DeliveryJob",
    "DeliveryResult",
    "DeliveryStatus",
    "QueueStats",
    # Transports
    "BaseDeliveryTransport",
    "SimulatedTransport",
    "TwilioTransport",
    "create_transport",
    # Queue
    "DeliveryQueue",
]
