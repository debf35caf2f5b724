"""
Core services for order booking and position queries.
"""

from .booking_query import BookingQueryService
from .order_processor import OrderProcessor

__all__ = [
    "BookingQueryService",
    "OrderProcessor",
]
