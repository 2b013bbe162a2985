"""
Hospital Booking Service

A FastAPI-based backend for hospital appointment booking, with slot
availability, double-booking prevention, rescheduling and a role-gated
appointment status lifecycle.
"""

__version__ = "1.0.0"
