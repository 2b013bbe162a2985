"""
Test suite for the Hospital Booking Service.

Contains unit and integration tests for slot availability, booking,
rescheduling and the appointment status lifecycle.
"""
import os

# Set environment for testing
os.environ["TESTING"] = "1"
