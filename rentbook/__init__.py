"""Rent and member management for a hostel: billing engine plus record services."""

__version__ = "0.1.0"
