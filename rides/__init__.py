"""
Rides domain package.

Public API:
- Domain model: Ride
"""
from .models import Ride

__all__ = ["Ride"]
