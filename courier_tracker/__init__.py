"""
Courier tracker backend.

Simulates couriers driving real routes so clients can poll their position.
"""

__version__ = "1.0.0"
