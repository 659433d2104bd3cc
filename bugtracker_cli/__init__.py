"""Bug Tracker terminal client"""

__version__ = "1.0.0"
