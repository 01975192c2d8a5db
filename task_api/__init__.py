"""Task service: filtered task listings, statistics and status-safe mutations."""

__version__ = "1.0.0"
