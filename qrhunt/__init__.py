"""Analytics and winner drawing services for the QR code scavenger hunt."""

__version__ = "0.1.0"
