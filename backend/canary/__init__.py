"""Canary Tracker - device telemetry ingestion and registration service."""
__version__ = "1.0.0"
