"""Hedera workflow node - account and transaction operations for workflow batches."""

__version__ = "0.1.0"
