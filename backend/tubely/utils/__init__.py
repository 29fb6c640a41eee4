"""Utility helpers for logging, security tokens and upload validation."""
