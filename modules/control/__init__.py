"""Placement orchestration."""
