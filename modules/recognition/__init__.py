"""Pinch gesture recognition."""
