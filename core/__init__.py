"""Core domain types, event bus, build session and frame pipeline."""
