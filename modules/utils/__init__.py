"""Configuration, logging and performance monitoring."""
