"""Collaborators and placement engine components."""
