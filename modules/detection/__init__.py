"""MediaPipe hand tracking and landmark normalization."""
