"""Scene rendering and HUD."""
