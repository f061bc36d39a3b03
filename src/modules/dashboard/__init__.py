"""Dashboard settings, publishing, and live updates."""
