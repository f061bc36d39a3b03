"""Bot status rotation."""
