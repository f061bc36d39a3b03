"""Admin channel configuration."""
