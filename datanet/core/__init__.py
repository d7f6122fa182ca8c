"""Core utilities: error hierarchy."""
