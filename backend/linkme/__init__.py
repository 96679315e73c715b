"""LinkMe backend package."""
