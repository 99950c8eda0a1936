"""Backend item services."""
