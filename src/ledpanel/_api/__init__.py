"""Internal REST endpoint modules."""
