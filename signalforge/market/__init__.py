"""Market data records."""
