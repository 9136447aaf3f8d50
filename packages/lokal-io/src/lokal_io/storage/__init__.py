"""Log storage adapters."""
