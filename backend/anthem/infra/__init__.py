"""Infrastructure ports and adapters."""
