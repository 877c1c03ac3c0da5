"""Protocol adapters."""
