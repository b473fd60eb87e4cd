"""HTTP clients for remote services."""
