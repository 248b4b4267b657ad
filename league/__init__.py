"""League standings service."""
