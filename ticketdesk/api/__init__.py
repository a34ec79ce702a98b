"""HTTP boundary for the ticket service."""
