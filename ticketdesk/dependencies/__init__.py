"""FastAPI dependencies for identity and service lookup."""
