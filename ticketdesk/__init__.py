"""Ticket tracking service: lifecycle rules, comment authorization and HTTP API."""
