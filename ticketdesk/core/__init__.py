"""Configuration and logging for the ticketdesk service."""
