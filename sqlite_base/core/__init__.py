"""Configuration and database connection management."""
