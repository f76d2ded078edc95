"""Configuration, logging, database and dependency wiring for the API."""
