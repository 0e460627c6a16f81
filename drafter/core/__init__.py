"""Configuration, logging and request middleware."""
