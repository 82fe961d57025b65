"""Configuration, data models and error taxonomy."""
