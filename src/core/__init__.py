"""Configuration, auth, errors and infrastructure clients."""
