"""Business logic: parsing, persistence."""
