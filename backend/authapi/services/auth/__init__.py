"""Authentication use cases: registration, login, logout and refresh rotation."""
