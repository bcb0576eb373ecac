"""Token-based authentication service: registration, login and JWT-guarded routes."""

__version__ = "0.1.0"
