# API endpoints
from . import auth, health

__all__ = ["auth", "health"]
