"""
API Routers
Separate router modules for each domain.
"""

from app.routers import features

__all__ = ["features"]
