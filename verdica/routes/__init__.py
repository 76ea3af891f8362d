"""
Routes package for the Verdica API.
"""

from verdica.routes.posts import router as posts_router
from verdica.routes.trials import router as trials_router
from verdica.routes.users import router as users_router

__all__ = ["posts_router", "trials_router", "users_router"]
