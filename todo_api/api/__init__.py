from .routes import router as todos_router
from .users import router as users_router

__all__ = ["todos_router", "users_router"]
