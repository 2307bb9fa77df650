from .todo_service import TodoService
from .user_service import UserService

__all__ = ["TodoService", "UserService"]
