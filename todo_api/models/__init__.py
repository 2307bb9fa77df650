from .todo import Todo, TodoCreate, TodoEnvelope, TodoList, TodoUpdate, clean_text
from .user import AUTH_ACCESS, LoginRequest, SignupRequest, TokenEntry, User, UserPublic

__all__ = [
    "AUTH_ACCESS",
    "LoginRequest",
    "SignupRequest",
    "Todo",
    "TodoCreate",
    "TodoEnvelope",
    "TodoList",
    "TodoUpdate",
    "TokenEntry",
    "User",
    "UserPublic",
    "clean_text",
]
