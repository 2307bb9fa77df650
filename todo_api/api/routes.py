"""API routes for todo management."""

from fastapi import APIRouter, Depends, HTTPException, status

from .dependencies import get_todo_service
from ..models.todo import Todo, TodoCreate, TodoEnvelope, TodoList, TodoUpdate
from ..services.todo_service import TodoService

router = APIRouter(tags=["todos"])

TODO_NOT_FOUND = "Todo not found"


def _not_found() -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=TODO_NOT_FOUND)


@router.post("/todos", response_model=Todo, response_model_exclude_none=True)
async def create_todo(
    todo_data: TodoCreate,
    service: TodoService = Depends(get_todo_service),
) -> Todo:
    """Create a new todo item."""
    try:
        return await service.create_todo(todo_data.text)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc


@router.get("/todos", response_model=TodoList, response_model_exclude_none=True)
async def get_todos(service: TodoService = Depends(get_todo_service)) -> TodoList:
    return TodoList(todos=await service.get_todos())


@router.get("/todos/{todo_id}", response_model=TodoEnvelope, response_model_exclude_none=True)
async def get_todo(
    todo_id: str,
    service: TodoService = Depends(get_todo_service),
) -> TodoEnvelope:
    todo = await service.get_todo_by_id(todo_id)
    if not todo:
        raise _not_found()
    return TodoEnvelope(todo=todo)


@router.delete("/todos/{todo_id}", response_model=TodoEnvelope, response_model_exclude_none=True)
async def delete_todo(
    todo_id: str,
    service: TodoService = Depends(get_todo_service),
) -> TodoEnvelope:
    """Delete a todo item and return it as it was before removal."""
    todo = await service.delete_todo(todo_id)
    if not todo:
        raise _not_found()
    return TodoEnvelope(todo=todo)


@router.patch("/todos/{todo_id}", response_model=TodoEnvelope, response_model_exclude_none=True)
async def update_todo(
    todo_id: str,
    todo_data: TodoUpdate,
    service: TodoService = Depends(get_todo_service),
) -> TodoEnvelope:
    """Update text and/or completion state of a todo item."""
    try:
        todo = await service.update_todo(todo_id, todo_data)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    if not todo:
        raise _not_found()
    return TodoEnvelope(todo=todo)
