"""
api/routes/v1/tasks.py -- Task CRUD routes, scoped to the caller.

Routes:
  GET    /tasks             -- list the caller's tasks
  POST   /tasks             -- create a task owned by the caller
  GET    /tasks/{task_id}   -- fetch one task
  PUT    /tasks/{task_id}   -- replace title and done
  DELETE /tasks/{task_id}   -- delete

Every route requires a bearer token. Single-task routes answer 404 both for a
missing id and for an id owned by someone else (see auth/ownership.py).
"""

from fastapi import APIRouter, Depends, Request, Response

from api.models import TaskCreate, TaskResponse, TaskUpdate
from auth.dependencies import get_current_identity
from auth.models import Identity
from tasks.service import TaskService

router = APIRouter()


def _service(request: Request) -> TaskService:
    return TaskService(request.app.state.task_store)


@router.get("/tasks", response_model=list[TaskResponse])
def list_tasks(request: Request, identity: Identity = Depends(get_current_identity)) -> list[TaskResponse]:
    """Return every task owned by the caller."""
    return [TaskResponse.from_task(t) for t in _service(request).list_tasks(identity)]


@router.post("/tasks", response_model=TaskResponse, status_code=201)
def create_task(
    request: Request,
    body: TaskCreate,
    identity: Identity = Depends(get_current_identity),
) -> TaskResponse:
    task = _service(request).create_task(identity, body.title, body.done)
    return TaskResponse.from_task(task)


@router.get("/tasks/{task_id}", response_model=TaskResponse)
def get_task(request: Request, task_id: int, identity: Identity = Depends(get_current_identity)) -> TaskResponse:
    return TaskResponse.from_task(_service(request).get_task(identity, task_id))


@router.put("/tasks/{task_id}", response_model=TaskResponse)
def update_task(
    request: Request,
    task_id: int,
    body: TaskUpdate,
    identity: Identity = Depends(get_current_identity),
) -> TaskResponse:
    task = _service(request).update_task(identity, task_id, body.title, body.done)
    return TaskResponse.from_task(task)


@router.delete("/tasks/{task_id}", status_code=204)
def delete_task(request: Request, task_id: int, identity: Identity = Depends(get_current_identity)) -> Response:
    _service(request).delete_task(identity, task_id)
    return Response(status_code=204)
