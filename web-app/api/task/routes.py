from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from core.permissions import Permissions
from sso_auth.dependencies import require_permission

router = APIRouter()


class TaskCreate(BaseModel):
    title: str = Field(min_length=1, max_length=200)


# Static sample data; tasks are not persisted yet
SAMPLE_TASKS = [
    {"id": "1", "title": "Example Task 1", "status": "pending"},
    {"id": "2", "title": "Example Task 2", "status": "completed"},
]


@router.get("")
async def list_tasks(user_id: str = Depends(require_permission(Permissions.TASKS_READ))):
    """List tasks. Requires tasks:read."""
    return {"tasks": SAMPLE_TASKS}


@router.post("", status_code=201)
async def create_task(
    data: TaskCreate,
    user_id: str = Depends(require_permission(Permissions.TASKS_WRITE)),
):
    """Create a task. Requires tasks:write."""
    return {"task": {"id": str(len(SAMPLE_TASKS) + 1), "title": data.title, "status": "pending"}}
