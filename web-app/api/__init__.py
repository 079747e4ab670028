from fastapi import APIRouter

from api.auth.routes import router as auth_router
from api.user.routes import router as user_router
from api.role.routes import router as role_router, permissions_router
from api.task.routes import router as task_router
from api.public.routes import router as public_router

api_router = APIRouter()

api_router.include_router(auth_router, prefix="/auth", tags=["auth"])
api_router.include_router(user_router, prefix="/admin/users", tags=["admin"])
api_router.include_router(role_router, prefix="/admin/roles", tags=["admin"])
api_router.include_router(permissions_router, prefix="/admin/permissions", tags=["admin"])
api_router.include_router(task_router, prefix="/example/tasks", tags=["tasks"])
api_router.include_router(public_router, prefix="/public", tags=["public"])
