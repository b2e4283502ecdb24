from fastapi import APIRouter

from ...routers import auth as auth_router
from ...routers import organization as organization_router
from ...routers import projects as projects_router
from ...routers import tasks as tasks_router
from ...routers import todo_states as todo_states_router
from ...routers import user_management as user_management_router
from ...routers import user_preferences as user_preferences_router
from ...routers import users as users_router


api_router = APIRouter(prefix="/api/v1")

api_router.include_router(auth_router.router)
api_router.include_router(tasks_router.router)
api_router.include_router(todo_states_router.router)
api_router.include_router(projects_router.router)
api_router.include_router(organization_router.router)
api_router.include_router(user_management_router.router)
api_router.include_router(user_preferences_router.router)
api_router.include_router(users_router.router)


@api_router.get("/", tags=["meta"])  # lightweight meta endpoint
def api_info():
    return {
        "name": "Todo API",
        "version": "v1",
        "docs": "/docs",
        "auth": {
            "register": "/api/v1/auth/register",
            "login": "/api/v1/auth/login",
            "me": "/api/v1/users/me",
        },
        "tasks": "/api/v1/tasks",
        "todostates": "/api/v1/todostates",
        "projects": "/api/v1/projects",
        "organization": "/api/v1/organization",
        "usermanagement": "/api/v1/usermanagement",
        "userpreferences": "/api/v1/userpreferences",
    }
