from fastapi import APIRouter

from ..routers import auth as auth_router
from ..routers import notifications as notifications_router
from ..routers import tasks as tasks_router


api_router = APIRouter(prefix="/api")

# Endpoints are available at /api/signup, /api/tasks, /api/send-notification, ...
api_router.include_router(auth_router.router)
api_router.include_router(tasks_router.router)
api_router.include_router(notifications_router.router)


@api_router.get("", tags=["auth"])  # lightweight meta endpoint
def api_info():
    return {
        "name": "Workaholic API",
        "docs": "/docs",
        "auth": {
            "signup": "/api/signup",
            "login": "/api/login",
            "logout": "/api/logout",
        },
        "tasks": "/api/tasks",
        "notifications": {
            "direct": "/api/send-notification",
            "relay": "/api/send-expo-notification",
            "user": "/api/send-user-notification",
            "due": "/api/send-due-task-notifications",
        },
    }
