import logging

from fastapi import FastAPI
import uvicorn

from taskmarket.core.config import get_settings
from taskmarket.core.errors import register_exception_handlers
from taskmarket.routers import admin as admin_router
from taskmarket.routers import applications as applications_router
from taskmarket.routers import auth as auth_router
from taskmarket.routers import notifications as notifications_router
from taskmarket.routers import tasks as tasks_router
from taskmarket.routers import users as users_router


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


configure_logging(get_settings().log_level)

app = FastAPI(title="Task Marketplace")
register_exception_handlers(app)

app.include_router(auth_router.router)
app.include_router(users_router.router)
app.include_router(tasks_router.router)
app.include_router(applications_router.router)
app.include_router(notifications_router.router)
app.include_router(admin_router.router)

@app.get("/")
async def root():
    return {"message": "Welcome to the Task Marketplace"}

def main():
    """Run the FastAPI application."""
    uvicorn.run(
        "taskmarket.main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
        log_level=get_settings().log_level.lower()
    )

if __name__ == "__main__":
    main()
