from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI, Request

import admin
import crud
import models
from config import get_settings
from database import SessionLocal, engine
from errors import StorageError
from logging_config import logger, setup_logging
from responses import error_response
from router import router


def seed_default_project(db, name: str | None, api_key: str | None):
    """Creates the project named by DEFAULT_PROJECT_* if it does not exist yet."""
    if not name or not api_key:
        return None
    project = crud.get_project_by_api_key(db, api_key)
    if not project:
        project = crud.create_project(db, name=name, api_key=api_key)
        logger.info("Created default project %s (%s)", project.id, project.name)
    return project


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()
    setup_logging(settings.log_level)

    # Create DB tables
    models.Base.metadata.create_all(bind=engine)

    db = SessionLocal()
    try:
        seed_default_project(db, settings.default_project_name, settings.default_project_key)
    finally:
        db.close()

    logger.info("Object storage API is ready. Storage root: %s", settings.storage_root)
    yield


app = FastAPI(title="Object Storage API", lifespan=lifespan)

# Include the API and admin routers
app.include_router(router)
app.include_router(admin.router)


@app.exception_handler(StorageError)
async def storage_error_handler(request: Request, exc: StorageError):
    return error_response(exc.status_code, exc.message)


@app.get("/")
def read_root():
    return {"message": "Object Storage API is running."}


def run():
    settings = get_settings()
    uvicorn.run("main:app", host=settings.host, port=settings.port)


if __name__ == "__main__":
    run()
