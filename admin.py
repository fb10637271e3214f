from fastapi import APIRouter, Depends
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

import crud
import storage
from auth import require_admin
from config import Settings, get_settings
from database import get_db
from errors import Conflict, NotFound
from logging_config import logger
from responses import bucket_summary, project_summary
from schemas import BucketCreate, ProjectCreate

router = APIRouter(prefix="/admin", dependencies=[Depends(require_admin)])


@router.post("/projects", status_code=201)
def create_project(body: ProjectCreate, db: Session = Depends(get_db)):
    """Creates a project. Its API key is only ever returned here."""
    project = crud.create_project(db, name=body.name)
    logger.info("Created project %s", project.id)
    return project_summary(project, bucket_count=0, include_key=True)


@router.get("/projects")
def list_projects(db: Session = Depends(get_db)):
    return {
        "projects": [project_summary(project, bucket_count=count) for project, count in crud.list_projects(db)]
    }


@router.delete("/projects/{project_id}")
def delete_project(
    project_id: int,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    # Irreversible: buckets and objects go with the project
    if not crud.delete_project(db, project_id):
        raise NotFound("Project not found.")
    storage.remove_project_dir(settings.storage_root, project_id)
    logger.warning("Deleted project %s with all of its buckets and objects", project_id)
    return {"message": "Project deleted."}


@router.get("/projects/{project_id}/buckets")
def list_project_buckets(project_id: int, db: Session = Depends(get_db)):
    if not crud.get_project(db, project_id):
        raise NotFound("Project not found.")
    return {"buckets": [bucket_summary(b) for b in crud.list_buckets(db, project_id)]}


@router.post("/projects/{project_id}/buckets", status_code=201)
def create_project_bucket(project_id: int, body: BucketCreate, db: Session = Depends(get_db)):
    if not crud.get_project(db, project_id):
        raise NotFound("Project not found.")
    if crud.get_bucket_by_name(db, project_id, body.name):
        raise Conflict("Bucket already exists in this project.")
    try:
        db_bucket = crud.create_bucket(db, project_id, body.name, is_public=body.public)
    except IntegrityError:
        db.rollback()
        raise Conflict("Bucket already exists in this project.")
    logger.info("Admin created %s bucket %s for project %s",
                "public" if db_bucket.is_public else "private", db_bucket.id, project_id)
    return bucket_summary(db_bucket)
