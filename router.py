from fastapi import APIRouter, Depends, File, Form, Request, UploadFile
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

import crud
import models
import objects
import signing
import storage
from auth import admit_read, get_current_project
from config import Settings, get_settings
from database import get_db
from errors import BadRequest, Conflict, NotFound
from logging_config import logger
from responses import (
    bucket_summary,
    object_stream_response,
    object_summary,
    signed_url_response,
    upload_response,
)
from schemas import BucketCreate, ObjectRef, SignedUrlRequest

router = APIRouter(prefix="/api")


@router.post("/upload", status_code=201)
def upload(
    request: Request,
    bucket: str = Form(...),
    file: UploadFile = File(...),
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
    project: models.Project = Depends(get_current_project),
):
    """Stores a multipart upload and returns a long-lived signed URL for it."""
    db_bucket = crud.get_bucket_by_name(db, project.id, bucket)
    if not db_bucket:
        raise NotFound("Bucket not found or access denied.")

    mime_type = file.content_type or "application/octet-stream"
    obj = objects.put_object(db, settings, db_bucket, file.file, file.filename or "", mime_type)
    logger.info("Stored object %s (%d bytes) in bucket %s", obj.id, obj.size, db_bucket.id)

    signed = signing.generate_signed_url(
        db, project.id, db_bucket.name, obj.filename, settings.upload_url_ttl, str(request.base_url)
    )
    return upload_response(obj, signed)


@router.get("/object")
def get_object(
    bucket: str,
    file: str,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
    project: models.Project = Depends(get_current_project),
):
    obj = admit_read(db, bucket, file, project=project)
    return object_stream_response(obj, objects.open_object(settings, obj), disposition="attachment")


@router.delete("/object")
def delete_object(
    ref: ObjectRef,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
    project: models.Project = Depends(get_current_project),
):
    obj = admit_read(db, ref.bucket, ref.file, project=project)
    object_id = obj.id
    objects.delete_object(db, settings, obj)
    logger.info("Deleted object %s from project %s", object_id, project.id)
    return {"message": "File deleted successfully."}


@router.get("/list")
def list_objects(
    bucket: str,
    db: Session = Depends(get_db),
    project: models.Project = Depends(get_current_project),
):
    found = crud.list_objects(db, project.id, bucket)
    if found is None:
        raise NotFound("Bucket not found or access denied.")
    return {"bucket": bucket, "objects": [object_summary(obj) for obj in found]}


@router.post("/generate-signed-url")
def generate_signed_url(
    body: SignedUrlRequest,
    request: Request,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
    project: models.Project = Depends(get_current_project),
):
    if body.expires > settings.max_signed_url_ttl:
        raise BadRequest(f"expires must be at most {settings.max_signed_url_ttl} seconds.")
    if not crud.get_bucket_by_name(db, project.id, body.bucket):
        raise NotFound("Bucket not found or access denied.")

    signed = signing.generate_signed_url(
        db, project.id, body.bucket, body.file, body.expires, str(request.base_url)
    )
    return signed_url_response(signed)


@router.get("/get-file")
def get_file(
    bucket: str,
    file: str,
    token: str | None = None,
    expires: str | None = None,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    """Serves a file through a shared URL: public buckets freely, private ones by token."""
    obj = admit_read(db, bucket, file, token=token, expires=expires)
    return object_stream_response(obj, objects.open_object(settings, obj), disposition="inline")


@router.get("/buckets")
def list_buckets(
    db: Session = Depends(get_db),
    project: models.Project = Depends(get_current_project),
):
    return {"buckets": [bucket_summary(b) for b in crud.list_buckets(db, project.id)]}


@router.post("/buckets", status_code=201)
def create_bucket(
    body: BucketCreate,
    db: Session = Depends(get_db),
    project: models.Project = Depends(get_current_project),
):
    if crud.get_bucket_by_name(db, project.id, body.name):
        raise Conflict("Bucket already exists in this project.")
    try:
        db_bucket = crud.create_bucket(db, project.id, body.name, is_public=body.public)
    except IntegrityError:
        db.rollback()
        raise Conflict("Bucket already exists in this project.")
    logger.info("Created %s bucket %s for project %s",
                "public" if db_bucket.is_public else "private", db_bucket.id, project.id)
    return bucket_summary(db_bucket)


@router.get("/health")
def health(db: Session = Depends(get_db), settings: Settings = Depends(get_settings)):
    services = {}
    try:
        db.execute(text("SELECT 1"))
        services["database"] = {"healthy": True}
    except SQLAlchemyError as e:
        logger.error("Health check: database unavailable: %s", e.__class__.__name__)
        services["database"] = {"healthy": False}
    services["storage"] = {"healthy": storage.is_writable(settings.storage_root)}

    healthy = all(s["healthy"] for s in services.values())
    return JSONResponse(
        status_code=200 if healthy else 503,
        content={"status": "healthy" if healthy else "degraded", "services": services},
    )
