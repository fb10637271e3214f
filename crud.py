import secrets

from sqlalchemy.orm import Session
from sqlalchemy import asc, desc, func
import models


def generate_api_key() -> str:
    return "sk-" + secrets.token_hex(16)


# --- Projects (key store) ---

def get_project_by_api_key(db: Session, api_key: str):
    """Exact, case-sensitive match on the project's key."""
    return db.query(models.Project).filter(models.Project.api_key == api_key).first()


def get_project(db: Session, project_id: int):
    return db.query(models.Project).filter(models.Project.id == project_id).first()


def get_project_secret(db: Session, project_id: int):
    row = db.query(models.Project.api_key).filter(models.Project.id == project_id).first()
    return row[0] if row else None


def create_project(db: Session, name: str, api_key: str | None = None):
    db_project = models.Project(name=name, api_key=api_key or generate_api_key())
    db.add(db_project)
    db.commit()
    db.refresh(db_project)
    return db_project


def list_projects(db: Session):
    """Projects with their bucket counts, oldest first."""
    return (
        db.query(models.Project, func.count(models.Bucket.id))
        .outerjoin(models.Bucket, models.Bucket.project_id == models.Project.id)
        .group_by(models.Project.id)
        .order_by(asc(models.Project.id))
        .all()
    )


def delete_project(db: Session, project_id: int) -> bool:
    project = get_project(db, project_id)
    if not project:
        return False
    db.delete(project)
    db.commit()
    return True


# --- Buckets ---

def get_bucket_by_name(db: Session, project_id: int, name: str):
    return db.query(models.Bucket).filter(
        models.Bucket.project_id == project_id,
        models.Bucket.name == name,
    ).first()


def list_buckets(db: Session, project_id: int):
    return (
        db.query(models.Bucket)
        .filter(models.Bucket.project_id == project_id)
        .order_by(asc(models.Bucket.id))
        .all()
    )


def create_bucket(db: Session, project_id: int, name: str, is_public: bool = False):
    db_bucket = models.Bucket(project_id=project_id, name=name, is_public=is_public)
    db.add(db_bucket)
    db.commit()
    db.refresh(db_bucket)
    return db_bucket


# --- Objects (object index) ---

def find_object(db: Session, project_id: int, bucket_name: str, filename: str):
    """Fetches an object by bucket name and filename within one project.

    Filenames are not unique inside a bucket; the most recent upload wins.
    """
    return (
        db.query(models.Object)
        .join(models.Bucket, models.Object.bucket_id == models.Bucket.id)
        .filter(
            models.Bucket.project_id == project_id,
            models.Bucket.name == bucket_name,
            models.Object.filename == filename,
        )
        .order_by(desc(models.Object.id))
        .first()
    )


def find_public_candidates(db: Session, bucket_name: str, filename: str):
    """Objects matching bucket name and filename across every project.

    Bucket names are only unique per project, so this can return one match
    per bucket. Buckets come oldest first, and within a bucket only the most
    recent upload of the filename is kept.
    """
    rows = (
        db.query(models.Object)
        .join(models.Bucket, models.Object.bucket_id == models.Bucket.id)
        .filter(
            models.Bucket.name == bucket_name,
            models.Object.filename == filename,
        )
        .order_by(asc(models.Bucket.id), desc(models.Object.id))
        .all()
    )
    latest = {}
    for obj in rows:
        latest.setdefault(obj.bucket_id, obj)
    return list(latest.values())


def list_objects(db: Session, project_id: int, bucket_name: str):
    """Lists a bucket's objects in upload order, or None if the project has no such bucket."""
    bucket = get_bucket_by_name(db, project_id, bucket_name)
    if not bucket:
        return None
    return (
        db.query(models.Object)
        .filter(models.Object.bucket_id == bucket.id)
        .order_by(asc(models.Object.created_at), asc(models.Object.id))
        .all()
    )


def create_object(db: Session, bucket_id: int, filename: str, path: str, mime_type: str, size: int, content_hash: str):
    db_object = models.Object(
        bucket_id=bucket_id,
        filename=filename,
        path=path,
        mime_type=mime_type,
        size=size,
        content_hash=content_hash,
    )
    db.add(db_object)
    db.commit()
    db.refresh(db_object)
    return db_object


def delete_object(db: Session, object_id: int) -> bool:
    """Removes an object row without committing.

    Returns False when the row was already gone, e.g. a concurrent delete.
    """
    deleted = (
        db.query(models.Object)
        .filter(models.Object.id == object_id)
        .delete(synchronize_session=False)
    )
    return deleted > 0
