"""Object byte transfer: upload, download and delete.

Uploads write the file first and index it second. Whichever step fails,
the file is removed before the error propagates, so a caller never sees
success for an object that is only half there.
"""

from pathlib import Path

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

import crud
import models
import storage
import validation
from config import Settings
from errors import Internal, NotFound, StorageError
from logging_config import logger


def put_object(
    db: Session,
    settings: Settings,
    bucket: models.Bucket,
    stream,
    filename: str,
    mime_type: str,
) -> models.Object:
    validation.check_declared(settings, filename, mime_type)

    relative = storage.bucket_dir(bucket.project_id, bucket.id) / storage.new_storage_name(filename)
    target = storage.resolve(settings.storage_root, str(relative))

    try:
        size, content_hash = storage.write_stream(
            target, stream, settings.stream_chunk_size, settings.max_file_size
        )
    except OSError as e:
        logger.error("Failed writing upload to bucket %s: %s", bucket.id, e)
        raise Internal("Failed to store uploaded file.")

    # From here on the file exists; any failure must take it back out
    try:
        validation.check_signature(target, mime_type)
        return crud.create_object(
            db,
            bucket_id=bucket.id,
            filename=filename,
            path=relative.as_posix(),
            mime_type=mime_type,
            size=size,
            content_hash=content_hash,
        )
    except Exception as e:
        db.rollback()
        storage.remove_file(target)
        if isinstance(e, StorageError):
            raise
        logger.error(
            "Upload to bucket %s failed after write, removed stored file %s: %s",
            bucket.id, relative.name, e.__class__.__name__,
        )
        raise Internal("Failed to store uploaded file.")


def open_object(settings: Settings, obj: models.Object):
    """Returns a chunk iterator over the object's bytes."""
    path = storage.resolve(settings.storage_root, obj.path)
    try:
        return storage.iter_file(path, settings.stream_chunk_size)
    except FileNotFoundError:
        logger.error("Object %s is indexed but its file is missing", obj.id)
        raise NotFound()


def delete_object(db: Session, settings: Settings, obj: models.Object):
    """Deletes the index row and the stored file as one unit.

    The row is removed inside a transaction that only commits once the file
    is gone. A file that is already missing does not block the delete.
    """
    object_id = obj.id
    path: Path = storage.resolve(settings.storage_root, obj.path)
    try:
        if not crud.delete_object(db, object_id):
            db.rollback()
            raise NotFound()
        try:
            removed = storage.remove_file(path)
        except OSError as e:
            db.rollback()
            logger.error("Could not remove file for object %s: %s", object_id, e)
            raise Internal()
        if not removed:
            logger.warning(
                "File for object %s was already missing; removing the index row anyway", object_id
            )
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error("Index delete failed for object %s: %s", object_id, e.__class__.__name__)
        raise Internal()
