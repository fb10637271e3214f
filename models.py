from sqlalchemy import Boolean, Column, Integer, String, ForeignKey, DateTime, JSON, UniqueConstraint
from sqlalchemy.orm import relationship
from datetime import datetime, timezone
from database import Base


def _utcnow():
    return datetime.now(timezone.utc)


class Project(Base):
    __tablename__ = "projects"
    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    # Doubles as the bearer API key and the HMAC key for signed URLs
    api_key = Column(String, unique=True, index=True, nullable=False)
    created_at = Column(DateTime, default=_utcnow)
    buckets = relationship("Bucket", back_populates="project", cascade="all, delete-orphan")


class Bucket(Base):
    __tablename__ = "buckets"
    __table_args__ = (UniqueConstraint("project_id", "name", name="uq_bucket_project_name"),)
    id = Column(Integer, primary_key=True, index=True)
    project_id = Column(Integer, ForeignKey("projects.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String, index=True, nullable=False)
    is_public = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime, default=_utcnow)
    project = relationship("Project", back_populates="buckets")
    objects = relationship("Object", back_populates="bucket", cascade="all, delete-orphan")


class Object(Base):
    __tablename__ = "objects"
    id = Column(Integer, primary_key=True, index=True)
    bucket_id = Column(Integer, ForeignKey("buckets.id", ondelete="CASCADE"), nullable=False, index=True)
    filename = Column(String, index=True, nullable=False)
    # Internal only, never returned to API callers
    path = Column(String, nullable=False)
    mime_type = Column(String, default="application/octet-stream")
    size = Column(Integer, nullable=False)
    content_hash = Column(String, nullable=False)
    has_thumbnail = Column(Boolean, default=False, nullable=False)
    optimized_at = Column(DateTime, nullable=True)
    metadata_json = Column(JSON, nullable=True)
    created_at = Column(DateTime, default=_utcnow)
    bucket = relationship("Bucket", back_populates="objects")
