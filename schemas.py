from pydantic import BaseModel, Field


class ObjectRef(BaseModel):
    bucket: str = Field(min_length=1)
    file: str = Field(min_length=1)


class SignedUrlRequest(ObjectRef):
    # Lifetime in seconds; the upper bound comes from settings
    expires: int = Field(gt=0)


class BucketCreate(BaseModel):
    name: str = Field(min_length=1, max_length=63, pattern=r"^[A-Za-z0-9][A-Za-z0-9._-]*$")
    public: bool = False


class ProjectCreate(BaseModel):
    name: str = Field(min_length=1, max_length=255)
