from pydantic import BaseModel


class StoredFile(BaseModel):
    unique_filename: str  # also the share key
    size: int
    content_type: str

    class Config:
        frozen = True
