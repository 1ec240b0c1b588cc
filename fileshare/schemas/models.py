from pydantic import BaseModel, Field

from fileshare.core.filetypes import FileKind

class UploadResponse(BaseModel):
    success: bool = True
    message: str = "File uploaded successfully"
    file_name: str = Field(alias="fileName")
    file_size: int = Field(alias="fileSize")
    file_type: str = Field(alias="fileType")
    file_url: str = Field(alias="fileUrl")
    shareable_url: str = Field(alias="shareableUrl")
    unique_filename: str = Field(alias="uniqueFilename")

    class Config:
        populate_by_name = True

class ErrorResponse(BaseModel):
    error: str

class StoredFileInfo(BaseModel):
    unique_filename: str = Field(alias="uniqueFilename")
    file_size: int = Field(alias="fileSize")
    file_type: str = Field(alias="fileType")
    kind: FileKind
    file_url: str = Field(alias="fileUrl")
    shareable_url: str = Field(alias="shareableUrl")

    class Config:
        populate_by_name = True
