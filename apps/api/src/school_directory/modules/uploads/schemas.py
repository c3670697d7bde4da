"""
Upload Schemas
"""

from pydantic import BaseModel, Field

from school_directory.modules.uploads.service import StoredImage


class UploadResponse(BaseModel):
    """Response for POST /upload."""

    success: bool = True
    message: str
    url: str
    public_id: str
    width: int | None = None
    height: int | None = None
    is_duplicate: bool = Field(serialization_alias="isDuplicate")

    @classmethod
    def from_stored(cls, image: StoredImage) -> "UploadResponse":
        message = (
            "Image already exists, using existing copy"
            if image.is_duplicate
            else "File uploaded successfully"
        )
        return cls(
            message=message,
            url=image.url,
            public_id=image.public_id,
            width=image.width,
            height=image.height,
            is_duplicate=image.is_duplicate,
        )
