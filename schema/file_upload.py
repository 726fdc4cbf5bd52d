from typing import Annotated, Optional
from pydantic import BaseModel, Field


class CloudinaryImageUploadResponse(BaseModel):
    """Response model for Cloudinary image upload. Fields we do not use are ignored.
    """

    asset_id: Annotated[Optional[str], Field(description="Unique identifier for the asset in Cloudinary", default=None)]
    public_id: Annotated[str, Field(description="Public ID of the uploaded asset")]
    format: Annotated[Optional[str], Field(description="File format of the uploaded asset", default=None)]
    width: Annotated[Optional[int], Field(description="Width of the uploaded image in pixels", default=None)]
    height: Annotated[Optional[int], Field(description="Height of the uploaded image in pixels", default=None)]
    bytes: Annotated[Optional[int], Field(description="Size of the uploaded asset in bytes", default=None)]
    resource_type: Annotated[Optional[str], Field(description="Resource type of the uploaded asset", default=None)]
    url: Annotated[str, Field(description="URL of the uploaded asset")]
    secure_url: Annotated[str, Field(description="Secure URL of the uploaded asset")]
