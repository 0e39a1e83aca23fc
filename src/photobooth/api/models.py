"""Pydantic models for booth API request bodies."""

from pydantic import BaseModel, ConfigDict, Field

from photobooth.domain.sessions import SessionStatus


class RequestModel(BaseModel):
    """Base for request bodies: camelCase on the wire, no unknown fields."""

    model_config = ConfigDict(extra="forbid", populate_by_name=True)


class StatusRequest(RequestModel):
    """Capture status reported by a camera agent."""

    session_id: str = Field(alias="sessionId", min_length=1)
    status: SessionStatus


class DeletePhotoRequest(RequestModel):
    """Photo removal request."""

    session_id: str = Field(alias="sessionId", min_length=1)
    photo_id: str = Field(alias="photoId", min_length=1)


class CountdownRequest(RequestModel):
    """Countdown request; the session id is optional."""

    session_id: str | None = Field(default=None, alias="sessionId")


class UrlUploadRequest(RequestModel):
    """A photo already pushed to storage by an agent."""

    session_id: str = Field(alias="sessionId", min_length=1)
    public_id: str = Field(alias="publicId", min_length=1)
    cloudinary_url: str | None = Field(default=None, alias="cloudinaryUrl")
