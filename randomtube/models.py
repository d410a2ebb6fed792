from pydantic import BaseModel, ConfigDict, Field
from typing import Optional

# Upstream payloads are kept as-is: unknown fields survive a store round trip,
# and only fields that were actually supplied are written back.

class Thumbnail(BaseModel):
    model_config = ConfigDict(extra="allow")

    url: str = ""
    width: Optional[int] = None
    height: Optional[int] = None

class Thumbnails(BaseModel):
    model_config = ConfigDict(extra="allow")

    default: Optional[Thumbnail] = None
    medium: Optional[Thumbnail] = None
    high: Optional[Thumbnail] = None

class Snippet(BaseModel):
    model_config = ConfigDict(extra="allow")

    title: str = ""
    description: str = ""
    thumbnails: Thumbnails = Field(default_factory=Thumbnails)

class VideoId(BaseModel):
    model_config = ConfigDict(extra="allow", populate_by_name=True)

    video_id: str = Field("", alias="videoId")

class Video(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: VideoId = Field(default_factory=VideoId)
    snippet: Snippet = Field(default_factory=Snippet)

    @property
    def video_id(self) -> str:
        return self.id.video_id

    @property
    def title(self) -> str:
        return self.snippet.title

    @property
    def description(self) -> str:
        return self.snippet.description

    @property
    def thumbnail_url(self) -> str:
        """Best available thumbnail, preferring the high resolution one."""
        thumbs = self.snippet.thumbnails
        for thumb in (thumbs.high, thumbs.medium, thumbs.default):
            if thumb and thumb.url:
                return thumb.url
        return ""

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True, exclude_unset=True)

    def to_dict(self) -> dict:
        return self.model_dump(by_alias=True, exclude_unset=True)

class ChannelMetadata(BaseModel):
    channelId: str
    expiresAt: int  # epoch milliseconds

class StoredValue(BaseModel):
    """A store value together with the metadata it was written with."""
    value: Optional[str] = None
    metadata: Optional[dict] = None
