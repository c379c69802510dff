from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field
from pydantic.alias_generators import to_camel
from pydantic.config import ConfigDict


class FileView(str, Enum):
    """Sidebar sections of the drive."""

    ALL = "all"
    DRIVE = "drive"
    RECENT = "recent"
    STARRED = "starred"
    TRASH = "trash"


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


class FileResponse(CamelModel):
    id: int
    name: str
    size: int
    content_type: str
    starred: bool
    trashed: bool
    created_at: datetime


class Pagination(CamelModel):
    current_page: int
    total_items: int
    total_pages: int
    items_per_page: int
    has_next: bool
    has_prev: bool


class FileListResponse(CamelModel):
    files: list[FileResponse]
    pagination: Pagination


class DownloadURL(CamelModel):
    download_url: str
    file_name: str
    content_type: str


class Message(BaseModel):
    message: str


class PurgeReport(BaseModel):
    purged: list[int] = Field(default_factory=list)
    failed: list[int] = Field(default_factory=list)
