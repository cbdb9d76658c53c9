from typing import Optional

from pydantic import BaseModel


class AppGroup(BaseModel):
    name: str
    environment: str
    log_level: str
    port: int


class MediaGroup(BaseModel):
    url_path: str
    path_prefix: str
    max_attachment_bytes: int


class SystemSettingsGrouped(BaseModel):
    app: AppGroup
    database_driver: Optional[str] = None
    media: MediaGroup
