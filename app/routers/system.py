from fastapi import APIRouter

from app.config import get_settings
from app.schemas.system import AppGroup, MediaGroup, SystemSettingsGrouped

router = APIRouter(
    prefix="/system",
    tags=["system"],
    responses={404: {"description": "Not found"}},
)


@router.get("/settings", response_model=SystemSettingsGrouped)
def get_system_settings() -> SystemSettingsGrouped:
    """Return grouped, non-sensitive system configuration settings for troubleshooting."""
    s = get_settings()

    app_group = AppGroup(
        name=s.app_name,
        environment=s.environment,
        log_level=s.log_level,
        port=s.port,
    )

    # Only the driver is exposed, never the full URL
    database_driver = (s.database_url or "").split(":", 1)[0] or None

    media_group = MediaGroup(
        url_path=s.media_url_path,
        path_prefix=s.media_path_prefix,
        max_attachment_bytes=s.max_attachment_bytes,
    )

    return SystemSettingsGrouped(
        app=app_group,
        database_driver=database_driver,
        media=media_group,
    )
