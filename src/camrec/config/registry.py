"""Camera registry backed by environment-style source slots."""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping

from camrec.models.camera import Camera
from camrec.models.config import RecorderConfig
from camrec.recording.command import redact_url

logger = logging.getLogger(__name__)

MAX_CAMERA_SLOTS = 6
SOURCE_SLOT_ENV = "RTSP_SOURCE_{index}"
SOURCE_NAME_ENV = "RTSP_SOURCE_{index}_NAME"
LEGACY_SOURCE_ENV = "RTSP_SOURCE"


def camera_id_for_slot(index: int) -> str:
    return f"cam{index}"


def publish_path_for(camera_id: str) -> str:
    return f"{camera_id}_monitor"


def load_cameras(
    source: Mapping[str, str] | None = None,
    *,
    config: RecorderConfig | None = None,
) -> list[Camera]:
    """Build the fixed camera list from populated source slots.

    Empty or missing slots are skipped. The legacy single-source slot is
    used only when no indexed slot is populated. Order follows slot order.

    Args:
        source: Variable mapping (defaults to `os.environ`).
        config: Optional settings providing per-camera display name overrides.
    """
    env = os.environ if source is None else source
    cameras: list[Camera] = []

    for index in range(1, MAX_CAMERA_SLOTS + 1):
        url = _slot_value(env, SOURCE_SLOT_ENV.format(index=index))
        if url is None:
            continue
        name = _slot_value(env, SOURCE_NAME_ENV.format(index=index))
        cameras.append(_build_camera(index, url, name, config))

    if not cameras:
        url = _slot_value(env, LEGACY_SOURCE_ENV)
        if url is not None:
            cameras.append(_build_camera(1, url, None, config))

    for camera in cameras:
        logger.info(
            "Camera configured: id=%s name=%s source=%s",
            camera.id,
            camera.name,
            redact_url(camera.source_address),
        )
    return cameras


def _slot_value(env: Mapping[str, str], key: str) -> str | None:
    value = env.get(key)
    if value is None:
        return None
    value = value.strip()
    return value or None


def _build_camera(
    index: int,
    url: str,
    name: str | None,
    config: RecorderConfig | None,
) -> Camera:
    camera_id = camera_id_for_slot(index)
    display_name = name or f"Camera {index}"
    if config is not None:
        override = config.cameras.get(camera_id)
        if override is not None and override.name:
            display_name = override.name
    return Camera(
        id=camera_id,
        name=display_name,
        source_address=url,
        publish_path=publish_path_for(camera_id),
    )
