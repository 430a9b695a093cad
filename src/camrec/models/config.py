"""Service configuration models."""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Filenames carry one-second resolution; restarts and rotations must not be faster.
MIN_RESTART_DELAY_S = 1.0


class RecordingConfig(BaseModel):
    """Segmented file output configuration."""

    model_config = {"extra": "forbid"}

    segment_seconds: int = Field(
        default=10,
        ge=1,
        description="Wall-clock seconds per segment file.",
    )
    extension: str = Field(
        default="mp4",
        description="Segment file extension (container inferred by ffmpeg).",
    )

    @field_validator("extension", mode="before")
    @classmethod
    def _normalize_extension(cls, value: Any) -> Any:
        if isinstance(value, str):
            return value.strip().lstrip(".").lower()
        return value

    @field_validator("extension")
    @classmethod
    def _require_extension(cls, value: str) -> str:
        if not value or "/" in value:
            raise ValueError("recording.extension must be a plain file extension")
        return value


class StreamConfig(BaseModel):
    """Input side of the ffmpeg invocation."""

    model_config = {"extra": "forbid"}

    ffmpeg_bin: str = "ffmpeg"
    rtsp_transport: Literal["tcp", "udp", "http", "https"] = "tcp"
    use_wallclock_timestamps: bool = True
    loglevel: str = Field(
        default="warning",
        description="ffmpeg -loglevel; diagnostics are captured from stderr.",
    )
    input_flags: list[str] = Field(
        default_factory=list,
        description="Additional ffmpeg flags inserted before -i.",
    )


class PublishConfig(BaseModel):
    """Live republish output configuration."""

    model_config = {"extra": "forbid"}

    enabled: bool = True
    base_url: str = "rtsp://mediamtx:8554"
    format: str = "rtsp"
    audio: bool = Field(
        default=False,
        description="Copy audio into the live output (disabled for sources with broken audio).",
    )


class SupervisorConfig(BaseModel):
    """Restart policy for recording sessions."""

    model_config = {"extra": "forbid"}

    error_restart_delay_s: float = Field(
        default=1.0,
        ge=MIN_RESTART_DELAY_S,
        description="Delay before relaunching after a runtime error.",
    )
    end_restart_delay_s: float = Field(
        default=5.0,
        ge=MIN_RESTART_DELAY_S,
        description="Delay before relaunching after a clean exit.",
    )
    backoff: Literal["fixed", "exponential"] = "fixed"
    backoff_factor: float = Field(default=1.6, ge=1.0)
    backoff_max_s: float = Field(default=60.0, ge=MIN_RESTART_DELAY_S)
    max_attempts: int = Field(
        default=0,
        ge=0,
        description="Max consecutive restart attempts (0 = retry forever).",
    )
    stop_timeout_s: float = Field(
        default=5.0,
        gt=0.0,
        description="Seconds to wait for ffmpeg to exit on shutdown before killing it.",
    )


class CameraOverrides(BaseModel):
    """Per-camera overrides keyed by camera id."""

    model_config = {"extra": "forbid"}

    name: str | None = None
    publish_audio: bool | None = None


class ServerConfig(BaseModel):
    """HTTP server configuration."""

    model_config = {"extra": "forbid"}

    enabled: bool = True
    host: str = "0.0.0.0"
    port: int = Field(default=3000, ge=1, le=65535)
    cors_origins: list[str] = Field(default_factory=lambda: ["*"])
    serve_recordings: bool = True
    serve_ui: bool = True


class RecorderConfig(BaseSettings):
    """Top-level service settings.

    Values come from init kwargs (YAML file), then `CAMREC_*` environment
    variables, then `.env`.
    """

    model_config = SettingsConfigDict(
        env_prefix="CAMREC_",
        env_nested_delimiter="__",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    recordings_dir: str = "./recordings"
    ui_dir: str = "./public"
    recording: RecordingConfig = Field(default_factory=RecordingConfig)
    stream: StreamConfig = Field(default_factory=StreamConfig)
    publish: PublishConfig = Field(default_factory=PublishConfig)
    supervisor: SupervisorConfig = Field(default_factory=SupervisorConfig)
    server: ServerConfig = Field(default_factory=ServerConfig)
    cameras: dict[str, CameraOverrides] = Field(default_factory=dict)

    @model_validator(mode="after")
    def _validate_backoff(self) -> RecorderConfig:
        sup = self.supervisor
        if sup.backoff == "exponential" and sup.backoff_max_s < sup.error_restart_delay_s:
            raise ValueError("supervisor.backoff_max_s must be >= supervisor.error_restart_delay_s")
        return self

    def publish_audio_for(self, camera_id: str) -> bool:
        override = self.cameras.get(camera_id)
        if override is not None and override.publish_audio is not None:
            return override.publish_audio
        return self.publish.audio

