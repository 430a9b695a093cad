"""CLI entrypoint for the camrec recorder."""

from __future__ import annotations

import asyncio
import json
import sys
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()

import fire  # type: ignore[import-untyped]

from camrec.app import Application
from camrec.config import ConfigError, load_cameras, load_config
from camrec.errors import CameraDirectoryError
from camrec.logging_setup import configure_logging
from camrec.recording.command import redact_url


def setup_logging(level: str = "INFO") -> None:
    """Configure logging for CLI."""
    configure_logging(log_level=level)


def _config_path(config: str | None) -> Path | None:
    return Path(config) if config else None


class CamRec:
    """camrec CLI - continuous multi-camera recorder."""

    def run(self, config: str | None = None, log_level: str = "INFO") -> None:
        """Run the recorder and the HTTP API.

        Args:
            config: Optional path to YAML settings file
            log_level: Logging level (DEBUG, INFO, WARNING, ERROR)
        """
        setup_logging(log_level)

        app = Application(_config_path(config))

        try:
            asyncio.run(app.run())
        except ConfigError as e:
            print(f"✗ Config invalid: {e}", file=sys.stderr)
            sys.exit(1)
        except CameraDirectoryError as e:
            print(f"✗ {e}", file=sys.stderr)
            sys.exit(1)
        except KeyboardInterrupt:
            pass  # Handled by signal handlers

    def validate(self, config: str | None = None) -> None:
        """Validate settings and camera slots without running.

        Args:
            config: Optional path to YAML settings file
        """
        config_path = _config_path(config)

        try:
            cfg = load_config(config_path)
        except ConfigError as e:
            print(f"✗ Config invalid: {e}", file=sys.stderr)
            sys.exit(1)

        cameras = load_cameras(config=cfg)
        print(f"✓ Config valid: {config_path or '(environment)'}")
        print(f"  Recordings dir: {cfg.recordings_dir}")
        print(f"  Segment length: {cfg.recording.segment_seconds}s (.{cfg.recording.extension})")
        print(f"  Publish: {cfg.publish.base_url} (enabled={cfg.publish.enabled})")
        print(
            "  Restart delays: "
            f"error={cfg.supervisor.error_restart_delay_s}s "
            f"end={cfg.supervisor.end_restart_delay_s}s "
            f"backoff={cfg.supervisor.backoff}"
        )
        print(f"  Cameras: {len(cameras)}")
        for camera in cameras:
            print(f"    {camera.id} ({camera.name}): {redact_url(camera.source_address)}")

    def cameras(self, config: str | None = None) -> None:
        """Print the camera list exactly as GET /api/config returns it.

        Args:
            config: Optional path to YAML settings file
        """
        try:
            cfg = load_config(_config_path(config))
        except ConfigError as e:
            print(f"✗ Config invalid: {e}", file=sys.stderr)
            sys.exit(1)
        payload = [camera.public_view().model_dump() for camera in load_cameras(config=cfg)]
        print(json.dumps(payload, indent=2))


def main() -> None:
    """Main CLI entrypoint."""
    # Strip --help/-h when it's the only arg so Fire shows its commands list
    if len(sys.argv) == 2 and sys.argv[1] in ("--help", "-h"):
        sys.argv.pop()
    fire.Fire(CamRec)


if __name__ == "__main__":
    main()
