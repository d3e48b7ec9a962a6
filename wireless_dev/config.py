"""Centralized configuration helpers for the wireless-dev CLI."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import List

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict
from rich.console import Console
from rich.logging import RichHandler

# Per-user directory that holds the known-devices file.
DEFAULT_CONFIG_DIR: Path = Path.home() / ".wireless-dev"
CONFIG_FILE_NAME = "config.json"


class Settings(BaseSettings):
    """Runtime settings, overridable through WIRELESS_DEV_* environment variables."""

    adb_path: str = "adb"
    config_dir: Path = DEFAULT_CONFIG_DIR
    adb_port: int = 5555
    probe_timeout: float = Field(
        default=0.5,
        description="Seconds to wait for a single discovery probe",
    )
    max_concurrent_probes: int = 254
    host_boundary_match: bool = Field(
        default=False,
        description="Require a listed identifier to contain the whole host address, not a digit prefix of it",
    )
    wireless_settle_delay: float = Field(
        default=2.0,
        description="Seconds to wait after switching a device into TCP mode",
    )
    qr_scheme: str = "adbwireless"
    dev_server_command: List[str] = ["npx", "expo", "start"]

    model_config = SettingsConfigDict(
        env_prefix="WIRELESS_DEV_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    @property
    def config_file(self) -> Path:
        """Return the JSON file that stores known devices."""
        return self.config_dir / CONFIG_FILE_NAME


def configure_logging(verbose: bool = False, console: Console | None = None) -> None:
    level = logging.DEBUG if verbose else logging.WARNING
    handler = RichHandler(console=console, show_path=False, rich_tracebacks=verbose)
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[handler],
        force=True,
    )
