import os
import logging
from dataclasses import dataclass, field
from pathlib import Path

import yaml
from pydantic import ValidationError

from models import NamingConventionTemplate

logger = logging.getLogger(__name__)

DEFAULT_CONVENTIONS_PATH = Path(__file__).parent / "naming_conventions.yaml"


@dataclass
class LauncherConfig:
    """Service settings for the launch API."""
    soft_limit: int = 300  # ads per launch before the dashboard warns
    naming_conventions_path: Path = DEFAULT_CONVENTIONS_PATH
    cors_origins: list[str] = field(
        default_factory=lambda: ["http://localhost:3000", "http://localhost:8000"]
    )
    port: int = 8002
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "LauncherConfig":
        """Load config from environment variables."""
        return cls(
            soft_limit=int(os.environ.get("LAUNCH_SOFT_LIMIT", "300")),
            naming_conventions_path=Path(os.environ.get(
                "NAMING_CONVENTIONS_PATH", str(DEFAULT_CONVENTIONS_PATH)
            )),
            cors_origins=[
                o.strip()
                for o in os.environ.get(
                    "CORS_ORIGINS", "http://localhost:3000,http://localhost:8000"
                ).split(",")
                if o.strip()
            ],
            port=int(os.environ.get("LAUNCH_API_PORT", "8002")),
            log_level=os.environ.get("LOG_LEVEL", "INFO").upper(),
        )


def load_naming_conventions(path: str | Path = DEFAULT_CONVENTIONS_PATH) -> dict[str, NamingConventionTemplate]:
    """Read naming-convention presets keyed by name.

    Expected layout:

        conventions:
          - name: default
            template: "{{clientName}}_{{date}}"
            variables:
              date: {format: MMYYYY}
    """
    with open(path) as f:
        try:
            raw = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ValueError(f"{path}: invalid YAML: {e}") from e

    if not isinstance(raw, dict) or not isinstance(raw.get("conventions", []), list):
        raise ValueError(f"{path}: expected a top-level 'conventions' list")

    conventions: dict[str, NamingConventionTemplate] = {}
    for entry in raw.get("conventions", []):
        name = entry.get("name") if isinstance(entry, dict) else None
        if not name:
            raise ValueError(f"{path}: every convention needs a name")
        try:
            conventions[name] = NamingConventionTemplate(
                template=entry.get("template", ""),
                variables=entry.get("variables") or {},
            )
        except ValidationError as e:
            raise ValueError(f"{path}: invalid convention '{name}': {e}") from e

    logger.info(f"Loaded {len(conventions)} naming conventions from {path}")
    return conventions
