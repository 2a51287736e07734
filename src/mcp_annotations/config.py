"""Dispatch engine configuration loading."""

from __future__ import annotations

import logging
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any

from mcp_annotations.lib import oj

logger = logging.getLogger(__name__)

# Config file locations
CONFIG_FILENAME = "config.json"
GLOBAL_CONFIG = Path.home() / ".mcp_annotations" / CONFIG_FILENAME
LOCAL_CONFIG_DIR = ".mcp_annotations"
CONFIG_SECTION = "dispatch"


@dataclass(frozen=True)
class DispatchConfig:
    """Settings shared by scanners, adapters and providers."""

    strict: bool = True
    """Raise one aggregated error when any handler fails validation."""

    generate_output_schema: bool = True
    """Generate output schemas (and structured results) for tools returning objects."""

    default_mime_type: str = "text/plain"
    """MIME type of resource contents when the marker declares none."""

    void_result_text: str = "Done"
    """Text, JSON encoded, of the result a tool declared to return None produces."""

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "DispatchConfig":
        """Create from config dict, ignoring unknown keys."""
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            logger.warning(f"Ignoring unknown dispatch config keys: {', '.join(unknown)}")
        return cls(**{k: v for k, v in data.items() if k in known})

    def merged(self, data: dict[str, Any]) -> "DispatchConfig":
        """Return a copy with values from data overriding this config."""
        current = {f.name: getattr(self, f.name) for f in fields(self)}
        current.update(data)
        return DispatchConfig.from_dict(current)


def _read_section(path: Path) -> dict[str, Any]:
    try:
        data = oj.loads(path.read_bytes())
    except (OSError, ValueError) as e:
        logger.warning(f"Could not read dispatch config {path}: {e}")
        return {}
    section = data.get(CONFIG_SECTION, {}) if isinstance(data, dict) else {}
    if not isinstance(section, dict):
        logger.warning(f"Ignoring non-object '{CONFIG_SECTION}' section in {path}")
        return {}
    return section


def load_dispatch_config(
    working_dir: Path | None = None, global_config: Path | None = None
) -> DispatchConfig:
    """Load dispatch config from global and local config files.

    Global config (~/.mcp_annotations/config.json) is loaded first.
    Local config ({working_dir}/.mcp_annotations/config.json) overrides global.
    Both read the "dispatch" object of the file.

    Returns:
        The merged config; defaults when neither file exists.
    """
    config = DispatchConfig()

    global_path = global_config or GLOBAL_CONFIG
    if global_path.exists():
        config = config.merged(_read_section(global_path))

    if working_dir:
        local_config = working_dir / LOCAL_CONFIG_DIR / CONFIG_FILENAME
        if local_config.exists():
            config = config.merged(_read_section(local_config))

    return config
