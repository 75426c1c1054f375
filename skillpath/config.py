"""
Layout configuration for graph building.

Defaults reproduce the original front-end canvas. A JSON file may override any
subset of fields (``skillpath --layout-config layout.json``).
"""

import json
import logging
import os
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError

logger = logging.getLogger(__name__)


class LayoutConfig(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    node_width: float = Field(default=200, gt=0)
    node_height: float = Field(default=80, gt=0)
    horizontal_gap: float = Field(default=100, ge=0)
    vertical_gap: float = Field(default=120, ge=0)
    tier_x_offset: float = Field(default=300, gt=0)
    viewport_height: float = Field(default=600, gt=0)
    margin_x: float = 50
    margin_y: float = 50
    path_row_y: float = 200


DEFAULT_LAYOUT = LayoutConfig()


def load_layout_config(path: Optional[str]) -> LayoutConfig:
    """Read a layout override file; ``None`` returns the defaults.

    Raises:
        ValueError: if the file is unreadable or contains unknown/invalid fields.
    """
    if not path:
        return DEFAULT_LAYOUT
    try:
        with open(path, "r", encoding="utf-8") as fh:
            raw = json.load(fh)
        config = LayoutConfig.model_validate(raw)
    except (OSError, json.JSONDecodeError, ValidationError) as exc:
        raise ValueError(f"Invalid layout config {path}: {exc}") from exc
    logger.info("Applied layout config from %s", path)
    return config


def save_layout_config(config: LayoutConfig, path: str) -> None:
    os.makedirs(os.path.dirname(os.path.abspath(path)), exist_ok=True)
    with open(path, "w", encoding="utf-8") as fh:
        json.dump(config.model_dump(), fh, indent=2)
    logger.info("Layout config saved → %s", path)
