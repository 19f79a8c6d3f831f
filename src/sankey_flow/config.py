from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any, Dict, Literal, Union

import yaml
from pydantic import BaseModel, ConfigDict, Field, model_validator


class SankeyConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")

    # layout
    node_width: float = Field(15.0, gt=0)
    node_padding: float = Field(15.0, ge=0)
    sankey_padding: float = Field(10.0, ge=0)
    # drawing
    label_padding: float = Field(5.0, ge=0)
    unit: str = "TWh"
    value_format: str = ",.0f"
    # data
    validate_frame: bool = False
    # a fetch that completes after a newer one was requested is discarded
    drop_stale_frames: bool = True
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "WARNING"

    @model_validator(mode="after")
    def _check_format(self) -> "SankeyConfig":
        try:
            format(1234.5, self.value_format)
        except ValueError as e:
            raise ValueError(f"value_format {self.value_format!r} is not a valid format spec: {e}")
        return self

    def with_updates(self, **kwargs: Any) -> "SankeyConfig":
        """Validated copy with ``kwargs`` applied; unknown keys are rejected."""
        return SankeyConfig(**{**self.model_dump(), **kwargs})

    def from_environment(self) -> "SankeyConfig":
        """Copy with overrides from ``SANKEY_*`` environment variables."""
        env_mapping = {
            "SANKEY_NODE_WIDTH": "node_width",
            "SANKEY_NODE_PADDING": "node_padding",
            "SANKEY_PADDING": "sankey_padding",
            "SANKEY_LABEL_PADDING": "label_padding",
            "SANKEY_UNIT": "unit",
            "SANKEY_VALUE_FORMAT": "value_format",
            "SANKEY_VALIDATE_FRAME": "validate_frame",
            "SANKEY_DROP_STALE_FRAMES": "drop_stale_frames",
            "SANKEY_LOG_LEVEL": "log_level",
        }
        updates: Dict[str, Any] = {}
        for env_var, key in env_mapping.items():
            value = os.getenv(env_var)
            if value is None:
                continue
            if key in ("validate_frame", "drop_stale_frames"):
                updates[key] = value.lower() in ("true", "1", "yes")
            elif key == "log_level":
                updates[key] = value.upper()
            else:
                updates[key] = value
        return self.with_updates(**updates)


def load_config(path: Union[str, Path]) -> SankeyConfig:
    """Load a YAML config file; an empty file gives the defaults."""
    with open(path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ValueError(f"config file {path} must contain a mapping, got {type(data).__name__}")
    return SankeyConfig(**data)


def configure_logging(level: Union[str, int] = "WARNING") -> None:
    """Basic logging setup for hosts and scripts that have none of their own."""
    logging.basicConfig(level=level, format="%(asctime)s %(name)s %(levelname)s %(message)s")
    logging.getLogger("sankey_flow").setLevel(level)
