"""
Bundler configuration: defaults, the minipack.json file, and CLI overrides.
"""

import json
import os
from typing import List, Optional

from pydantic import BaseModel, Field, ValidationError, field_validator, model_validator

from bundler.errors import ConfigError

CONFIG_PATHS = ["minipack.json", os.path.expanduser("~/.minipack/config.json")]


class BundleConfig(BaseModel):
    roots: List[str] = Field(default_factory=lambda: ["."])
    extensions: List[str] = Field(default_factory=lambda: [".js"])
    ignore_dirs: List[str] = Field(default_factory=lambda: ["node_modules", ".git"])
    max_workers: Optional[int] = Field(default=None, ge=1)
    isolate: bool = True
    minify: bool = False
    source_map: bool = False
    output: Optional[str] = None
    serve: bool = False
    host: str = "127.0.0.1"
    port: int = Field(default=8000, ge=0, le=65535)

    @field_validator("extensions")
    @classmethod
    def _dotted_extensions(cls, value):
        if not value:
            raise ValueError("at least one extension is required")
        for ext in value:
            if not ext.startswith(".") or len(ext) < 2:
                raise ValueError(f"extension {ext!r} must look like '.js'")
        return value

    @model_validator(mode="after")
    def _source_map_needs_minify(self):
        if self.source_map and not self.minify:
            raise ValueError("source maps are only produced together with minification")
        return self

    def resolved_roots(self, base_dir=None):
        """Absolute, canonical root directories."""
        base_dir = base_dir or os.getcwd()
        return [os.path.realpath(os.path.join(base_dir, root)) for root in self.roots]


def load_config(path=None, overrides=None):
    """
    Load configuration from ``path`` or the first existing default location,
    then apply ``overrides`` (keys whose value is None are ignored).

    Raises:
        ConfigError: If the file is unreadable, not JSON, or fails validation
    """
    data = {}
    paths = [path] if path else CONFIG_PATHS
    for p in paths:
        if os.path.exists(p):
            try:
                with open(p, "r", encoding="utf-8") as f:
                    data = json.load(f)
            except (OSError, json.JSONDecodeError) as e:
                raise ConfigError(f"Cannot read configuration: {e}", module_path=p)
            break
    else:
        if path:
            raise ConfigError("Configuration file not found", module_path=path)

    if not isinstance(data, dict):
        raise ConfigError("Configuration must be a JSON object", module_path=path)

    if overrides:
        data.update({k: v for k, v in overrides.items() if v is not None})

    try:
        return BundleConfig(**data)
    except ValidationError as e:
        raise ConfigError(
            "Invalid configuration",
            suggestion="; ".join(
                f"{'.'.join(str(part) for part in err['loc']) or 'config'}: {err['msg']}"
                for err in e.errors()
            ),
        )
