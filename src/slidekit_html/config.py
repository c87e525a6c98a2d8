"""Configuration model for the slidekit-html conversion pipeline.

Provides ``SlideExportConfig`` with all tunable parameters and sensible
defaults, and ``ListConfig`` for global bullet overrides.  Supports loading
overrides from YAML or JSON files via the ``from_file()`` classmethod.
"""

from __future__ import annotations

import json
import pathlib

from pydantic import BaseModel, Field


class ListConfig(BaseModel):
    """Global overrides applied to every bulleted or numbered list.

    ``color`` replaces the marker color of every bullet.  Spacing values are
    in points and replace the paragraph spacing derived from item margins.
    """

    color: str | None = None
    spacing_before: float | None = None
    spacing_after: float | None = None


class SlideExportConfig(BaseModel):
    """All tunable parameters with sensible defaults.

    Override individual values via constructor kwargs or load a complete
    config from a file with ``SlideExportConfig.from_file(path)``.
    """

    # --- Identity ---
    parser_version: str = "slidekit_html:0.1.0"

    # --- Page ---
    page_width_in: float = Field(default=10.0, gt=0)
    page_height_in: float = Field(default=5.625, gt=0)  # 16:9
    file_name: str = "export.pptx"

    # --- Graphics ---
    svg_as_vector: bool = False
    image_supersample: int = Field(default=2, ge=1)
    capture_supersample: int = Field(default=3, ge=1)

    # --- Lists ---
    list_config: ListConfig = Field(default_factory=ListConfig)

    # --- Logging ---
    log_asset_failures: bool = True
    log_draw_commands: bool = False

    @classmethod
    def from_file(cls, path: str) -> SlideExportConfig:
        """Load configuration from a YAML or JSON file.

        File format is detected by extension: ``.yaml`` / ``.yml`` for YAML,
        ``.json`` for JSON.  Any keys present in the file override the
        corresponding defaults; keys not present retain their defaults.
        """
        file_path = pathlib.Path(path)
        if not file_path.exists():
            raise FileNotFoundError(f"Config file not found: {path}")

        suffix = file_path.suffix.lower()

        if suffix in (".yaml", ".yml"):
            try:
                import yaml  # type: ignore[import-untyped]
            except ImportError as exc:
                raise ImportError(
                    "pyyaml is required to load YAML config files. "
                    "Install it with: pip install pyyaml"
                ) from exc
            with open(file_path) as fh:
                data = yaml.safe_load(fh)
        elif suffix == ".json":
            with open(file_path) as fh:
                data = json.load(fh)
        else:
            raise ValueError(
                f"Unsupported config file extension '{suffix}'. "
                "Use .yaml, .yml, or .json."
            )

        if data is None:
            data = {}

        return cls(**data)
