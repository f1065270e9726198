"""Configuration model for layoutguard."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

from layoutguard.errors import ConfigError

CONFIG_FILENAME = "layoutguard.config.json"

BrowserName = Literal["chromium", "firefox", "webkit"]


class LayoutGuardConfig(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    # Discovery
    test_match: list[str] = Field(
        default_factory=lambda: ["**/*.spec.py"], alias="testMatch"
    )

    # Navigation
    base_url: str = Field(default="http://localhost:3000", alias="baseUrl")

    # Browser
    browser_name: BrowserName = Field(default="chromium", alias="browserName")

    # Comparison: aggregate mismatch-ratio tolerance vs per-pixel colour sensitivity
    diff_threshold: float = Field(default=0.01, alias="diffThreshold")
    pixel_threshold: float = Field(default=0.01, alias="pixelThreshold")

    @model_validator(mode="before")
    @classmethod
    def lift_playwright_options(cls, data: Any) -> Any:
        """Accept the nested ``{"playwright": {"browserName": ...}}`` form."""
        if isinstance(data, dict) and isinstance(data.get("playwright"), dict):
            data = dict(data)
            nested = data.pop("playwright")
            if "browserName" in nested and "browserName" not in data:
                data["browserName"] = nested["browserName"]
        return data

    @field_validator("diff_threshold", "pixel_threshold")
    @classmethod
    def check_ratio(cls, v: float) -> float:
        if not 0 <= v <= 1:
            raise ValueError("threshold must be between 0 and 1")
        return v

    @field_validator("test_match")
    @classmethod
    def check_patterns(cls, v: list[str]) -> list[str]:
        if not v:
            raise ValueError("testMatch needs at least one glob pattern")
        return v

    @classmethod
    def load(cls, path: str | Path) -> "LayoutGuardConfig":
        """Load config from a JSON file, applying defaults for missing fields."""
        path = Path(path)
        if not path.exists():
            raise ConfigError(
                f"{path} not found. Run 'layoutguard init' to create one."
            )
        try:
            with open(path) as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise ConfigError(f"Failed to read {path}: {e}") from e
        if not isinstance(data, dict):
            raise ConfigError(f"{path} must contain a JSON object")
        try:
            return cls(**data)
        except ValidationError as e:
            raise ConfigError(f"Invalid configuration in {path}: {e}") from e

    def save(self, path: str | Path) -> None:
        """Save config to a JSON file (camelCase keys)."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w") as f:
            json.dump(self.model_dump(by_alias=True), f, indent=2)
