import os
from pathlib import Path

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, Field

DEFAULT_STATE_DIR = Path(".showrunner")


class Config(BaseModel):
    """Configuration for a ShowRunner workspace."""

    name: str = Field("ShowRunner", description="Name shown in the dashboard header.")
    state_dir: Path = Field(
        DEFAULT_STATE_DIR, description="Directory holding the persisted JSON blobs."
    )
    use_default_dataset: bool = Field(
        True,
        description="Seed absent or unreadable collections from the bundled dataset.",
    )
    ai_model: str = Field("gpt-4o-mini", description="Chat model used for rider import.")
    ai_api_key: str | None = Field(
        None, description="OpenAI API key; falls back to OPENAI_API_KEY."
    )

    def api_key(self) -> str | None:
        """The configured key, else the environment's (after reading any .env file)."""
        if self.ai_api_key:
            return self.ai_api_key
        load_dotenv()
        return os.environ.get("OPENAI_API_KEY")


def resolve_config_paths(config_data: dict, config_path: Path) -> dict:
    """Resolve a relative state directory against the configuration file directory.

    Args:
        config_data: Raw configuration dictionary.
        config_path: Path to the configuration file.

    Returns:
        dict: Configuration data with resolved paths.
    """
    if not config_data or not config_path:
        return config_data or {}

    resolved_data = dict(config_data)
    value = resolved_data.get("state_dir")
    if value:
        path = Path(value)
        if not path.is_absolute():
            resolved_data["state_dir"] = str((config_path.parent / path).resolve())
    return resolved_data


def read_config(config_path: Path | None) -> Config:
    """
    Reads a YAML configuration file; no path gives the defaults.

    Raises:
        OSError: If the file cannot be read.
        yaml.YAMLError: If the file is not valid YAML.
        pydantic.ValidationError: If a value has the wrong type.
    """
    if config_path is None:
        return Config()
    with open(config_path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ValueError("top level must be a mapping")
    return Config(**resolve_config_paths(data, Path(config_path)))
