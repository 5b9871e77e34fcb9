"""
Configuration management and loading.

Handles the optional YAML settings file, .env loading and credentials.
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Optional

import yaml
from dotenv import load_dotenv

from agent_skills.core.errors import MissingCredentialError

CONFIG_ENV_VAR = "AGENT_SKILLS_CONFIG"
DEFAULT_CONFIG_FILE = "agent-skills.yaml"
DEFAULT_LINEAR_API_URL = "https://api.linear.app/graphql"


def _default_ledger_dir() -> Path:
    return Path.home() / ".cache" / "agent-skills"


@dataclass(frozen=True)
class SkillsConfig:
    """Settings shared by every skill."""
    ledger_dir: Path = field(default_factory=_default_ledger_dir)
    http_timeout: float = 60.0
    embed_target_kb: int = 90
    linear_api_url: str = DEFAULT_LINEAR_API_URL

    def __post_init__(self):
        """Validate numeric settings are positive."""
        if self.http_timeout <= 0:
            raise ValueError("http_timeout must be > 0")
        if self.embed_target_kb <= 0:
            raise ValueError("embed_target_kb must be > 0")

    def ledger_path(self, skill: str) -> Path:
        """Path of the cost ledger for an image-generation skill."""
        return self.ledger_dir / f"{skill}-costs.json"


def load_env(path: Optional[str] = None) -> bool:
    """Load a .env file without overriding variables already set.

    Args:
        path: Explicit .env path; defaults to ./.env

    Returns:
        True if a file was found and loaded
    """
    env_path = Path(path) if path else Path.cwd() / ".env"
    if not env_path.is_file():
        return False
    return load_dotenv(env_path, override=False)


def require_env(name: str, hint: Optional[str] = None) -> str:
    """Return a required environment variable.

    Raises:
        MissingCredentialError: If the variable is unset or empty
    """
    value = os.environ.get(name, "").strip()
    if not value:
        raise MissingCredentialError(name, hint)
    return value


def load_skills_config(path: Optional[str] = None) -> SkillsConfig:
    """Load and validate skill settings from a YAML file.

    The file is looked up at `path`, then $AGENT_SKILLS_CONFIG, then
    ./agent-skills.yaml. When none exists the defaults are returned. An
    explicitly requested file that is missing is an error.

    Args:
        path: Path to YAML configuration file

    Returns:
        Validated SkillsConfig object

    Raises:
        FileNotFoundError: If an explicit config file doesn't exist
        yaml.YAMLError: If YAML is invalid
        ValueError: If configuration is invalid
    """
    explicit = path or os.environ.get(CONFIG_ENV_VAR)
    config_path = Path(explicit) if explicit else Path.cwd() / DEFAULT_CONFIG_FILE

    if not config_path.exists():
        if explicit:
            raise FileNotFoundError(f"Config file not found: {config_path}")
        return SkillsConfig()

    with open(config_path, 'r', encoding='utf-8') as f:
        try:
            raw_config = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise yaml.YAMLError(f"Invalid YAML in config file {config_path}: {e}")

    if raw_config is None:
        return SkillsConfig()
    if not isinstance(raw_config, dict):
        raise ValueError("Configuration must be a mapping")

    return _parse_config(raw_config)


def _parse_config(data: Dict) -> SkillsConfig:
    """Parse and validate the top-level settings mapping.

    Raises:
        ValueError: If a key is unknown or has the wrong type
    """
    allowed_keys = {'ledger_dir', 'http_timeout', 'embed_target_kb', 'linear_api_url'}
    unknown_keys = set(data.keys()) - allowed_keys
    if unknown_keys:
        raise ValueError(f"Unknown configuration keys: {unknown_keys}")

    kwargs = {}

    if 'ledger_dir' in data:
        if not isinstance(data['ledger_dir'], str) or not data['ledger_dir']:
            raise ValueError("'ledger_dir' must be a non-empty string")
        kwargs['ledger_dir'] = Path(data['ledger_dir']).expanduser()

    if 'http_timeout' in data:
        timeout = data['http_timeout']
        if isinstance(timeout, bool) or not isinstance(timeout, (int, float)):
            raise ValueError("'http_timeout' must be a number")
        kwargs['http_timeout'] = float(timeout)

    if 'embed_target_kb' in data:
        target = data['embed_target_kb']
        if isinstance(target, bool) or not isinstance(target, int):
            raise ValueError("'embed_target_kb' must be an integer")
        kwargs['embed_target_kb'] = target

    if 'linear_api_url' in data:
        url = data['linear_api_url']
        if not isinstance(url, str) or not url.startswith(("http://", "https://")):
            raise ValueError("'linear_api_url' must be an http(s) URL")
        kwargs['linear_api_url'] = url

    return SkillsConfig(**kwargs)
