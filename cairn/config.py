"""Configuration management for Cairn."""

from dataclasses import dataclass, field
from pathlib import Path

import platformdirs
import yaml

from cairn.errors import ConfigError

DEFAULT_BRANCH = "master"

_SETTABLE_KEYS = {
    "user.name": "user_name",
    "user.email": "user_email",
    "core.default_branch": "default_branch",
}


def _attribute_for(key: str) -> str:
    if key not in _SETTABLE_KEYS:
        raise ConfigError(f"Unknown configuration key: {key}")
    return _SETTABLE_KEYS[key]


@dataclass
class RepoConfig:
    """Per-repository configuration (.cairn/config.yaml)."""
    
    cairn_version: str = "1"
    repo_root: Path = field(default_factory=Path.cwd)
    default_branch: str = DEFAULT_BRANCH
    
    # Identity used for commits; falls back to the global config
    user_name: str | None = None
    user_email: str | None = None
    
    # Patterns skipped when a directory is staged
    ignore_patterns: list[str] = field(default_factory=lambda: [
        "__pycache__/", "*.pyc", "*.tmp",
    ])
    
    @property
    def config_path(self) -> Path:
        """Path to the repository config file."""
        return self.repo_root / ".cairn" / "config.yaml"
    
    def save(self) -> None:
        """Save configuration to file."""
        self.config_path.parent.mkdir(parents=True, exist_ok=True)
        
        data = {
            "cairn-version": self.cairn_version,
            "core": {
                "default_branch": self.default_branch,
            },
            "user": {
                "name": self.user_name,
                "email": self.user_email,
            },
            "ignore": self.ignore_patterns,
        }
        
        with open(self.config_path, "w") as f:
            yaml.safe_dump(data, f, sort_keys=False)
    
    @classmethod
    def load(cls, repo_root: Path) -> "RepoConfig":
        """Load configuration from a repository.
        
        A missing file yields the defaults.
        
        Raises:
            ConfigError: If the file is not valid YAML or not a mapping
        """
        config = cls(repo_root=repo_root)
        
        if not config.config_path.exists():
            return config
        
        try:
            with open(config.config_path) as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid configuration in {config.config_path}: {e}") from e
        
        if not isinstance(data, dict):
            raise ConfigError(f"Configuration in {config.config_path} must be a mapping")
        
        config.cairn_version = str(data.get("cairn-version", "1"))
        
        core = data.get("core") or {}
        config.default_branch = core.get("default_branch", config.default_branch)
        
        user = data.get("user") or {}
        config.user_name = user.get("name")
        config.user_email = user.get("email")
        
        if "ignore" in data:
            config.ignore_patterns = list(data["ignore"] or [])
        
        return config
    
    def get_value(self, key: str) -> str | None:
        """Read a dotted key such as ``user.name``."""
        return getattr(self, _attribute_for(key))
    
    def set_value(self, key: str, value: str) -> None:
        """Set a dotted key such as ``user.name``."""
        setattr(self, _attribute_for(key), value)


@dataclass
class GlobalConfig:
    """Global Cairn configuration (per machine)."""
    
    user_name: str | None = None
    user_email: str | None = None
    
    @property
    def config_path(self) -> Path:
        """Path to global config file."""
        config_dir = Path(platformdirs.user_config_dir("Cairn", "Cairn"))
        return config_dir / "config.yaml"
    
    def save(self) -> None:
        """Save global configuration."""
        self.config_path.parent.mkdir(parents=True, exist_ok=True)
        
        data = {
            "user": {
                "name": self.user_name,
                "email": self.user_email,
            },
        }
        
        with open(self.config_path, "w") as f:
            yaml.safe_dump(data, f, sort_keys=False)
    
    @classmethod
    def load(cls) -> "GlobalConfig":
        """Load global configuration."""
        config = cls()
        
        if not config.config_path.exists():
            return config
        
        try:
            with open(config.config_path) as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid configuration in {config.config_path}: {e}") from e
        
        if not isinstance(data, dict):
            raise ConfigError(f"Configuration in {config.config_path} must be a mapping")
        
        user = data.get("user") or {}
        config.user_name = user.get("name")
        config.user_email = user.get("email")
        
        return config


def resolve_identity(repo_config: RepoConfig, global_config: GlobalConfig) -> str:
    """Build the ``Name <email>`` author line.
    
    Repository settings take precedence over global ones.
    
    Raises:
        ConfigError: If no name or email is configured anywhere
    """
    name = repo_config.user_name or global_config.user_name
    email = repo_config.user_email or global_config.user_email
    
    if not name or not email:
        raise ConfigError(
            "Author identity unknown; run 'cairn config user.name <name>' "
            "and 'cairn config user.email <email>'"
        )
    
    return f"{name} <{email}>"
