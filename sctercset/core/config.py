"""sctercset runtime configuration and settings."""
import os
from dataclasses import dataclass, field, fields, replace
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from sctercset.core.errors import ConfigError

DEFAULT_REGISTRY = Path.home() / "scterc_set" / "scterc_conf.csv"
DEFAULT_DEVICE_PATTERNS = ["/dev/sd[a-z]", "/dev/sd[a-z][a-z]"]

# Default config search paths (ordered by proximity to current run)
CONFIG_PATHS = [
    "./sctercset.yml",
    "/etc/sctercset/sctercset.yml",
]


@dataclass
class SctercsetConfig:
    """Runtime configuration for sctercset.

    Attributes:
        registry_path: CSV file recording every drive seen so far
        smartctl: smartctl executable
        fast_recovery_centiseconds: SCT ERC read/write timeout for drives that support it (70 = 7s)
        host_timeout_seconds: Linux SCSI command timeout for drives without SCT ERC
        device_patterns: Glob patterns enumerated when no devices are given
        sysfs_block_root: Root of the block device tree in sysfs
        command_timeout: Timeout in seconds for a single smartctl invocation
    """

    registry_path: Path = DEFAULT_REGISTRY
    smartctl: str = "smartctl"
    fast_recovery_centiseconds: int = 70
    host_timeout_seconds: int = 180
    device_patterns: List[str] = field(default_factory=lambda: list(DEFAULT_DEVICE_PATTERNS))
    sysfs_block_root: Path = Path("/sys/block")
    command_timeout: int = 30

    @classmethod
    def from_env(cls) -> "SctercsetConfig":
        """Create config from environment variables.

        Environment variables:
            SCTERCSET_REGISTRY: Registry CSV path
            SCTERCSET_SMARTCTL: smartctl executable
            SCTERCSET_FAST_RECOVERY_CS: SCT ERC timeout in centiseconds
            SCTERCSET_HOST_TIMEOUT: SCSI command timeout in seconds
            SCTERCSET_DEVICE_PATTERNS: Comma separated device globs
            SCTERCSET_SYSFS_BLOCK: sysfs block root
            SCTERCSET_COMMAND_TIMEOUT: smartctl timeout in seconds
        """
        patterns = os.getenv("SCTERCSET_DEVICE_PATTERNS")
        try:
            return cls(
                registry_path=Path(os.getenv("SCTERCSET_REGISTRY", str(DEFAULT_REGISTRY))).expanduser(),
                smartctl=os.getenv("SCTERCSET_SMARTCTL", "smartctl"),
                fast_recovery_centiseconds=int(os.getenv("SCTERCSET_FAST_RECOVERY_CS", 70)),
                host_timeout_seconds=int(os.getenv("SCTERCSET_HOST_TIMEOUT", 180)),
                device_patterns=(
                    [p.strip() for p in patterns.split(",") if p.strip()]
                    if patterns else list(DEFAULT_DEVICE_PATTERNS)
                ),
                sysfs_block_root=Path(os.getenv("SCTERCSET_SYSFS_BLOCK", "/sys/block")),
                command_timeout=int(os.getenv("SCTERCSET_COMMAND_TIMEOUT", 30)),
            )
        except ValueError as e:
            raise ConfigError(f"Invalid numeric setting in environment: {e}") from e

    def merge(self, values: Dict[str, Any]) -> "SctercsetConfig":
        """Return a copy with values from a config file applied."""
        known = {f.name for f in fields(self)}
        unknown = sorted(set(values) - known)
        if unknown:
            raise ConfigError(f"Unknown config keys: {', '.join(unknown)}")

        updates: Dict[str, Any] = {}
        for key, value in values.items():
            if key in ("registry_path", "sysfs_block_root"):
                updates[key] = Path(str(value)).expanduser()
            elif key in ("fast_recovery_centiseconds", "host_timeout_seconds", "command_timeout"):
                try:
                    updates[key] = int(value)
                except (TypeError, ValueError) as e:
                    raise ConfigError(f"{key} must be an integer, got {value!r}") from e
            elif key == "device_patterns":
                if isinstance(value, str):
                    value = [value]
                if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
                    raise ConfigError("device_patterns must be a list of glob patterns")
                updates[key] = value
            else:
                updates[key] = str(value)
        return replace(self, **updates)


def find_config(config_path: Optional[str] = None) -> Optional[Path]:
    """Locate the sctercset config file, if any."""
    if config_path:
        return Path(config_path)

    if env_config := os.environ.get("SCTERCSET_CONFIG"):
        return Path(env_config)

    for path in CONFIG_PATHS:
        if Path(path).exists():
            return Path(path)

    return None


def load_config(config_path: Optional[str] = None) -> SctercsetConfig:
    """Build the effective configuration: defaults, then environment, then YAML file."""
    config = SctercsetConfig.from_env()

    path = find_config(config_path)
    if path is None:
        return config
    if not path.exists():
        raise ConfigError(f"Config file not found: {path}")

    with open(path) as f:
        try:
            raw = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid YAML in {path}: {e}") from e

    if raw is None:
        return config
    if not isinstance(raw, dict):
        raise ConfigError(f"Config file {path} must contain a mapping")

    return config.merge(raw)

