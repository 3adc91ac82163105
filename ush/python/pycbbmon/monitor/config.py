import logging
import os
from dataclasses import dataclass
from typing import Optional

import yaml

logger = logging.getLogger("CollectorConfig")

DEFAULT_PROGRAM_DATA = r"C:\ProgramData\CloudBerry Backup Enterprise Edition"
CONFIG_SECTION = "cbbmonitor"
PROGRAM_DATA_ENV = "CBB_PROGRAM_DATA"

TRUE_STRINGS = {"true", "yes", "on", "1"}
FALSE_STRINGS = {"false", "no", "off", "0"}


def parse_bool(key: str, value) -> bool:
    """YAML booleans, or their quoted spellings. Anything else is rejected."""
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in TRUE_STRINGS:
            return True
        if lowered in FALSE_STRINGS:
            return False
    raise ValueError(f"Config key '{key}' must be true or false, got {value!r}")


@dataclass
class CollectorConfig:
    program_data: str = DEFAULT_PROGRAM_DATA
    hostname: Optional[str] = None
    metric_prefix: str = "cloudberry"
    file_operations: bool = False

    @classmethod
    def from_dict(cls, cfg: dict) -> "CollectorConfig":
        known = {k: v for k, v in cfg.items() if k in cls.__dataclass_fields__}
        unknown = sorted(set(cfg) - set(known))
        if unknown:
            logger.warning(f"Ignoring unknown config keys: {', '.join(unknown)}")
        config = cls(**known)
        config.file_operations = parse_bool("file_operations", config.file_operations)
        return config


def load_config(config_path: Optional[str] = None, environ=None) -> CollectorConfig:
    """
    Build the collector configuration.

    Precedence, lowest first: built-in defaults, the 'cbbmonitor' section
    of the YAML file, the CBB_PROGRAM_DATA environment variable.
    """
    environ = os.environ if environ is None else environ
    section = {}
    if config_path:
        with open(config_path, 'r') as f:
            try:
                raw = yaml.safe_load(f) or {}
            except yaml.YAMLError as e:
                raise ValueError(f"Config file {config_path} is not valid YAML: {e}") from e
        if not isinstance(raw, dict):
            raise ValueError(f"Config file {config_path} is not a mapping")
        section = raw.get(CONFIG_SECTION) or {}
        if not isinstance(section, dict):
            raise ValueError(f"Section '{CONFIG_SECTION}' in {config_path} is not a mapping")

    config = CollectorConfig.from_dict(section)
    if environ.get(PROGRAM_DATA_ENV):
        config.program_data = environ[PROGRAM_DATA_ENV]
    return config
