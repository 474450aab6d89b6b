from settings.config import (
    CONFIG_FILENAME,
    ConfigError,
    PublishConfig,
    load_config,
    resolve_repository_dir,
)

__all__ = [
    "CONFIG_FILENAME",
    "ConfigError",
    "PublishConfig",
    "load_config",
    "resolve_repository_dir",
]
