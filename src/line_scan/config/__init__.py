from .loader import ConfigError, default_config, load_config

# Config exports are intentionally small.
__all__ = ["ConfigError", "default_config", "load_config"]
