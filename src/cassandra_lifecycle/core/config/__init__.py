"""Settings for the lifecycle controller."""

from .loader import ENV_PREFIX, env_overrides, load_lifecycle_config
from .models import LifecycleConfig

__all__ = ["ENV_PREFIX", "LifecycleConfig", "env_overrides", "load_lifecycle_config"]
