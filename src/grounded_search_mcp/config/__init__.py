from .loader import apply_overrides, check_query_template, load_settings, require_api_key, validate_settings
from .models import THINKING_LEVELS, ConfigError, GeminiSettings, HttpSettings, Settings

__all__ = [
    "Settings",
    "GeminiSettings",
    "HttpSettings",
    "ConfigError",
    "THINKING_LEVELS",
    "load_settings",
    "apply_overrides",
    "validate_settings",
    "check_query_template",
    "require_api_key",
]
