import os

_SETTINGS_BY_ENV = {
    "prod": "config.production",
    "production": "config.production",
    "test": "config.testing",
    "testing": "config.testing",
    "dev": "config.development",
    "development": "config.development",
}


def get_settings_module() -> str:
    """Settings module named by APP_ENV; unknown or missing values fall back to development."""
    env = os.getenv("APP_ENV", "development").strip().lower()
    return _SETTINGS_BY_ENV.get(env, "config.development")
