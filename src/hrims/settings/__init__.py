import os


def get_settings_module() -> str:
    # APP_ENV selects the settings module; anything unknown means development.
    env = os.getenv("APP_ENV", "development").lower()

    if env in {"prod", "production"}:
        return "hrims.settings.production"

    if env in {"test", "testing"}:
        return "hrims.settings.testing"

    return "hrims.settings.development"
