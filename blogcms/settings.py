from __future__ import annotations

import pydantic
import pydantic_settings

__all__ = ("DEFAULT_DATABASE", "Settings", "get_settings", "database_path")

DEFAULT_DATABASE = "./cms.db"


class Settings(pydantic_settings.BaseSettings):
    """Runtime configuration, read from ``CMS_*`` environment variables.

    ``DATABASE_URL`` is accepted as an alias for ``CMS_DATABASE``.
    """

    model_config = pydantic_settings.SettingsConfigDict(env_prefix="CMS_")

    database: str = pydantic.Field(
        DEFAULT_DATABASE,
        validation_alias=pydantic.AliasChoices("cms_database", "database_url"),
    )
    timeout: float = 10.0
    verbose: bool = False


def get_settings(**overrides) -> Settings:
    """Load the settings from the environment, letting explicit overrides win."""
    overrides = {k: v for k, v in overrides.items() if v is not None}
    settings = Settings().model_copy(update=overrides)
    database = database_path(settings.database or DEFAULT_DATABASE)
    return settings.model_copy(update={"database": database})


def database_path(url: str) -> str:
    """Strip a ``sqlite://`` scheme from a database URL, leaving a path for sqlite3.

    Examples:
        >>> database_path("sqlite://./blog.db")
        './blog.db'
        >>> database_path("sqlite:////var/lib/cms.db")
        '/var/lib/cms.db'
        >>> database_path("blog.db")
        'blog.db'
    """
    for scheme in ("sqlite3://", "sqlite://"):
        if url.startswith(scheme):
            path = url[len(scheme) :]
            # sqlite:///relative.db and sqlite:////absolute.db
            return path[1:] if path.startswith("/") else path
    return url
