"""Settings for the elasticwhere compiler."""

from pydantic_settings import BaseSettings, SettingsConfigDict


class ElasticWhereSettings(BaseSettings):
    """elasticwhere configuration settings."""

    # Capability flags normally owned by the connection layer
    BYPASS_MAP_VALIDATION: bool = False
    ALLOW_ID_SORT: bool = False

    # Keyword resolution
    KEYWORD_SUFFIX: str = "keyword"

    # Compiler defaults
    INNER_HITS_DEFAULT_SIZE: int = 100
    AGGS_BUCKET_SIZE: int = 10000

    LOG_LEVEL: str = "INFO"

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")


settings = ElasticWhereSettings()
