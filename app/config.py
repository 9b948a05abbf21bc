"""
Application configuration
"""
from typing import Dict

from pydantic_settings import BaseSettings

from feature_resolver.policy.overrides import parse_override_items  # type: ignore


class Settings(BaseSettings):
    """Application settings"""

    # API
    API_HOST: str = "0.0.0.0"
    API_PORT: int = 8080
    API_TITLE: str = "Feature Resolver API"
    API_VERSION: str = "0.1.0"

    # Derivation for this process
    FEATURES_PROFILE: str | None = None          # None → FULL or PORTABLE by platform
    FEATURES_OVERRIDES: str = ""                 # "debug=on,assertions=on"
    FEATURES_FACTS_FILE: str | None = None       # recorded facts instead of probing the host
    FEATURES_OUTPUT_DIR: str | None = None       # write resolved_config.json + features.h at startup
    FEATURES_MACRO_PREFIX: str = "USE_"

    @property
    def overrides(self) -> Dict[str, bool]:
        """FEATURES_OVERRIDES parsed into flag → bool"""
        return parse_override_items(self.FEATURES_OVERRIDES.split(","))

    class Config:
        env_file = ".env"
        case_sensitive = True


settings = Settings()
