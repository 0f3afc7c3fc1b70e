"""Configuration package exports."""

from .loader import ConfigLocator, ConfigRepository
from .models import (
    DEFAULT_USER_AGENT,
    CatalogRules,
    GlobalConfig,
    IndexRules,
    PageRules,
    ProfileMode,
    SiteProfile,
)

__all__ = [
    "CatalogRules",
    "ConfigLocator",
    "ConfigRepository",
    "DEFAULT_USER_AGENT",
    "GlobalConfig",
    "IndexRules",
    "PageRules",
    "ProfileMode",
    "SiteProfile",
]
