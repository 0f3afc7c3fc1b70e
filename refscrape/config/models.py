"""Pydantic models used across refscrape configuration flow."""

from __future__ import annotations

from enum import Enum
from pathlib import Path
from typing import Any, Literal

from pydantic import BaseModel, Field, field_validator, model_validator

DEFAULT_USER_AGENT = "refscrape/1.0 (+https://github.com/refscrape/refscrape)"


class ProfileMode(str, Enum):
    """How a profile turns pages into records."""

    PAGES = "pages"
    CATALOG = "catalog"


class IndexRules(BaseModel):
    """Selectors for the index page enumerating detail pages."""

    heading_selector: str = "h2"
    section_names: list[str] = Field(default_factory=list)
    section_keyword: str | None = "instructions"
    link_selector: str = "tr td:first-child a"

    def is_section(self, heading: str) -> bool:
        if heading in self.section_names:
            return True
        if self.section_keyword:
            return self.section_keyword.lower() in heading.lower()
        return False


def _default_exception_modes() -> dict[str, str]:
    return {
        "64-Bit Mode": "64BitMode",
        "Protected Mode": "protectedMode",
        "Real-Address Mode": "realAddressMode",
        "Virtual-8086 Mode": "virtual8086Mode",
        "Compatibility Mode": "compatibilityMode",
    }


def _default_text_sections() -> dict[str, str]:
    return {
        "descriptionText": "description",
        "operationText": "operation",
        "flagsAffectedText": "flags-affected",
    }


class PageRules(BaseModel):
    """Selectors and field names used on every detail page."""

    title_field: str = "instructionName"
    title_selector: str = "h1"
    primary_table_field: str = "detailsTable"
    secondary_table_field: str = "operandEncodingTable"
    secondary_header_selector: str | None = "h2#instruction-operand-encoding"
    secondary_sentinel: str | None = "Op/En"
    section_heading_tag: str = "h2"
    text_sections: dict[str, str] = Field(default_factory=_default_text_sections)
    exceptions_field: str = "exceptions"
    exceptions_selector: str | None = "h2.exceptions"
    exception_modes: dict[str, str] = Field(default_factory=_default_exception_modes)
    duplicate_modes: Literal["append", "replace"] = "append"

    @field_validator("section_heading_tag")
    @classmethod
    def _lower_tag(cls, value: str) -> str:
        tag = value.strip().lower()
        if not tag:
            raise ValueError("section_heading_tag cannot be empty")
        return tag


class CatalogRules(BaseModel):
    """Row selector for single-page catalogs (one record per table row)."""

    row_selector: str = "table.wikitable tbody tr"
    min_cells: int = 6
    anchor_prefix: str = ""

    @field_validator("min_cells")
    @classmethod
    def _check_cells(cls, value: int) -> int:
        if value < 6:
            raise ValueError("min_cells must be >= 6 (mnemonic..description columns)")
        return value


class SiteProfile(BaseModel):
    """Full definition of one documentation site to extract."""

    profile_name: str
    mode: ProfileMode = ProfileMode.PAGES
    index_url: str
    base_url: str | None = None
    site_prefix: str | None = None
    output_file: str | None = None
    identifier_key: str = "url"
    request_timeout: float | None = None
    max_workers: int | None = None
    index: IndexRules = Field(default_factory=IndexRules)
    page: PageRules = Field(default_factory=PageRules)
    catalog: CatalogRules = Field(default_factory=CatalogRules)

    @model_validator(mode="after")
    def _validate_urls(self) -> "SiteProfile":
        if not self.index_url.startswith(("http://", "https://")):
            raise ValueError("index_url must be an absolute http(s) URL")
        if self.site_prefix and not self.base_url:
            raise ValueError("site_prefix requires base_url")
        if self.max_workers is not None and self.max_workers < 1:
            raise ValueError("max_workers must be >= 1")
        if self.request_timeout is not None and self.request_timeout <= 0:
            raise ValueError("request_timeout must be > 0")
        return self

    def resolved_output_path(self, base_dir: Path) -> Path:
        """Return the dataset path relative to the outputs directory."""

        name = self.output_file or f"{self.profile_name}.json"
        path = Path(name)
        if not path.is_absolute():
            return (base_dir / path).resolve()
        return path


class GlobalConfig(BaseModel):
    """Global controls shared across profiles."""

    user_agent: str = DEFAULT_USER_AGENT
    request_timeout: float = 15.0
    max_workers: int = 50
    enable_progress_bar: bool = True
    max_url_display_length: int = 60
    outputs_dir: Path = Field(default=Path("data/outputs"))
    profiles_dir: Path = Field(default=Path("data/profiles"))

    @field_validator("outputs_dir", "profiles_dir", mode="before")
    @classmethod
    def _coerce_dirs(cls, value: Any) -> Path:
        return Path(value)

    @model_validator(mode="after")
    def _validate_limits(self) -> "GlobalConfig":
        if self.max_workers < 1:
            raise ValueError("max_workers must be >= 1")
        if self.request_timeout <= 0:
            raise ValueError("request_timeout must be > 0")
        if not self.user_agent.strip():
            raise ValueError("user_agent cannot be empty")
        return self


__all__ = [
    "CatalogRules",
    "DEFAULT_USER_AGENT",
    "GlobalConfig",
    "IndexRules",
    "PageRules",
    "ProfileMode",
    "SiteProfile",
]
