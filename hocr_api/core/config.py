import os
from functools import lru_cache
from typing import Any, Dict, Literal
from pydantic import BaseModel, Field


class HighlightConfig(BaseModel):
    """Highlighting query and snippet-mapping options.

    Passed explicitly into the mapper and the search pipeline.
    """

    ocr_field: str = Field(default="OCR_t", description="Solr field holding the page OCR text")
    id_field: str = Field(default="PID", description="Solr field holding the document identifier")
    rows: int = Field(default=20, ge=1)
    snippets_per_field: int = Field(default=8, ge=1, description="hl.snippets")
    fragment_size: int = Field(default=1, ge=0, description="hl.fragsize")
    highlight_pre: str = "{{{"
    highlight_post: str = "}}}"

    # A word matched by several snippets is assigned to the first one only
    ignore_duplicates: bool = True

    parallel_documents: bool = False
    max_concurrency: int = Field(default=4, ge=1)

    def with_overrides(self, **overrides: Any) -> "HighlightConfig":
        """Return a validated copy; overrides set to None keep the current value."""
        values = self.model_dump()
        values.update({key: value for key, value in overrides.items() if value is not None})
        return HighlightConfig.model_validate(values)


def solr_params(query: str, config: HighlightConfig) -> Dict[str, Any]:
    """Build the highlighted full-text query parameters."""
    return {
        "q": query,
        "fl": config.id_field,
        "rows": config.rows,
        "wt": "json",
        "hl": "true",
        "hl.fl": config.ocr_field,
        "hl.snippets": config.snippets_per_field,
        "hl.fragsize": config.fragment_size,
        "hl.simple.pre": config.highlight_pre,
        "hl.simple.post": config.highlight_post,
    }


class Settings(BaseModel):
    """Application settings with mode-switchable provider configuration."""

    # === MODE SELECTION ===
    hocr_mode: Literal["local", "remote"] = Field(
        default="local",
        description="Repository mode: 'local' (layers on disk) or 'remote' (repository over HTTP)"
    )

    # === API SETTINGS ===
    cors_origins: str = "http://localhost:3000,http://127.0.0.1:3000"
    http_timeout: float = 30.0

    # === COLLABORATORS ===
    solr_url: str = "http://localhost:8983/solr/collection1"
    repository_url: str = "http://localhost:8080/fedora"
    layer_dir: str = "data/layers"

    # === HIGHLIGHTING ===
    highlight_ocr_field: str = "OCR_t"
    highlight_id_field: str = "PID"
    highlight_rows: int = 20
    highlight_snippets_per_field: int = 8
    highlight_fragment_size: int = 1
    highlight_pre: str = "{{{"
    highlight_post: str = "}}}"
    highlight_ignore_duplicates: bool = True
    highlight_parallel_documents: bool = False
    highlight_max_concurrency: int = 4

    def highlight_config(self) -> HighlightConfig:
        return HighlightConfig(
            ocr_field=self.highlight_ocr_field,
            id_field=self.highlight_id_field,
            rows=self.highlight_rows,
            snippets_per_field=self.highlight_snippets_per_field,
            fragment_size=self.highlight_fragment_size,
            highlight_pre=self.highlight_pre,
            highlight_post=self.highlight_post,
            ignore_duplicates=self.highlight_ignore_duplicates,
            parallel_documents=self.highlight_parallel_documents,
            max_concurrency=self.highlight_max_concurrency,
        )


def _env_flag(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


@lru_cache
def get_settings() -> Settings:
    """
    Load settings from environment variables.

    Environment variables override defaults.
    """
    return Settings(
        # Mode
        hocr_mode=os.getenv("HOCR_MODE", "local"),

        # API
        cors_origins=os.getenv("CORS_ALLOW_ORIGINS", "http://localhost:3000,http://127.0.0.1:3000"),
        http_timeout=float(os.getenv("HTTP_TIMEOUT", "30.0")),

        # Collaborators
        solr_url=os.getenv("SOLR_URL", "http://localhost:8983/solr/collection1"),
        repository_url=os.getenv("REPOSITORY_URL", "http://localhost:8080/fedora"),
        layer_dir=os.getenv("LAYER_DIR", "data/layers"),

        # Highlighting
        highlight_ocr_field=os.getenv("HIGHLIGHT_OCR_FIELD", "OCR_t"),
        highlight_id_field=os.getenv("HIGHLIGHT_ID_FIELD", "PID"),
        highlight_rows=int(os.getenv("HIGHLIGHT_ROWS", "20")),
        highlight_snippets_per_field=int(os.getenv("HIGHLIGHT_SNIPPETS_PER_FIELD", "8")),
        highlight_fragment_size=int(os.getenv("HIGHLIGHT_FRAGMENT_SIZE", "1")),
        highlight_pre=os.getenv("HIGHLIGHT_PRE", "{{{"),
        highlight_post=os.getenv("HIGHLIGHT_POST", "}}}"),
        highlight_ignore_duplicates=_env_flag("HIGHLIGHT_IGNORE_DUPLICATES", "true"),
        highlight_parallel_documents=_env_flag("HIGHLIGHT_PARALLEL_DOCUMENTS", "false"),
        highlight_max_concurrency=int(os.getenv("HIGHLIGHT_MAX_CONCURRENCY", "4")),
    )
