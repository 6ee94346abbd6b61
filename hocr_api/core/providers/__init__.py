"""
Provider Layer - Factory Functions.

Provides mode-switchable access to providers based on HOCR_MODE env var.

Providers:
- Search: highlighted full-text search (Solr over HTTP in both modes)
- Repository: document loading (directory of layers local, object store remote)
"""

import logging
from typing import Optional

from hocr_api.core.config import get_settings
from hocr_api.core.providers.base import (
    DocumentHandle,
    DocumentRepository,
    PositionalLayer,
    SearchProvider,
)

logger = logging.getLogger(__name__)

# Singleton cache
_search_provider: Optional[SearchProvider] = None
_repository_provider: Optional[DocumentRepository] = None


def get_search() -> SearchProvider:
    """Get highlighted search provider (SolrSearch)."""
    global _search_provider

    if _search_provider is None:
        from hocr_api.core.providers.solr import SolrSearch
        logger.info("Initializing SolrSearch")
        _search_provider = SolrSearch()

    return _search_provider


def get_repository() -> DocumentRepository:
    """Get document repository (FilesystemRepository local, HttpRepository remote)."""
    global _repository_provider

    if _repository_provider is None:
        settings = get_settings()

        if settings.hocr_mode == "local":
            from hocr_api.core.providers.local import FilesystemRepository
            logger.info("Initializing FilesystemRepository (local mode)")
            _repository_provider = FilesystemRepository()
        else:
            from hocr_api.core.providers.remote import HttpRepository
            logger.info("Initializing HttpRepository (remote mode)")
            _repository_provider = HttpRepository()

    return _repository_provider


async def reset_providers() -> None:
    """Close and reset all provider singletons (on shutdown, for testing or mode switching)."""
    global _search_provider, _repository_provider

    logger.info("Resetting all provider singletons")

    if _search_provider:
        await _search_provider.close()
        _search_provider = None
    if _repository_provider:
        await _repository_provider.close()
        _repository_provider = None

    # Clear settings cache so new env vars are picked up
    get_settings.cache_clear()


__all__ = [
    # Factory functions
    "get_search",
    "get_repository",
    "reset_providers",
    # Base classes (for type hints)
    "SearchProvider",
    "DocumentRepository",
    "PositionalLayer",
    "DocumentHandle",
]
