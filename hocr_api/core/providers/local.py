"""Local Repository Provider - Reads positional layers from a directory tree."""

import logging
from pathlib import Path
from typing import Optional
from urllib.parse import quote

from hocr_api.core.config import get_settings
from hocr_api.core.errors import CollaboratorUnavailable
from hocr_api.core.providers.base import DocumentHandle, DocumentRepository
from hocr_api.core.providers.layer import WordLayer

logger = logging.getLogger(__name__)

LAYER_FILENAME = "hocr.json"


class FilesystemRepository(DocumentRepository):
    """
    Document repository for local deployment.

    Each document is a directory named after its url-quoted id; the
    positional layer, when the document has one, is `hocr.json` inside it.
    """

    def __init__(self, base_dir: Optional[str] = None):
        settings = get_settings()
        self.base_dir = Path(base_dir or settings.layer_dir)

    def _document_dir(self, document_id: str) -> Path:
        return self.base_dir / quote(document_id, safe="")

    async def load(self, document_id: str) -> Optional[DocumentHandle]:
        doc_dir = self._document_dir(document_id)
        if not doc_dir.is_dir():
            return None

        layer_path = doc_dir / LAYER_FILENAME
        if not layer_path.is_file():
            return DocumentHandle(document_id=document_id)

        try:
            layer = WordLayer.from_json(layer_path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            logger.error(f"Failed to read positional layer {layer_path}: {e}")
            raise CollaboratorUnavailable("repository", str(e)) from e

        return DocumentHandle(document_id=document_id, layer=layer)
