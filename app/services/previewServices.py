import logging
import secrets
from typing import Dict, Optional, Tuple

logger = logging.getLogger(__name__)

PREVIEW_ROUTE = "/preview"

class PreviewStore:
    """
    In-memory preview handles, the server-side counterpart of a browser
    object URL. Each handle is created once and must be released once.
    """

    def __init__(self, route: str = PREVIEW_ROUTE):
        self.route = route.rstrip("/")
        self._items: Dict[str, Tuple[bytes, str]] = {}
        self.created = 0
        self.released = 0

    def __len__(self) -> int:
        return len(self._items)

    def create(self, data: bytes, content_type: str) -> str:
        token = secrets.token_urlsafe(16)
        self._items[token] = (data, content_type)
        self.created += 1
        return f"{self.route}/{token}"

    def get(self, token: str) -> Optional[Tuple[bytes, str]]:
        return self._items.get(token)

    def release(self, url: str) -> bool:
        token = url.rsplit("/", 1)[-1]
        if self._items.pop(token, None) is None:
            logger.warning("Preview %s released twice or never created", url)
            return False
        self.released += 1
        return True

# Shared by every session so /preview/{token} can be served from one place
preview_store = PreviewStore()
