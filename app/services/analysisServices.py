import asyncio
import logging
from typing import Any, Dict, Optional

import httpx

from app.core.config import Settings, settings as default_settings
from app.core.errors import (
    AnalysisTimeout,
    HttpError,
    InvalidResponse,
    NetworkError,
)
from app.schemas.state import SelectedImage

logger = logging.getLogger(__name__)

class AnalysisClient:
    """
    Talks to the remote analysis service.
    One POST per submission, never retried; errors are mapped onto the
    ScreeningError taxonomy so the controller can show them as-is.
    """

    def __init__(self, http: httpx.AsyncClient, config: Optional[Settings] = None):
        self.http = http
        self.config = config or default_settings

    async def submit(self, image: SelectedImage) -> Dict[str, Any]:
        files = {
            self.config.IMAGE_FIELD_NAME: (image.name, image.data, image.content_type),
        }
        url = self.config.ANALYZE_URL
        timeout = self.config.REQUEST_TIMEOUT_SECONDS

        logger.info("Submitting %s (%d bytes) to %s", image.name, image.size, url)
        try:
            # wait_for cancels the in-flight request when the timer wins
            response = await asyncio.wait_for(self.http.post(url, files=files), timeout=timeout)
        except (asyncio.TimeoutError, httpx.TimeoutException):
            logger.warning("Analysis request timed out after %ss", timeout)
            raise AnalysisTimeout() from None
        except httpx.TransportError as e:
            logger.error("Analysis service unreachable: %s", e)
            raise NetworkError() from e

        if not response.is_success:
            raise self._http_error(response)

        try:
            data = response.json()
        except ValueError as e:
            raise InvalidResponse() from e

        if not isinstance(data, dict):
            raise InvalidResponse()

        if data.get("error"):
            raise InvalidResponse(str(data["error"]))

        logger.info("Analysis finished with status %r", data.get("status"))
        return data

    async def check_health(self) -> bool:
        try:
            response = await self.http.get(
                self.config.HEALTH_URL,
                timeout=self.config.HEALTH_TIMEOUT_SECONDS,
            )
        except Exception as e:
            logger.error("Health check failed: %s", e)
            return False
        return response.is_success

    @staticmethod
    def _http_error(response: httpx.Response) -> HttpError:
        detail = None
        try:
            body = response.json()
            if isinstance(body, dict) and body.get("error"):
                detail = str(body["error"])
        except ValueError:
            pass

        error = HttpError.from_status(response.status_code, response.reason_phrase, detail)
        logger.error("Analysis service answered %d: %s", response.status_code, detail or error.message)
        return error
