import logging
from typing import Optional

import backoff
import httpx

from pgxrisk.core.config import get_settings
from pgxrisk.schemas.pharma_schema import ExplanationRequest

logger = logging.getLogger(__name__)

QUOTA_EXCEEDED_MESSAGE = (
    "Explanation service quota exceeded. Generated explanations will be available later."
)

_QUOTA_MARKERS = ("quota", "429", "exceeded")


def is_quota_error(e: Exception) -> bool:
    """429 responses, or error bodies that mention a quota, are not worth retrying."""
    if not isinstance(e, httpx.HTTPStatusError):
        return False
    if e.response.status_code == 429:
        return True
    body = e.response.text.lower()
    return any(marker in body for marker in _QUOTA_MARKERS)


class ExplanationClient:
    """
    Client for the remote explanation service.

    One JSON POST per drug. A failed attempt is retried after a fixed delay
    (no jitter); quota errors are not retried. ``generate`` never raises:
    any failure comes back as ``None`` and the caller keeps its template text.
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        retry_delay: Optional[float] = None,
        max_retries: Optional[int] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        settings = get_settings()
        self.base_url = base_url or settings.EXPLANATION_API_URL
        self.timeout = settings.EXPLANATION_TIMEOUT_SECONDS if timeout is None else timeout
        self.retry_delay = settings.EXPLANATION_RETRY_DELAY_SECONDS if retry_delay is None else retry_delay
        self.max_retries = settings.EXPLANATION_MAX_RETRIES if max_retries is None else max_retries
        self._transport = transport
        self.quota_exceeded_message: Optional[str] = None

        self._post_with_retry = backoff.on_exception(
            backoff.constant,
            (httpx.RequestError, httpx.HTTPStatusError),
            max_tries=self.max_retries + 1,
            interval=self.retry_delay,
            jitter=None,
            giveup=is_quota_error,
        )(self._post)

    @property
    def enabled(self) -> bool:
        return bool(self.base_url)

    async def _post(self, payload: dict) -> dict:
        async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
            response = await client.post(self.base_url, json=payload)
            response.raise_for_status()
            return response.json()

    async def generate(self, request: ExplanationRequest) -> Optional[dict]:
        if not self.enabled:
            return None

        logger.info("Requesting explanation for %s (%s)", request.drug, request.preferred_language)
        try:
            data = await self._post_with_retry(request.model_dump())
        except httpx.HTTPStatusError as e:
            if is_quota_error(e):
                logger.warning("Explanation quota exceeded for %s", request.drug)
                self.quota_exceeded_message = QUOTA_EXCEEDED_MESSAGE
            else:
                logger.warning("Explanation service returned %s for %s", e.response.status_code, request.drug)
            return None
        except httpx.RequestError as e:
            logger.warning("Error communicating with explanation service for %s: %s", request.drug, e)
            return None
        except ValueError as e:
            logger.warning("Explanation service sent invalid JSON for %s: %s", request.drug, e)
            return None

        if not isinstance(data, dict):
            logger.warning("Explanation service sent a non-object response for %s", request.drug)
            return None

        logger.info("Explanation received for %s", request.drug)
        return data
