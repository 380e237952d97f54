"""
Overpass API client.

Responsible only for sending a query and mapping HTTP status codes to failure
reasons. Retrying is the resolver's decision, not the client's.
"""

from __future__ import annotations

import logging

import httpx

from settlescout.config.settings import Settings
from settlescout.core.http import post_form_text
from settlescout.domain.models import FailureReason, ResolutionFailure

logger = logging.getLogger(__name__)


def failure_for_status(status: int) -> ResolutionFailure:
    if status == 429:
        return ResolutionFailure(FailureReason.RATE_LIMITED, status_code=status)
    if status == 504:
        return ResolutionFailure(FailureReason.GATEWAY_TIMEOUT, status_code=status)
    return ResolutionFailure(FailureReason.HTTP_ERROR, status_code=status)


class OverpassClient:
    """POSTs Overpass QL to the interpreter endpoint and returns the raw body."""

    def __init__(self, settings: Settings):
        self._settings = settings

    @property
    def url(self) -> str:
        return self._settings.overpass.url

    def fetch(self, query: str) -> str:
        """Run `query` and return the response text.

        Raises:
            ResolutionFailure: RATE_LIMITED, GATEWAY_TIMEOUT or HTTP_ERROR on non-2xx.
            httpx.TransportError: On connection/read failures.
        """
        try:
            return post_form_text(
                self.url,
                data={"data": query},
                timeout_seconds=self._settings.app.http_timeout_seconds,
                user_agent=self._settings.app.user_agent,
            )
        except httpx.HTTPStatusError as exc:
            status = exc.response.status_code
            logger.debug("Overpass request failed with status=%s", status)
            raise failure_for_status(status) from exc
