"""HTTP client for the streaming generation endpoint."""

import logging

import requests

from config.defaults import DEFAULTS
from core.errors import GenerationError

log = logging.getLogger("client")


class GenerationClient:
    """Posts a GenerationRequest and exposes the response body as byte chunks."""

    def __init__(self, endpoint=None, timeout=None, session=None):
        self.endpoint = endpoint or DEFAULTS["endpoint"]
        self.timeout = timeout if timeout is not None else DEFAULTS["request_timeout"]
        self.http = session or requests.Session()

    def open(self, request):
        """Send the request and return an iterator over response chunks.

        Raises GenerationError when the request fails or the status is not a
        success. Transport failures while iterating also surface as
        GenerationError.
        """
        log.info("POST %s (%s mode)", self.endpoint, request.mode)
        try:
            resp = self.http.post(
                self.endpoint,
                json=request.to_payload(),
                stream=True,
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            raise GenerationError(f"Request to {self.endpoint} failed: {e}") from e

        if not resp.ok:
            resp.close()
            raise GenerationError(f"HTTP error! status: {resp.status_code}")

        return self._chunks(resp)

    def _chunks(self, resp):
        try:
            for chunk in resp.iter_content(chunk_size=None):
                if chunk:
                    yield chunk
        except requests.RequestException as e:
            raise GenerationError(f"Stream aborted: {e}") from e
        finally:
            resp.close()
