"""InfluxDB v2 HTTP write client.

Posts line-protocol payloads to the ``/api/v2/write`` endpoint via httpx.  One
keep-alive ``httpx.Client`` is created on first use and shared by every
destination; the endpoint, query string and token are built per request.

Failures never raise: each write returns a :class:`DeliveryOutcome` and logs
it, because losing a batch of history is preferable to stalling the host.
"""

from __future__ import annotations

import logging
import threading

import httpx

from effluence.errors import InfluxDBError
from effluence.models import DeliveryOutcome, Destination

logger = logging.getLogger(__name__)

TIMEOUT_SECONDS = 10.0
DEFAULT_SCHEME = "https"


def _base_url(destination: Destination) -> str:
    """Return the destination URL with a scheme and without a trailing slash."""
    if not destination.url:
        raise InfluxDBError("destination has no URL")
    url = destination.url.rstrip("/")
    if "://" not in url:
        url = f"{DEFAULT_SCHEME}://{url}"
    try:
        httpx.URL(url)
    except httpx.InvalidURL as exc:
        raise InfluxDBError(f"invalid URL {url!r}: {exc}") from exc
    return url


def _write_params(destination: Destination) -> dict[str, str]:
    if not destination.bucket:
        raise InfluxDBError("destination has no bucket")
    params = {}
    if destination.org is not None:
        params["org"] = destination.org
    params["bucket"] = destination.bucket
    return params


def _headers(destination: Destination) -> httpx.Headers:
    headers = {
        "Content-Type": "text/plain; charset=utf-8",
        "Accept": "application/json",
    }
    if destination.token is not None:
        authorization = f"Token {destination.token}"
        try:
            authorization.encode("ascii")
        except UnicodeEncodeError as exc:
            raise InfluxDBError("token contains non-ASCII characters") from exc
        headers["Authorization"] = authorization
    return httpx.Headers(headers)


class InfluxDBClient:
    """Synchronous client for the InfluxDB v2 line-protocol write endpoint."""

    def __init__(
        self,
        timeout: float = TIMEOUT_SECONDS,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self._timeout = httpx.Timeout(timeout, connect=timeout)
        self._transport = transport
        self._client: httpx.Client | None = None
        self._closed = False
        self._lock = threading.Lock()

    # ── Connection handling ──────────────────────────────────────────────────

    def _get_client(self) -> httpx.Client:
        with self._lock:
            if self._closed:
                raise InfluxDBError("client has been closed")
            if self._client is None:
                logger.debug("Creating shared HTTP client")
                self._client = httpx.Client(
                    timeout=self._timeout,
                    follow_redirects=True,
                    transport=self._transport,
                )
            return self._client

    def close(self) -> None:
        """Close the shared HTTP client; later writes fail with ``SETUP_ERROR``."""
        with self._lock:
            self._closed = True
            if self._client is not None:
                logger.info("Closing shared HTTP client")
                self._client.close()
                self._client = None

    # ── Requests ─────────────────────────────────────────────────────────────

    def write(self, destination: Destination, payload: bytes) -> DeliveryOutcome:
        """POST *payload* to the write endpoint of *destination*.

        Args:
            destination: Resolved URL, org, bucket and token.
            payload:     Newline-delimited line protocol, sent verbatim.

        Returns:
            The outcome of the attempt; the same outcome is logged.
        """
        try:
            url = f"{_base_url(destination)}/api/v2/write"
            params = _write_params(destination)
            headers = _headers(destination)
            client = self._get_client()
        except (InfluxDBError, OSError) as exc:
            logger.error("Failed to prepare InfluxDB write request: %s", exc)
            return DeliveryOutcome.SETUP_ERROR

        try:
            resp = client.post(
                url,
                params=params,
                headers=headers,
                content=payload,
            )
        except httpx.TimeoutException as exc:
            logger.error(
                "InfluxDB write to %s timed out after %.0fs: %s", url, TIMEOUT_SECONDS, exc
            )
            return DeliveryOutcome.TIMED_OUT
        except httpx.HTTPError as exc:
            logger.error("InfluxDB write to %s failed: %s", url, exc)
            return DeliveryOutcome.TRANSPORT_ERROR

        if not resp.is_success:
            logger.error(
                "InfluxDB write to %s rejected (HTTP %s): %s",
                url,
                resp.status_code,
                resp.text[:200],
            )
            return DeliveryOutcome.REJECTED

        logger.debug("Wrote %d byte(s) to %s (bucket %s)", len(payload), url, params["bucket"])
        return DeliveryOutcome.SUCCESS

    def ping(self, destination: Destination) -> bool:
        """Return ``True`` if the InfluxDB instance behind *destination* answers ``/ping``."""
        try:
            url = f"{_base_url(destination)}/ping"
            resp = self._get_client().get(url)
        except (InfluxDBError, OSError, httpx.HTTPError) as exc:
            logger.warning("InfluxDB ping of %s failed: %s", destination.url, exc)
            return False
        if not resp.is_success:
            logger.warning("InfluxDB ping of %s returned HTTP %s", url, resp.status_code)
            return False
        return True
