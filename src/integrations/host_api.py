"""HTTP client for a live host exposing its items over a JSON API.

Implements the ``LiveRepository`` protocol against a small REST surface:

    GET  {base}/capabilities           -> {"predicates": ["equals", ...]}
    POST {base}/query                  -> {"item_ids": [...]}
    GET  {base}/items/{item_id}/properties
                                       -> {"categories": [{"name": ...,
                                           "properties": [{"name": ..., "value": ...}]}]}

Network and protocol failures are raised as ``HostError`` so the engine
can treat them per item during post-filtering.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import Any
from urllib.parse import quote

import requests

from src.services.smart_sets.errors import HostError
from src.services.smart_sets.query_translator import NativePredicate, NativeQuery
from src.version import __app_name__, __version__

logger = logging.getLogger("smartsets.host_api")

__all__ = ["HostApiClient"]


class HostApiClient:
    """Live repository backed by the host's HTTP API.

    Attributes:
        base_url: API root without a trailing slash.
        timeout: Per-request timeout in seconds.
    """

    def __init__(
        self,
        base_url: str,
        token: str | None = None,
        timeout: float = 30.0,
        supported_predicates: Iterable[NativePredicate] | None = None,
        session: requests.Session | None = None,
    ) -> None:
        """Initializes the client.

        Args:
            base_url: API root, e.g. ``http://localhost:8765/api``.
            token: Optional bearer token.
            timeout: Per-request timeout in seconds.
            supported_predicates: Predicates the host supports; fetched from
                ``/capabilities`` on first use when None.
            session: Optional pre-configured requests session.
        """
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._supported = frozenset(supported_predicates) if supported_predicates is not None else None
        self._session = session or requests.Session()
        self._session.headers.update({"User-Agent": f"{__app_name__.replace(' ', '')}/{__version__}"})
        if token:
            self._session.headers.update({"Authorization": f"Bearer {token}"})

    @classmethod
    def from_config(cls, cfg: Any) -> HostApiClient:
        """Builds a client from the application config.

        Raises:
            HostError: If no host API URL is configured.
        """
        if not cfg.HOST_API_URL:
            msg = "No host API URL configured (set SMARTSETS_HOST_API_URL)"
            raise HostError(msg)
        return cls(cfg.HOST_API_URL, token=cfg.HOST_API_TOKEN, timeout=cfg.HOST_API_TIMEOUT)

    @property
    def supported_predicates(self) -> frozenset[NativePredicate]:
        """Predicates the host executes natively (fetched once)."""
        if self._supported is None:
            data = self._request("GET", "/capabilities")
            predicates = set()
            for name in data.get("predicates", []):
                try:
                    predicates.add(NativePredicate(name))
                except ValueError:
                    logger.debug("Ignoring unknown host predicate %r", name)
            self._supported = frozenset(predicates)
            logger.info("Host supports %d native predicates", len(self._supported))
        return self._supported

    def run_native_query(self, query: NativeQuery) -> set[str]:
        """Runs a native query on the host.

        Args:
            query: The conjunction of native conditions.

        Returns:
            Ids of the matching live items.

        Raises:
            HostError: On network, HTTP or payload errors.
        """
        data = self._request("POST", "/query", json=query.to_dict())
        item_ids = data.get("item_ids")
        if not isinstance(item_ids, list):
            msg = "Host query response is missing 'item_ids'"
            raise HostError(msg)
        return {str(item_id) for item_id in item_ids}

    def read_property(self, item_id: str, category: str, prop: str) -> list[str]:
        """Reads all values of one property from a live item.

        Every category the host returns is scanned and names are compared
        case-insensitively, since the host may repeat or re-case categories.

        Args:
            item_id: The item to read.
            category: Category name.
            prop: Property name.

        Returns:
            The item's values for the key (empty when absent).

        Raises:
            HostError: On network, HTTP or payload errors.
        """
        data = self._request("GET", f"/items/{quote(str(item_id), safe='')}/properties")
        wanted_category = (category or "").casefold()
        wanted_property = (prop or "").casefold()

        values: list[str] = []
        try:
            for cat in data.get("categories", []):
                if str(cat.get("name") or "").casefold() != wanted_category:
                    continue
                for entry in cat.get("properties", []):
                    if str(entry.get("name") or "").casefold() == wanted_property:
                        value = entry.get("value")
                        values.append("" if value is None else str(value))
        except (AttributeError, TypeError) as exc:
            msg = f"Malformed property payload for item {item_id}: {exc}"
            raise HostError(msg) from exc
        return values

    def _request(self, method: str, path: str, **kwargs: Any) -> dict:
        url = f"{self.base_url}{path}"
        try:
            response = self._session.request(method, url, timeout=self.timeout, **kwargs)
            response.raise_for_status()
            data = response.json()
        except requests.RequestException as exc:
            logger.warning("Host API %s %s failed: %s", method, path, exc)
            raise HostError(f"{method} {path} failed: {exc}") from exc
        except ValueError as exc:
            logger.warning("Host API %s %s returned invalid JSON: %s", method, path, exc)
            raise HostError(f"{method} {path} returned invalid JSON") from exc

        if not isinstance(data, dict):
            msg = f"{method} {path} returned an unexpected payload"
            raise HostError(msg)
        return data
