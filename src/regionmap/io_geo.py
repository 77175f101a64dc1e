"""Boundary dataset loading and mainland/inset partitioning."""

from __future__ import annotations

import json
import logging
import time
from dataclasses import dataclass
from typing import Any, Mapping

import requests

from .config import SourceConfig
from .models import Feature


_RETRYABLE_HTTP_STATUS = {429, 500, 502, 503, 504}

_LOGGER = logging.getLogger("regionmap.io_geo")


@dataclass(frozen=True, slots=True)
class FeaturePartition:
    mainland: tuple[Feature, ...] = ()
    insets: tuple[Feature, ...] = ()

    @property
    def is_empty(self) -> bool:
        return not self.mainland and not self.insets

    def inset_by_code(self) -> dict[str, Feature]:
        return {feature.code: feature for feature in self.insets}


EMPTY_PARTITION = FeaturePartition()


def partition_features(collection: Any) -> FeaturePartition:
    """Split a GeoJSON-like feature collection into mainland and inset features.

    Never raises on malformed input: a missing or broken collection gives an
    empty partition and unusable entries are skipped.
    """
    if not isinstance(collection, Mapping):
        return EMPTY_PARTITION
    rows = collection.get("features")
    if not isinstance(rows, list):
        return EMPTY_PARTITION

    mainland: list[Feature] = []
    insets: list[Feature] = []
    skipped = 0
    for row in rows:
        if not isinstance(row, Mapping):
            skipped += 1
            continue
        try:
            feature = Feature.from_geojson(row)
        except (ValueError, TypeError, OverflowError):
            skipped += 1
            continue
        if feature.is_inset:
            insets.append(feature)
        else:
            mainland.append(feature)
    if skipped:
        _LOGGER.warning("Skipped %d unusable boundary features", skipped)
    return FeaturePartition(mainland=tuple(mainland), insets=tuple(insets))


class BoundarySource:
    """Fetch the boundary collection from a local file or over HTTP."""

    def __init__(self, cfg: SourceConfig, *, session: requests.Session | None = None) -> None:
        self.cfg = cfg
        self._session = session if session is not None else requests.Session()
        self._session.headers.update({"User-Agent": cfg.user_agent})
        self._max_retries = max(int(cfg.max_retries), 0)
        self._retry_backoff_s = max(float(cfg.retry_backoff_s), 0.01)

    def load(self) -> Any:
        if self.cfg.path is not None:
            _LOGGER.info("Loading boundaries from %s", self.cfg.path)
            return json.loads(self.cfg.path.read_text(encoding="utf-8"))
        _LOGGER.info("Fetching boundaries from %s", self.cfg.url)
        response = self._request_get(self.cfg.url)
        try:
            return response.json()
        finally:
            response.close()

    def _request_get(self, url: str) -> requests.Response:
        attempts = self._max_retries + 1
        for attempt in range(attempts):
            response = self._session.get(url, timeout=self.cfg.request_timeout_s)
            if response.status_code not in _RETRYABLE_HTTP_STATUS:
                response.raise_for_status()
                return response
            if attempt >= self._max_retries:
                response.raise_for_status()
            delay_s = min(self._retry_backoff_s * (2**attempt), 60.0)
            _LOGGER.warning(
                "Retryable response %s for %s; retrying in %.1fs (%d/%d)",
                response.status_code,
                url,
                delay_s,
                attempt + 1,
                self._max_retries,
            )
            response.close()
            time.sleep(delay_s)
        raise RuntimeError("Unreachable retry loop in boundary fetcher")


def load_partition(source: BoundarySource) -> FeaturePartition:
    """Load and partition boundaries, degrading to an empty map on any failure."""
    try:
        collection = source.load()
    except Exception as exc:
        _LOGGER.warning("Boundary data unavailable, rendering an empty map: %s", exc)
        return EMPTY_PARTITION
    partition = partition_features(collection)
    _LOGGER.info(
        "Loaded %d mainland and %d inset features",
        len(partition.mainland),
        len(partition.insets),
    )
    return partition
