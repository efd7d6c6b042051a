"""Sources of the weighting document: remote HJSON, a local file, or a fixed config."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections.abc import Mapping
from pathlib import Path
from typing import Any
from urllib.parse import urlparse

import hjson
import httpx
from pydantic import ValidationError

from randplace.db.models import WeightConfig
from randplace.errors import ConfigFetchError, ConfigParseError

logger = logging.getLogger(__name__)

WEIGHTS_URL = "https://raw.githubusercontent.com/seungjin/lachuoi/refs/heads/main/assets/random-place-wegith.hjson"
DEFAULT_TIMEOUT = 30.0


def parse_weight_config(text: str) -> WeightConfig:
    """Parse an HJSON weighting document.

    Missing ``base_population`` falls back to the default threshold; a missing
    or non-mapping ``country``/``city`` leaves that axis absent.
    """
    try:
        doc = hjson.loads(text)
    except ValueError as exc:  # hjson.HjsonDecodeError
        raise ConfigParseError(f"weighting document is not valid HJSON: {exc}") from exc
    if not isinstance(doc, Mapping):
        raise ConfigParseError(f"weighting document must be a mapping, got {type(doc).__name__}")

    fields: dict[str, Any] = {}
    if doc.get("base_population") is not None:
        fields["base_population"] = doc["base_population"]
    for doc_key, field in (("country", "country_weights"), ("city", "city_weights")):
        value = doc.get(doc_key)
        if isinstance(value, Mapping):
            fields[field] = dict(value)
        elif value is not None:
            logger.warning("Ignoring %r: expected a mapping, got %s", doc_key, type(value).__name__)

    try:
        return WeightConfig(**fields)
    except ValidationError as exc:
        raise ConfigParseError(f"invalid weighting document: {exc}") from exc


class BaseWeightProvider(ABC):
    """Source of the active WeightConfig."""

    @abstractmethod
    async def fetch(self) -> WeightConfig:
        ...


class StaticWeightProvider(BaseWeightProvider):
    """Always returns the same in-memory config."""

    def __init__(self, config: WeightConfig):
        self.config = config

    async def fetch(self) -> WeightConfig:
        return self.config


class FileWeightProvider(BaseWeightProvider):
    """Reads the weighting document from disk on every fetch."""

    def __init__(self, path: Path | str):
        self.path = Path(path)

    async def fetch(self) -> WeightConfig:
        try:
            data = self.path.read_bytes()
        except OSError as exc:
            raise ConfigFetchError(f"cannot read {self.path}: {exc}", url=str(self.path)) from exc
        try:
            text = data.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise ConfigParseError(f"{self.path} is not UTF-8: {exc}") from exc
        return parse_weight_config(text)


class HttpWeightProvider(BaseWeightProvider):
    """GETs the weighting document from a fixed URL. No retries."""

    def __init__(
        self,
        url: str = WEIGHTS_URL,
        timeout: float = DEFAULT_TIMEOUT,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.url = url
        self.timeout = timeout
        self.transport = transport

    async def fetch(self) -> WeightConfig:
        logger.debug("Fetching weighting document from %s", self.url)
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                resp = await client.get(self.url)
                resp.raise_for_status()
        except httpx.HTTPError as exc:
            raise ConfigFetchError(f"fetching {self.url} failed: {exc}", url=self.url) from exc
        try:
            text = resp.content.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise ConfigParseError(f"weighting document is not UTF-8: {exc}") from exc
        return parse_weight_config(text)


def get_weight_provider(source: str, timeout: float = DEFAULT_TIMEOUT) -> BaseWeightProvider:
    """Provider for an http(s) URL, a ``file://`` URL, or a bare path."""
    parsed = urlparse(source)
    if parsed.scheme in ("http", "https"):
        return HttpWeightProvider(source, timeout=timeout)
    if parsed.scheme == "file":
        return FileWeightProvider(parsed.path)
    return FileWeightProvider(source)
