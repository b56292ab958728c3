"""Load the schema registry document from a file or an HTTP(S) URL."""

from __future__ import annotations

import json
import tomllib
from logging import getLogger
from pathlib import Path
from typing import TYPE_CHECKING, Any

import httpx
from pydantic import ValidationError

from unisync.config.registry import REGISTRY_FETCH_TIMEOUT_SECONDS
from unisync.domain.errors import RegistryLoadError

from .schema import RegistryDocument
from .translator import translate_registry

if TYPE_CHECKING:
    from unisync.domain.schema import SchemaRegistry

log = getLogger(__name__)


def _is_remote(source: str) -> bool:
    return source.startswith(("http://", "https://"))


def _read_file(path: Path) -> Any:
    try:
        if path.suffix == ".toml":
            with path.open("rb") as handle:
                return tomllib.load(handle)
        with path.open(encoding="utf-8") as handle:
            return json.load(handle)
    except FileNotFoundError as exc:
        raise RegistryLoadError(f"Registry document not found: {path}") from exc
    except (OSError, json.JSONDecodeError, tomllib.TOMLDecodeError) as exc:
        raise RegistryLoadError(f"Could not read registry document {path}: {exc}") from exc


def _fetch(url: str, *, client: httpx.Client | None, timeout: float) -> Any:
    owns_client = client is None
    http = client or httpx.Client(timeout=timeout)
    try:
        response = http.get(url)
        response.raise_for_status()
        return response.json()
    except httpx.HTTPError as exc:
        raise RegistryLoadError(f"Could not fetch registry document from {url}: {exc}") from exc
    except json.JSONDecodeError as exc:
        raise RegistryLoadError(f"Registry document at {url} is not valid JSON: {exc}") from exc
    finally:
        if owns_client:
            http.close()


def load_registry_document(
    source: str | Path,
    *,
    client: httpx.Client | None = None,
    timeout: float = REGISTRY_FETCH_TIMEOUT_SECONDS,
) -> RegistryDocument:
    """Read and validate the registry document at ``source``.

    ``source`` is a JSON or TOML file path, or an HTTP(S) URL serving JSON.
    """

    location = str(source)
    if _is_remote(location):
        log.info("Fetching registry document from %s", location)
        payload = _fetch(location, client=client, timeout=timeout)
    else:
        log.info("Reading registry document from %s", location)
        payload = _read_file(Path(location).expanduser())

    try:
        return RegistryDocument.model_validate(payload)
    except ValidationError as exc:
        raise RegistryLoadError(f"Registry document {location} is malformed: {exc}") from exc


def load_registry(
    source: str | Path,
    *,
    client: httpx.Client | None = None,
    timeout: float = REGISTRY_FETCH_TIMEOUT_SECONDS,
) -> SchemaRegistry:
    """Load, translate and validate a registry; any problem raises ``ConfigurationError``."""

    registry = translate_registry(load_registry_document(source, client=client, timeout=timeout))
    log.info(
        "Loaded registry with %s system(s) and %s canonical type(s)",
        len(registry.systems),
        len(registry.canonical_types),
    )
    return registry
