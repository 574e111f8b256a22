"""One-shot query for the models available on the Ollama host."""

from __future__ import annotations

from dataclasses import dataclass
import logging
from typing import Any

from .client import field_of, map_exception
from .config import CatalogErrorPolicy

LOGGER = logging.getLogger(__name__)

BYTES_PER_GB = 1_000_000_000


@dataclass(frozen=True)
class LocalModel:
    """A model installed on the backend."""

    name: str
    size: int = 0

    @property
    def size_label(self) -> str:
        return f"{self.size / BYTES_PER_GB:.2f} GB"


def parse_local_models(response: Any) -> list[LocalModel]:
    """Convert a ``list`` response into ``LocalModel`` values, keeping backend order."""
    entries = field_of(response, "models")
    if not isinstance(entries, list):
        return []

    models: list[LocalModel] = []
    for entry in entries:
        name = ""
        for key in ("model", "name"):
            value = field_of(entry, key)
            if isinstance(value, str) and value.strip():
                name = value.strip()
                break
        if not name:
            continue
        try:
            size = int(field_of(entry, "size") or 0)
        except (TypeError, ValueError):
            size = 0
        models.append(LocalModel(name=name, size=size))
    return models


async def fetch_local_models(
    client: Any,
    *,
    host: str = "",
    policy: CatalogErrorPolicy = CatalogErrorPolicy.EMPTY,
) -> list[LocalModel]:
    """List local models.

    With ``CatalogErrorPolicy.EMPTY`` any failure resolves to an empty catalog;
    with ``CatalogErrorPolicy.SURFACE`` the mapped domain error is raised.
    """
    try:
        response = await client.list()
    except Exception as exc:  # noqa: BLE001 - external API can fail in many ways.
        mapped = map_exception(exc, host=host)
        LOGGER.warning(
            "catalog.fetch.failed",
            extra={
                "event": "catalog.fetch.failed",
                "error_type": mapped.__class__.__name__,
                "policy": policy.value,
            },
        )
        if policy is CatalogErrorPolicy.SURFACE:
            raise mapped from exc
        return []

    models = parse_local_models(response)
    LOGGER.info(
        "catalog.fetch.complete",
        extra={"event": "catalog.fetch.complete", "count": len(models)},
    )
    return models
