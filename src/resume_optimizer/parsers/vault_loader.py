"""File-backed content vault."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Protocol

import yaml
from pydantic import ValidationError

from resume_optimizer.errors import InvalidRequest
from resume_optimizer.models.vault import ContentItem, ContentType

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class VaultFilter:
    types: frozenset[ContentType] = field(default_factory=frozenset)
    tags: frozenset[str] = field(default_factory=frozenset)

    def matches(self, item: ContentItem) -> bool:
        if self.types and item.type not in self.types:
            return False
        if self.tags and not (self.tags & item.tags):
            return False
        return True


class VaultStore(Protocol):
    def list_content_items(self, filter: VaultFilter | None = None) -> list[ContentItem]:
        ...


def _flatten(raw_items: list[dict]) -> list[dict]:
    """Expand job entries that nest their accomplishments inline.

    A nested child gets ``parent_id`` set to the job's id and, when it has
    no id of its own, ``<job id>-<n>``.
    """
    flat = []
    for raw in raw_items:
        if not isinstance(raw, dict):
            raise InvalidRequest(f"Vault entries must be mappings, got {type(raw).__name__}")
        raw = dict(raw)
        children = raw.pop("accomplishments", None) or []
        flat.append(raw)
        for n, child in enumerate(children, 1):
            if isinstance(child, str):
                child = {"content": child}
            child = {"type": "accomplishment", **child}
            child.setdefault("id", f"{raw.get('id')}-{n}")
            child.setdefault("parent_id", raw.get("id"))
            flat.append(child)
    return flat


def parse_vault(data) -> list[ContentItem]:
    """Build content items from a list, or a mapping with an ``items`` list."""
    if isinstance(data, dict):
        data = data.get("items", [])
    if data is None:
        return []
    if not isinstance(data, list):
        raise InvalidRequest("Vault must be a list of items or a mapping with an 'items' list")
    items = []
    for raw in _flatten(data):
        try:
            items.append(ContentItem(**raw))
        except ValidationError as exc:
            raise InvalidRequest(f"Invalid vault item {raw.get('id')!r}: {exc}") from exc
    ids = [item.id for item in items]
    if len(ids) != len(set(ids)):
        raise InvalidRequest("Vault item ids must be unique")
    return items


class FileVaultStore:
    """Vault read from a YAML or JSON file. Read-only."""

    def __init__(self, path: str | Path):
        self.path = Path(path)
        self._items: list[ContentItem] | None = None

    def _load(self) -> list[ContentItem]:
        if self._items is None:
            raw = self.path.read_text(encoding="utf-8")
            data = json.loads(raw) if self.path.suffix.lower() == ".json" else yaml.safe_load(raw)
            self._items = parse_vault(data)
            logger.debug("Loaded %d vault items from %s", len(self._items), self.path)
        return self._items

    def list_content_items(self, filter: VaultFilter | None = None) -> list[ContentItem]:
        items = self._load()
        if filter is None:
            return list(items)
        return [item for item in items if filter.matches(item)]
