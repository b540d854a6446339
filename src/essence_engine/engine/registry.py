"""Trait and enemy content registries.

A registry is built once from raw JSON content and never changes after
load. Any malformed entry fails the whole load with RegistryLoadError so a
broken content file is caught at startup rather than mid-game.

Example:
    >>> registry = TraitRegistry.default()
    >>> registry.get("BattleHardened").effects["attackBonus"]
    0.1
"""

from __future__ import annotations

import json
from collections.abc import Iterator, Mapping
from importlib import resources
from pathlib import Path
from types import MappingProxyType
from typing import TYPE_CHECKING, Any

from pydantic import ValidationError as PydanticValidationError

from essence_engine.core.constants import TRAIT_COLLECTION_KEYS
from essence_engine.core.exceptions import NotFoundError, RegistryLoadError
from essence_engine.core.logging import get_logger
from essence_engine.models.combat import EnemyTemplate
from essence_engine.models.enums import Rarity
from essence_engine.models.traits import TraitDefinition


if TYPE_CHECKING:
    from essence_engine.core.config import Settings


logger = get_logger(__name__)

RawContent = str | bytes | Mapping[str, Any]

_DATA_PACKAGE = "essence_engine.data"
_BUNDLED_TRAITS = "traits.json"
_BUNDLED_ENEMIES = "enemies.json"
_DEFAULT_AREA = "default"


# =============================================================================
# Parsing Helpers
# =============================================================================


def _decode(raw: RawContent, source: str) -> Mapping[str, Any]:
    if isinstance(raw, (str, bytes)):
        try:
            raw = json.loads(raw)
        except json.JSONDecodeError as exc:
            raise RegistryLoadError(
                f"Content is not valid JSON: {exc.msg}",
                source=source,
                details={"line": exc.lineno, "column": exc.colno},
            ) from exc
    if not isinstance(raw, Mapping):
        raise RegistryLoadError(
            f"Content must be a JSON object, got {type(raw).__name__}",
            source=source,
        )
    return raw


def _validation_summary(exc: PydanticValidationError) -> list[str]:
    return [
        f"{'.'.join(str(part) for part in error['loc']) or '<root>'}: {error['msg']}"
        for error in exc.errors()
    ]


def _read_bundled(name: str) -> str:
    return resources.files(_DATA_PACKAGE).joinpath(name).read_text(encoding="utf-8")


# =============================================================================
# Trait Registry
# =============================================================================


def load_trait_definitions(raw_json: RawContent, *, source: str = "<memory>") -> dict[str, TraitDefinition]:
    """Parse trait content into validated definitions.

    The content is an object mapping trait id to definition body, optionally
    wrapped in a single ``traits`` or ``copyableTraits`` key. Bodies omit
    ``id``; if one is present it must match its key.

    Args:
        raw_json: JSON text or an already-decoded mapping.
        source: Description of where the content came from, for errors.

    Returns:
        Mapping of trait id to TraitDefinition.

    Raises:
        RegistryLoadError: If the content or any definition is malformed,
            or a prerequisite or evolution names a trait that does not exist.
    """
    content = _decode(raw_json, source)
    if len(content) == 1:
        key, value = next(iter(content.items()))
        if key in TRAIT_COLLECTION_KEYS and isinstance(value, Mapping):
            content = value

    definitions: dict[str, TraitDefinition] = {}
    for trait_id, body in content.items():
        if not isinstance(body, Mapping):
            raise RegistryLoadError(
                f"Definition for {trait_id!r} must be an object",
                source=source,
                entry_id=trait_id,
            )
        if "id" in body and body["id"] != trait_id:
            raise RegistryLoadError(
                f"Definition id {body['id']!r} does not match its key {trait_id!r}",
                source=source,
                entry_id=trait_id,
            )
        try:
            definitions[trait_id] = TraitDefinition.model_validate({**body, "id": trait_id})
        except PydanticValidationError as exc:
            raise RegistryLoadError(
                f"Invalid definition for trait {trait_id!r}",
                source=source,
                entry_id=trait_id,
                details={"errors": _validation_summary(exc)},
            ) from exc

    for definition in definitions.values():
        missing = [p for p in definition.requirements.prerequisite_trait_ids if p not in definitions]
        if missing:
            raise RegistryLoadError(
                f"Trait {definition.id!r} requires unknown traits",
                source=source,
                entry_id=definition.id,
                details={"missing": missing},
            )
        unknown = [e for e in definition.evolution_path if e not in definitions or e == definition.id]
        if unknown:
            raise RegistryLoadError(
                f"Trait {definition.id!r} evolves into unknown traits",
                source=source,
                entry_id=definition.id,
                details={"unknown": unknown},
            )

    logger.info("Trait definitions loaded", source=source, count=len(definitions))
    return definitions


class TraitRegistry:
    """Read-only catalog of trait definitions.

    Example:
        >>> registry = TraitRegistry.load('{"Sturdy": {"name": "Sturdy"}}')
        >>> "Sturdy" in registry
        True
    """

    def __init__(self, definitions: Mapping[str, TraitDefinition], *, source: str = "<memory>") -> None:
        self._definitions: Mapping[str, TraitDefinition] = MappingProxyType(dict(definitions))
        self._source = source

    @classmethod
    def load(cls, raw_json: RawContent, *, source: str = "<memory>") -> TraitRegistry:
        """Build a registry from raw content.

        Raises:
            RegistryLoadError: If the content is malformed.
        """
        return cls(load_trait_definitions(raw_json, source=source), source=source)

    @classmethod
    def from_file(cls, path: str | Path) -> TraitRegistry:
        """Build a registry from a JSON file.

        Raises:
            RegistryLoadError: If the file cannot be read or is malformed.
        """
        path = Path(path)
        try:
            text = path.read_text(encoding="utf-8")
        except OSError as exc:
            raise RegistryLoadError(f"Cannot read trait content: {exc}", source=str(path)) from exc
        return cls.load(text, source=str(path))

    @classmethod
    def default(cls) -> TraitRegistry:
        """Build a registry from the bundled trait content."""
        return cls.load(_read_bundled(_BUNDLED_TRAITS), source=f"{_DATA_PACKAGE}/{_BUNDLED_TRAITS}")

    @classmethod
    def from_settings(cls, settings: Settings | None = None) -> TraitRegistry:
        """Build a registry from ``content_path`` or the bundled content."""
        if settings is None:
            from essence_engine.core.config import get_settings

            settings = get_settings()
        if settings.content_path is not None:
            return cls.from_file(settings.content_path)
        return cls.default()

    @property
    def source(self) -> str:
        return self._source

    @property
    def definitions(self) -> Mapping[str, TraitDefinition]:
        """Read-only view of every definition."""
        return self._definitions

    def get(self, trait_id: str) -> TraitDefinition:
        """Look up a definition.

        Raises:
            NotFoundError: If no trait has this id.
        """
        try:
            return self._definitions[trait_id]
        except KeyError:
            raise NotFoundError(f"Unknown trait: {trait_id}", trait_id=trait_id) from None

    def find(self, trait_id: str) -> TraitDefinition | None:
        return self._definitions.get(trait_id)

    def ids(self) -> list[str]:
        return list(self._definitions)

    def by_category(self, category: str) -> list[TraitDefinition]:
        """Definitions in a category, case-insensitively."""
        wanted = category.lower()
        return [d for d in self._definitions.values() if d.category.lower() == wanted]

    def by_rarity(self, rarity: Rarity | str) -> list[TraitDefinition]:
        wanted = Rarity(rarity)
        return [d for d in self._definitions.values() if d.rarity == wanted]

    def __contains__(self, trait_id: object) -> bool:
        return trait_id in self._definitions

    def __len__(self) -> int:
        return len(self._definitions)

    def __iter__(self) -> Iterator[TraitDefinition]:
        return iter(self._definitions.values())

    def __repr__(self) -> str:
        return f"TraitRegistry(source={self._source!r}, traits={len(self)})"


# =============================================================================
# Enemy Registry
# =============================================================================


class EnemyRegistry:
    """Enemy templates and the area pools that draw from them."""

    def __init__(
        self,
        templates: Mapping[str, EnemyTemplate],
        areas: Mapping[str, list[str]] | None = None,
        *,
        source: str = "<memory>",
    ) -> None:
        self._templates: Mapping[str, EnemyTemplate] = MappingProxyType(dict(templates))
        self._areas: Mapping[str, tuple[str, ...]] = MappingProxyType(
            {area: tuple(ids) for area, ids in (areas or {}).items()}
        )
        self._source = source

    @classmethod
    def load(cls, raw_json: RawContent, *, source: str = "<memory>") -> EnemyRegistry:
        """Build an enemy registry from ``{"templates": {...}, "areas": {...}}``.

        Raises:
            RegistryLoadError: If a template is malformed or an area names an
                unknown template.
        """
        content = _decode(raw_json, source)
        raw_templates = content.get("templates", {})
        raw_areas = content.get("areas", {})
        if not isinstance(raw_templates, Mapping) or not isinstance(raw_areas, Mapping):
            raise RegistryLoadError("'templates' and 'areas' must be objects", source=source)

        templates: dict[str, EnemyTemplate] = {}
        for template_id, body in raw_templates.items():
            if not isinstance(body, Mapping):
                raise RegistryLoadError(
                    f"Template {template_id!r} must be an object",
                    source=source,
                    entry_id=template_id,
                )
            try:
                templates[template_id] = EnemyTemplate.model_validate({**body, "id": template_id})
            except PydanticValidationError as exc:
                raise RegistryLoadError(
                    f"Invalid enemy template {template_id!r}",
                    source=source,
                    entry_id=template_id,
                    details={"errors": _validation_summary(exc)},
                ) from exc

        areas: dict[str, list[str]] = {}
        for area, ids in raw_areas.items():
            if not isinstance(ids, list):
                raise RegistryLoadError(f"Area {area!r} must list template ids", source=source, entry_id=area)
            unknown = [i for i in ids if i not in templates]
            if unknown:
                raise RegistryLoadError(
                    f"Area {area!r} references unknown enemies",
                    source=source,
                    entry_id=area,
                    details={"missing": unknown},
                )
            areas[area] = list(ids)

        logger.info("Enemy templates loaded", source=source, count=len(templates), areas=len(areas))
        return cls(templates, areas, source=source)

    @classmethod
    def default(cls) -> EnemyRegistry:
        return cls.load(_read_bundled(_BUNDLED_ENEMIES), source=f"{_DATA_PACKAGE}/{_BUNDLED_ENEMIES}")

    def get(self, template_id: str) -> EnemyTemplate:
        """Look up an enemy template.

        Raises:
            NotFoundError: If no template has this id.
        """
        try:
            return self._templates[template_id]
        except KeyError:
            raise NotFoundError(
                f"Unknown enemy template: {template_id}",
                details={"template_id": template_id},
            ) from None

    def pool(self, area: str | None = None) -> list[EnemyTemplate]:
        """Templates that can appear in an area.

        Unknown or omitted areas fall back to the ``default`` pool, then to
        every template.
        """
        ids = self._areas.get(area or _DEFAULT_AREA) or self._areas.get(_DEFAULT_AREA)
        if not ids:
            return list(self._templates.values())
        return [self._templates[i] for i in ids]

    @property
    def areas(self) -> list[str]:
        return list(self._areas)

    def __contains__(self, template_id: object) -> bool:
        return template_id in self._templates

    def __len__(self) -> int:
        return len(self._templates)


__all__ = [
    "RawContent",
    "load_trait_definitions",
    "TraitRegistry",
    "EnemyRegistry",
]
