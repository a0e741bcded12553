"""Model registry.

Loads the known model list from models.yaml (package data) and resolves
user-supplied identifiers or aliases to canonical model IDs. Lookups are
pure; the registry never talks to the network.
"""

from __future__ import annotations

import importlib.resources
from dataclasses import dataclass, field
from functools import lru_cache
from typing import Any

import yaml

CATEGORIES = ("premium", "balanced", "fast", "specialized")


@dataclass(frozen=True)
class ModelData:
    """A known model."""

    id: str
    name: str
    provider: str
    aliases: tuple[str, ...] = ()
    category: str | None = None
    description: str | None = None

    @property
    def display_name(self) -> str:
        return f"{self.name} ({self.provider})"


@lru_cache(maxsize=1)
def _load_models_yaml() -> dict[str, Any]:
    files = importlib.resources.files("codechat.core.llm")
    with files.joinpath("models.yaml").open(encoding="utf-8") as f:
        data = yaml.safe_load(f)
    return data if isinstance(data, dict) else {}


def _models_from_data(data: dict[str, Any]) -> list[ModelData]:
    return [
        ModelData(
            id=m["id"],
            name=m.get("name", m["id"]),
            provider=m.get("provider", "unknown"),
            aliases=tuple(m.get("aliases", [])),
            category=m.get("category"),
            description=m.get("description"),
        )
        for m in data.get("models", [])
        if isinstance(m, dict) and m.get("id")
    ]


@dataclass
class ModelRegistry:
    """Lookup table of known models by ID and alias."""

    models: list[ModelData]
    default_alias: str | None = None
    _by_id: dict[str, ModelData] = field(default_factory=dict, init=False, repr=False)
    _by_alias: dict[str, ModelData] = field(default_factory=dict, init=False, repr=False)

    def __post_init__(self) -> None:
        for model in self.models:
            self._by_id[model.id] = model
            for alias in model.aliases:
                self._by_alias[alias.lower()] = model

    @classmethod
    def load(cls) -> ModelRegistry:
        """Build the registry from the bundled models.yaml."""
        data = _load_models_yaml()
        return cls(models=_models_from_data(data), default_alias=data.get("default"))

    def get_model(self, id_or_alias: str) -> ModelData | None:
        """Resolve an exact ID, or a case-insensitive ID/alias."""
        if id_or_alias in self._by_id:
            return self._by_id[id_or_alias]
        lowered = id_or_alias.lower()
        for model in self.models:
            if model.id.lower() == lowered:
                return model
        return self._by_alias.get(lowered)

    def has_model(self, id_or_alias: str) -> bool:
        return self.get_model(id_or_alias) is not None

    def resolve_model_id(self, id_or_alias: str) -> str | None:
        model = self.get_model(id_or_alias)
        return model.id if model else None

    def display_name(self, id_or_alias: str) -> str:
        """Human-readable name, or the identifier itself if unknown."""
        model = self.get_model(id_or_alias)
        return model.display_name if model else id_or_alias

    def all_models(self) -> list[ModelData]:
        return list(self.models)

    def by_category(self, category: str) -> list[ModelData]:
        return [m for m in self.models if m.category == category]

    def by_provider(self, provider: str) -> list[ModelData]:
        wanted = provider.lower()
        return [m for m in self.models if m.provider.lower() == wanted]

    def search(self, query: str) -> list[ModelData]:
        """Substring search over ID, name, description and aliases."""
        q = query.lower()
        return [
            m
            for m in self.models
            if q in m.id.lower()
            or q in m.name.lower()
            or (m.description and q in m.description.lower())
            or any(q in a.lower() for a in m.aliases)
        ]

    def default_model(self) -> ModelData | None:
        if self.default_alias:
            model = self.get_model(self.default_alias)
            if model:
                return model
        return self.models[0] if self.models else None
