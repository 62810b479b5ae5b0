"""Load model metadata from the collaborator or from YAML files."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Iterable

import yaml

from udv.core.types import FieldCategory, classify, is_searchable
from udv.errors import SchemaLoadError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Field:
    name: str
    type: str
    nullable: bool = True

    @property
    def category(self) -> FieldCategory:
        return classify(self.type)

    def to_dict(self) -> dict[str, Any]:
        return {"name": self.name, "type": self.type, "nullable": self.nullable}


@dataclass(frozen=True)
class Model:
    """Immutable schema descriptor for one queryable table."""

    name: str
    table: str
    primary_key: str
    fields: tuple[Field, ...] = field(default_factory=tuple)

    @property
    def field_names(self) -> list[str]:
        return [f.name for f in self.fields]

    def get_field(self, name: str) -> Field | None:
        for f in self.fields:
            if f.name == name:
                return f
        return None

    def has_field(self, name: str) -> bool:
        return self.get_field(name) is not None

    def category_of(self, name: str) -> FieldCategory | None:
        f = self.get_field(name)
        return f.category if f else None

    @property
    def searchable_fields(self) -> list[str]:
        """Names of the text fields global search runs against."""
        return [f.name for f in self.fields if is_searchable(f)]

    def to_dict(self) -> dict[str, Any]:
        """Wire shape returned by GET /models."""
        return {
            "name": self.name,
            "table": self.table,
            "primary_key": self.primary_key,
            "fields": [f.to_dict() for f in self.fields],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Model:
        """Build a model from wire or YAML data.

        Accepts both ``primary_key`` (wire) and ``primaryKey`` (config file)
        spellings. The primary key defaults to ``id``.
        """
        if not isinstance(data, dict):
            raise SchemaLoadError(f"Model definition must be a mapping, got {type(data).__name__}")
        name = data.get("name")
        if not name or not isinstance(name, str):
            raise SchemaLoadError("Model definition is missing a name")

        raw_fields = data.get("fields") or []
        if not isinstance(raw_fields, list):
            raise SchemaLoadError(f"Model '{name}': fields must be a list")

        fields = []
        for raw in raw_fields:
            if not isinstance(raw, dict):
                raise SchemaLoadError(f"Model '{name}': field definition must be a mapping, got {raw!r}")
            if not raw.get("name") or not isinstance(raw["name"], str):
                raise SchemaLoadError(f"Model '{name}' has a field without a name")
            fields.append(
                Field(
                    name=raw["name"],
                    type=str(raw.get("type") or "string"),
                    nullable=bool(raw.get("nullable", True)),
                )
            )

        primary_key = data.get("primary_key") or data.get("primaryKey") or "id"
        return cls(
            name=name,
            table=data.get("table") or "",
            primary_key=primary_key,
            fields=tuple(fields),
        )


class ModelCatalog:
    """Holds the models available for browsing, keyed by name.

    Loaded once per session, either from the collaborator's ``/models``
    response or from a directory of YAML definitions.
    """

    def __init__(self, models: Iterable[Model] = ()):
        self.models: dict[str, Model] = {}
        for model in models:
            self.add(model)

    def add(self, model: Model) -> None:
        if model.name in self.models:
            raise SchemaLoadError(f"Duplicate model name: {model.name}")
        if model.fields and not model.has_field(model.primary_key):
            logger.warning(
                "Model '%s' primary key '%s' is not among its fields",
                model.name,
                model.primary_key,
            )
        self.models[model.name] = model

    def get(self, name: str) -> Model | None:
        return self.models.get(name)

    def list_models(self) -> list[str]:
        return list(self.models.keys())

    def __iter__(self):
        return iter(self.models.values())

    def __len__(self) -> int:
        return len(self.models)

    def to_list(self) -> list[dict[str, Any]]:
        return [m.to_dict() for m in self.models.values()]

    @classmethod
    def from_wire(cls, payload: Any) -> ModelCatalog:
        """Build a catalog from a ``GET /models`` response body."""
        if payload is None:
            return cls()
        if not isinstance(payload, list):
            raise SchemaLoadError("Expected a list of models from the models endpoint")
        return cls(Model.from_dict(item) for item in payload)

    @classmethod
    def from_yaml_dir(cls, path: Path) -> ModelCatalog:
        """Load every ``*.yaml`` file under ``path``.

        A file may hold a single model mapping or a ``models:`` list.
        """
        if not path.exists():
            raise SchemaLoadError(f"Model directory not found: {path}")

        catalog = cls()
        for yaml_file in sorted(path.glob("*.yaml")):
            with open(yaml_file) as f:
                try:
                    data = yaml.safe_load(f)
                except yaml.YAMLError as exc:
                    raise SchemaLoadError(f"Invalid YAML in {yaml_file.name}: {exc}") from exc
            if not data:
                continue

            entries = data.get("models", [data]) if isinstance(data, dict) else data
            for entry in entries:
                model = Model.from_dict(entry)
                if not model.fields:
                    raise SchemaLoadError(
                        f"Model '{model.name}' in {yaml_file.name}: at least one field is required"
                    )
                _check_duplicate_fields(model)
                catalog.add(model)

        logger.debug("Loaded %d model(s) from %s", len(catalog), path)
        return catalog


def _check_duplicate_fields(model: Model) -> None:
    seen: set[str] = set()
    for f in model.fields:
        if f.name in seen:
            raise SchemaLoadError(f"Model '{model.name}': duplicate field name: {f.name}")
        seen.add(f.name)
