"""Shared fixtures: the sample models shipped in backend/models."""

from pathlib import Path

import pytest

from udv.metadata.loader import Field, Model, ModelCatalog

MODELS_PATH = Path(__file__).parent.parent / "models"


@pytest.fixture
def models_path() -> Path:
    return MODELS_PATH


@pytest.fixture
def catalog() -> ModelCatalog:
    return ModelCatalog.from_yaml_dir(MODELS_PATH)


@pytest.fixture
def orders(catalog) -> Model:
    return catalog.get("orders")


@pytest.fixture
def users(catalog) -> Model:
    return catalog.get("users")


@pytest.fixture
def products() -> Model:
    """A model built in code, with a non-``id`` primary key."""
    return Model(
        name="products",
        table="products",
        primary_key="sku",
        fields=(
            Field("sku", "varchar"),
            Field("title", "string"),
            Field("description", "text"),
            Field("price", "decimal(10,2)"),
            Field("stock", "integer"),
            Field("discontinued", "boolean"),
            Field("updated_at", "timestamp"),
        ),
    )
