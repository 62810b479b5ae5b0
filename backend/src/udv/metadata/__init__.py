"""Model metadata: schema descriptors and the catalog that holds them."""

from udv.metadata.loader import Field, Model, ModelCatalog

__all__ = ["Field", "Model", "ModelCatalog"]
