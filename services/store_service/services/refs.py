"""Cart line references: a line points at a product or at a seller listing."""

import uuid
from dataclasses import dataclass
from typing import Union


@dataclass(frozen=True)
class ByProduct:
    product_id: uuid.UUID


@dataclass(frozen=True)
class ByListing:
    listing_id: uuid.UUID


ItemRef = Union[ByProduct, ByListing]


def ref_from_path(item_id: uuid.UUID, kind: str) -> ItemRef:
    """Resolve a `/cart/{id}?kind=` path pair into a reference."""
    if kind == "listing":
        return ByListing(item_id)
    return ByProduct(item_id)
