"""Domain models for tm_catalog."""

from dataclasses import dataclass
from datetime import datetime


@dataclass
class Product:
    id: int
    title: str
    image_url: str | None
    price: int                       # cents, > 0
    tier_level: int | None = None    # None or 0 = visible to every tier
    created_at: datetime | None = None
