from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from functools import lru_cache
from pathlib import Path
from typing import Optional

from app.core.config import settings

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Package:
    id: str
    name: str
    duration: int
    price: int
    description: str
    features: tuple[str, ...] = field(default_factory=tuple)

    def as_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "duration": self.duration,
            "price": self.price,
            "description": self.description,
            "features": list(self.features),
        }

    def snapshot(self) -> dict:
        """The by-value copy embedded into a booking request."""
        return {"id": self.id, "name": self.name, "duration": self.duration, "price": self.price}


@dataclass(frozen=True)
class ConsultationType:
    id: str
    name: str
    description: str

    def as_dict(self) -> dict:
        return {"id": self.id, "name": self.name, "description": self.description}


DEFAULT_PACKAGES = (
    Package(
        id="basic",
        name="Basic Consultation",
        duration=30,
        price=999,
        description="Quick insights into your current situation",
        features=(
            "30-minute video consultation",
            "Basic birth chart reading",
            "Current planetary influences",
            "Immediate guidance",
        ),
    ),
    Package(
        id="premium",
        name="Premium Consultation",
        duration=45,
        price=1499,
        description="Detailed analysis with remedies",
        features=(
            "45-minute video consultation",
            "Detailed birth chart analysis",
            "Career & relationship insights",
            "Remedies and suggestions",
            "Follow-up support",
        ),
    ),
    Package(
        id="detailed",
        name="Detailed Consultation",
        duration=60,
        price=1999,
        description="Complete life analysis and guidance",
        features=(
            "60-minute video consultation",
            "Complete life path analysis",
            "Yearly predictions",
            "Gemstone recommendations",
            "Written report included",
            "7-day follow-up support",
        ),
    ),
)

CONSULTATION_TYPES = (
    ConsultationType("birth-chart", "Birth Chart Reading", "Complete analysis of your birth chart"),
    ConsultationType("career", "Career Guidance", "Professional and career-related insights"),
    ConsultationType("marriage", "Marriage & Relationships", "Love, marriage, and relationship guidance"),
    ConsultationType("health", "Health Astrology", "Health-related astrological insights"),
    ConsultationType("finance", "Financial Astrology", "Money and investment guidance"),
    ConsultationType("general", "General Consultation", "General life guidance and predictions"),
)
CONSULTATION_TYPE_IDS = {item.id for item in CONSULTATION_TYPES}


def _load_packages_file(path: Path) -> tuple[Package, ...]:
    raw = json.loads(path.read_text(encoding="utf-8"))
    if not isinstance(raw, list) or not raw:
        raise ValueError(f"Package catalog {path} must be a non-empty JSON list")
    return tuple(
        Package(
            id=str(item["id"]),
            name=str(item["name"]),
            duration=int(item["duration"]),
            price=int(item["price"]),
            description=str(item.get("description", "")),
            features=tuple(str(f) for f in item.get("features", [])),
        )
        for item in raw
    )


@lru_cache(maxsize=1)
def get_packages() -> tuple[Package, ...]:
    """Return the package catalog, read once from PACKAGE_CATALOG_PATH when configured."""
    if settings.package_catalog_path:
        path = Path(settings.package_catalog_path)
        packages = _load_packages_file(path)
        logger.info("Loaded %d packages from %s", len(packages), path)
        return packages
    return DEFAULT_PACKAGES


def get_package(package_id: str) -> Optional[Package]:
    return next((pkg for pkg in get_packages() if pkg.id == package_id), None)


def get_consultation_type(type_id: str) -> Optional[ConsultationType]:
    return next((item for item in CONSULTATION_TYPES if item.id == type_id), None)
