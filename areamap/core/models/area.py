"""
Area model module

Defines the canonical Area entity shared by the fetch controller, the draw
session, the selection set manager and the render projection.

Classes:
    ContactEmail: contact address with its report consent
    Area: named polygonal region with metadata

Functions:
    area_key: identity used by selection and dedupe
    build_submitted_area: merge confirmation dialog input into a draft
"""

import copy
import datetime
import time
from dataclasses import dataclass, field, replace
from typing import List, Optional

from areamap.core.constants import (
    AREA_TYPE_POI, AREA_TYPES, AREA_STYLE_DRAWN, CUSTOM_AREA_NAME_PREFIX, STYLE_KEYS
)
from areamap.core.errors import AreaMapError
from areamap.core.geometry import make_polygon_feature, outer_ring


def utc_now() -> datetime.datetime:
    return datetime.datetime.now(datetime.timezone.utc)


def parse_timestamp(value) -> datetime.datetime:
    """Parse an ISO-8601 timestamp from the backend ('Z' suffix allowed)."""
    if isinstance(value, datetime.datetime):
        return value
    if not value:
        return utc_now()
    text = str(value)
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    ts = datetime.datetime.fromisoformat(text)
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=datetime.timezone.utc)
    return ts


def placeholder_name() -> str:
    """Timestamp-qualified name given to a draft before the user names it."""
    return f"{CUSTOM_AREA_NAME_PREFIX} {int(time.time() * 1000)}"


@dataclass
class ContactEmail:
    """
    Contact address attached to a custom POI area.

    Attributes:
        email: contact address
        consent_report: whether the contact agreed to receive reports
    """
    email: str
    consent_report: bool = True

    def to_dict(self):
        return {"email": self.email, "consent_report": self.consent_report}

    @staticmethod
    def from_dict(d):
        return ContactEmail(email=d.get("email", ""), consent_report=bool(d.get("consent_report", False)))


@dataclass
class Area:
    """
    Named polygonal region with metadata.

    An area is either server-seeded (fetched for the current viewport,
    read-only here) or user-drawn (`is_custom`). The absence of `id` is the
    only thing distinguishing a client-side area from a persisted one.

    Attributes:
        name: display name (may be empty only while drafting)
        geometry: GeoJSON Feature<Polygon>; its properties carry `name` and the
            rendering hints (color, fillColor, fillOpacity, weight)
        id: server id, None until persisted
        description: never None, "" means no description
        type: "poi" or "admin"
        is_custom: True for user-drawn areas
        contact_name: contact person (custom POI areas)
        contact_emails: contact addresses (custom POI areas)
        created_at: creation time (UTC)
        updated_at: last edit time (UTC)
        session_id: draw gesture that produced the area (client only)
    """
    name: str
    geometry: dict
    id: Optional[int] = None
    description: str = ""
    type: str = AREA_TYPE_POI
    is_custom: bool = False
    contact_name: str = ""
    contact_emails: List[ContactEmail] = field(default_factory=list)
    created_at: datetime.datetime = field(default_factory=utc_now)
    updated_at: datetime.datetime = field(default_factory=utc_now)
    session_id: Optional[int] = field(default=None, compare=False, repr=False)

    def __post_init__(self):
        if self.description is None:
            self.description = ""
        if self.type not in AREA_TYPES:
            raise AreaMapError(f"unknown area type: {self.type!r}")

    @staticmethod
    def draft(ring, session_id=None) -> "Area":
        """
        Synthesize a draft area from a validated ring.

        The draft has no id, a placeholder name and the drawn-area style.
        """
        name = placeholder_name()
        props = {"name": name, "description": ""}
        props.update(AREA_STYLE_DRAWN)
        now = utc_now()
        return Area(
            name=name,
            geometry=make_polygon_feature(ring, props),
            description="",
            type=AREA_TYPE_POI,
            is_custom=True,
            created_at=now,
            updated_at=now,
            session_id=session_id,
        )

    @property
    def is_persisted(self) -> bool:
        return self.id is not None

    @property
    def ring(self):
        return outer_ring(self.geometry)

    @property
    def style_hints(self) -> dict:
        props = self.geometry.get("properties") or {}
        return {k: props[k] for k in STYLE_KEYS if k in props}

    def commit_check(self):
        """Raise AreaMapError unless the area can be committed."""
        if not self.name or not self.name.strip():
            raise AreaMapError("committed area requires a non-empty name")
        if not isinstance(self.description, str):
            raise AreaMapError("committed area requires a description string")

    def replace_ring(self, ring):
        """Replace the outer ring in place, keeping holes and properties."""
        coords = self.geometry.setdefault("geometry", {"type": "Polygon"}).get("coordinates") or []
        self.geometry["geometry"]["type"] = "Polygon"
        self.geometry["geometry"]["coordinates"] = [ring] + list(coords[1:])
        self.updated_at = utc_now()

    def with_id(self, area_id: int) -> "Area":
        """Copy of this area carrying the server-assigned id."""
        return replace(self, id=int(area_id), geometry=copy.deepcopy(self.geometry),
                       contact_emails=list(self.contact_emails))

    def to_dict(self):
        d = {
            "name": self.name,
            "description": self.description or "",
            "type": self.type,
            "is_custom": self.is_custom,
            "contact_name": self.contact_name or "",
            "contact_emails": [c.to_dict() for c in self.contact_emails],
            "coordinates": self.geometry,
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat(),
        }
        if self.id is not None:
            d["id"] = self.id
        return d

    @staticmethod
    def from_dict(d):
        feature = d.get("coordinates") or d.get("geometry") or {}
        raw_id = d.get("id")
        return Area(
            id=int(raw_id) if raw_id is not None else None,
            name=d.get("name", ""),
            description=d.get("description") or "",
            type=d.get("type", AREA_TYPE_POI),
            is_custom=bool(d.get("is_custom", False)),
            contact_name=d.get("contact_name") or "",
            contact_emails=[ContactEmail.from_dict(c) for c in d.get("contact_emails") or []],
            geometry=feature,
            created_at=parse_timestamp(d.get("created_at")),
            updated_at=parse_timestamp(d.get("updated_at")),
        )


def area_key(area: Area):
    """
    Key used for selection membership and render dedupe.

    Persisted areas are keyed by id; id-less areas by object identity, so two
    unsaved drawings are never confused with each other.
    """
    if area.id is not None:
        return ("id", area.id)
    return ("obj", id(area))


def build_submitted_area(draft: Area, name: str, contact_email: str) -> Area:
    """
    Merge confirmation dialog input into a copy of the draft.

    An empty name falls back to a placeholder, the description is coerced to
    "" and a non-empty contact becomes a single consenting contact address.
    """
    name = (name or "").strip()
    contact_email = (contact_email or "").strip()
    submitted = replace(
        draft,
        name=name or placeholder_name(),
        description=draft.description or "",
        contact_emails=[ContactEmail(contact_email, True)] if contact_email else [],
    )
    submitted.session_id = draft.session_id
    return submitted
