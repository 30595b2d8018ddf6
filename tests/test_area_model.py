"""Tests for the Area model and its wire format."""

import datetime

import pytest

from areamap.core.constants import AREA_STYLE_DRAWN, CUSTOM_AREA_NAME_PREFIX
from areamap.core.errors import AreaMapError
from areamap.core.models.area import (
    Area, ContactEmail, area_key, build_submitted_area, parse_timestamp
)

from conftest import make_area, square_ring


class TestDraft:
    """Drafts synthesized from a drawn ring."""

    def test_draft_fields(self):
        """A draft is custom, id-less, POI, named by placeholder, with an empty description."""
        ring = square_ring()
        draft = Area.draft(ring, session_id=3)
        assert draft.id is None
        assert draft.is_custom
        assert draft.type == "poi"
        assert draft.description == ""
        assert draft.name.startswith(CUSTOM_AREA_NAME_PREFIX + " ")
        assert draft.session_id == 3
        assert draft.ring == ring

    def test_draft_carries_drawn_style(self):
        """The drawn-area palette travels in the feature properties."""
        draft = Area.draft(square_ring())
        assert draft.style_hints == AREA_STYLE_DRAWN
        assert draft.geometry["properties"]["name"] == draft.name


class TestAreaFields:
    """Construction invariants."""

    def test_none_description_coerced(self):
        """A null description from the backend becomes an empty string."""
        area = Area(name="A", geometry={}, description=None)
        assert area.description == ""

    def test_unknown_type_rejected(self):
        with pytest.raises(AreaMapError):
            Area(name="A", geometry={}, type="country")

    def test_commit_check_requires_name(self):
        """Committed areas need a non-blank name."""
        with pytest.raises(AreaMapError):
            Area(name="  ", geometry={}).commit_check()
        Area(name="ok", geometry={}).commit_check()

    def test_replace_ring_keeps_holes_and_touches_updated_at(self):
        """Replacing the outer ring keeps holes and properties."""
        hole = [[0.2, 0.2], [0.4, 0.2], [0.4, 0.4], [0.2, 0.2]]
        area = make_area(1, is_custom=True)
        area.geometry["geometry"]["coordinates"].append(hole)
        area.updated_at = datetime.datetime(2000, 1, 1, tzinfo=datetime.timezone.utc)

        new_ring = square_ring(5, 5, 2)
        area.replace_ring(new_ring)

        assert area.ring == new_ring
        assert area.geometry["geometry"]["coordinates"][1] == hole
        assert area.geometry["properties"]["name"] == area.name
        assert area.updated_at.year > 2000

    def test_with_id_copies_geometry(self):
        """with_id returns an independent copy carrying the id and session."""
        draft = Area.draft(square_ring(), session_id=9)
        saved = draft.with_id(42)
        assert saved.id == 42
        assert saved.session_id == 9
        assert draft.id is None
        saved.geometry["properties"]["name"] = "other"
        assert draft.geometry["properties"]["name"] == draft.name


class TestWireFormat:
    """Mapping to and from the backend JSON."""

    def test_to_dict_uses_coordinates_key_and_omits_missing_id(self):
        """The feature is sent under 'coordinates' and id-less areas send no id."""
        area = Area.draft(square_ring())
        d = area.to_dict()
        assert "id" not in d
        assert d["coordinates"] is area.geometry
        assert d["description"] == ""
        assert d["is_custom"] is True
        assert "session_id" not in d

    def test_from_dict(self):
        """Backend records are parsed, including 'Z' timestamps and null fields."""
        d = {
            "id": "7",
            "name": "Harbor",
            "description": None,
            "type": "admin",
            "is_custom": False,
            "contact_emails": [{"email": "a@x.com", "consent_report": True}],
            "coordinates": {"type": "Feature", "geometry": {"type": "Polygon", "coordinates": [square_ring()]},
                            "properties": {"name": "Harbor", "color": "#000000"}},
            "created_at": "2024-05-01T10:00:00Z",
            "updated_at": "2024-05-02T10:00:00+00:00",
        }
        area = Area.from_dict(d)
        assert area.id == 7
        assert area.type == "admin"
        assert area.description == ""
        assert area.contact_emails == [ContactEmail("a@x.com", True)]
        assert area.created_at == datetime.datetime(2024, 5, 1, 10, tzinfo=datetime.timezone.utc)
        assert area.style_hints == {"color": "#000000"}

    def test_parse_naive_timestamp_is_utc(self):
        ts = parse_timestamp("2024-01-01T00:00:00")
        assert ts.tzinfo == datetime.timezone.utc


class TestAreaKey:
    """Identity used by selection and dedupe."""

    def test_persisted_areas_keyed_by_id(self):
        """Two instances with the same id share a key."""
        assert area_key(make_area(5)) == area_key(make_area(5, name="copy"))

    def test_unsaved_areas_keyed_by_identity(self):
        """Two unsaved drawings never share a key."""
        a, b = make_area(None, "a"), make_area(None, "a")
        assert area_key(a) != area_key(b)
        assert area_key(a) == area_key(a)


class TestBuildSubmittedArea:
    """Merging confirmation dialog input into a draft."""

    def test_name_and_contact(self):
        """Name and a single consenting contact are taken from the dialog."""
        draft = Area.draft(square_ring(), session_id=1)
        submitted = build_submitted_area(draft, " Zone A ", "a@x.com")
        assert submitted.name == "Zone A"
        assert submitted.contact_emails == [ContactEmail("a@x.com", True)]
        assert submitted.description == ""
        assert submitted.session_id == 1

    def test_empty_fields(self):
        """An empty name falls back to a placeholder and no contact gives no emails."""
        draft = Area.draft(square_ring())
        submitted = build_submitted_area(draft, "", "  ")
        assert submitted.name.startswith(CUSTOM_AREA_NAME_PREFIX)
        assert submitted.contact_emails == []
        assert submitted.description == ""
