"""Tests for the area creation dialog."""

import pytest
from PyQt6.QtWidgets import QDialog, QDialogButtonBox

from areamap.core.models.area import Area, ContactEmail
from areamap.ui.dialogs.area_creation_dialog import AreaCreationDialog

from conftest import square_ring


@pytest.fixture
def dialog(qapp):
    d = AreaCreationDialog(Area.draft(square_ring(), session_id=2))
    yield d
    d.deleteLater()


def ok_button(d):
    return d.bb.button(QDialogButtonBox.StandardButton.Ok)


class TestAreaCreationDialog:
    def test_ok_needs_both_fields(self, dialog):
        """OK stays disabled until name and contact email are filled."""
        assert not ok_button(dialog).isEnabled()
        dialog.name_edit.setText("Zone A")
        assert not ok_button(dialog).isEnabled()
        dialog.email_edit.setText("a@x.com")
        assert ok_button(dialog).isEnabled()
        dialog.name_edit.setText("   ")
        assert not ok_button(dialog).isEnabled()

    def test_accept_ignored_when_incomplete(self, dialog):
        dialog.accept()
        assert dialog.result() != QDialog.DialogCode.Accepted

    def test_submitted_area(self, dialog):
        """The submitted area merges the fields into the draft."""
        dialog.name_edit.setText("Zone A")
        dialog.email_edit.setText("a@x.com")
        area = dialog.submitted_area()
        assert area.name == "Zone A"
        assert area.contact_emails == [ContactEmail("a@x.com", True)]
        assert area.description == ""
        assert area.session_id == 2
        assert area.ring == dialog.draft.ring
