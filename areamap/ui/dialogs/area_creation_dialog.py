"""
Area creation dialog module

Asks for the name and contact address of a freshly drawn area while the
draw session waits in PENDING_CONFIRMATION.

Classes:
    AreaCreationDialog: confirmation dialog for a draft area
"""

from PyQt6.QtWidgets import QDialog, QDialogButtonBox, QFormLayout, QLabel, QLineEdit

from areamap.core.models.area import Area, build_submitted_area


class AreaCreationDialog(QDialog):
    """
    Confirmation dialog for a draft area.

    OK (and Enter) is only available once both fields are filled; Escape and
    Cancel reject the dialog, which discards the draft.

    Attributes:
        draft: Area awaiting confirmation
        name_edit: area name field
        email_edit: contact email field
    """

    def __init__(self, draft: Area, parent=None):
        super().__init__(parent)
        self.draft = draft
        self.setWindowTitle("New Area")
        self.resize(420, 160)
        l = QFormLayout(self)

        self.name_edit = QLineEdit()
        self.name_edit.setPlaceholderText(draft.name)
        self.email_edit = QLineEdit()
        self.email_edit.setPlaceholderText("contact@example.com")

        l.addRow(QLabel("Name the area and give a contact for reports."))
        l.addRow("Name:", self.name_edit)
        l.addRow("Contact Email:", self.email_edit)

        self.bb = QDialogButtonBox(QDialogButtonBox.StandardButton.Ok | QDialogButtonBox.StandardButton.Cancel)
        self.bb.accepted.connect(self.accept)
        self.bb.rejected.connect(self.reject)
        l.addWidget(self.bb)

        self.name_edit.textChanged.connect(self._update_ok)
        self.email_edit.textChanged.connect(self._update_ok)
        self._update_ok()

    def is_complete(self) -> bool:
        return bool(self.name_edit.text().strip()) and bool(self.email_edit.text().strip())

    def _update_ok(self):
        self.bb.button(QDialogButtonBox.StandardButton.Ok).setEnabled(self.is_complete())

    def accept(self):
        if not self.is_complete():
            return
        super().accept()

    def submitted_area(self) -> Area:
        """The draft merged with the entered name and contact."""
        return build_submitted_area(self.draft, self.name_edit.text(), self.email_edit.text())
