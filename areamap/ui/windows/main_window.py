"""
Host window of the area map.

Hosts the map view, the mode toolbar, the selected / drawn area lists and the
status bar, and wires them to an AreaMapController.
"""

from PyQt6.QtCore import Qt, QTimer
from PyQt6.QtGui import QActionGroup
from PyQt6.QtWidgets import (
    QDialog, QGraphicsScene, QHBoxLayout, QLabel, QListWidget, QListWidgetItem, QMainWindow,
    QPushButton, QToolBar, QVBoxLayout, QWidget
)

from areamap.core.areas_api import AreasApiClient
from areamap.core.constants import APP_NAME, DEFAULT_WINDOW_SIZE, logger
from areamap.core.controller import AreaMapController
from areamap.core.errors import FetchFailed
from areamap.core.models.map_info import MapInfo
from areamap.ui.dialogs.area_creation_dialog import AreaCreationDialog
from areamap.ui.map.map_view import MODE_ADD_AREA, MODE_DELETE_AREA, MODE_RESHAPE, MODE_SELECT, MapView
from areamap.workers.task_worker import ThreadedTaskRunner

TOOLBAR_QSS = """
    QToolBar {
        background-color: transparent;
        border-bottom: 1px solid #CCC;
        spacing: 3px;
    }
    QToolBar::separator {
        background-color: #808080;
        width: 2px;
        margin-top: 4px;
        margin-bottom: 4px;
    }
"""

AREA_ROLE = Qt.ItemDataRole.UserRole


class MainWindow(QMainWindow):
    def __init__(self, settings, api=None):
        super().__init__()
        self.settings = settings
        self.setWindowTitle(APP_NAME)
        self.resize(*DEFAULT_WINDOW_SIZE)

        self.runner = ThreadedTaskRunner(self)
        self.api = api or AreasApiClient.from_settings(settings)
        self.controller = AreaMapController(self.api, self.runner, area_type=settings.fetch_area_type, parent=self)

        self.init_ui()
        self.controller.surface = self.view

        c = self.controller
        c.render_changed.connect(self.redraw_map)
        c.confirmation_requested.connect(self.on_confirmation_requested)
        c.status_message.connect(self.show_status)
        c.error_reported.connect(self.on_error)
        c.draw.state_changed.connect(self.view.set_draw_state)
        c.fetcher.loading_changed.connect(self.on_loading_changed)

    def init_ui(self):
        central = QWidget()
        self.setCentralWidget(central)
        main_h = QHBoxLayout(central)
        main_h.setContentsMargins(5, 5, 5, 5)
        main_h.setSpacing(15)

        left_widget = QWidget()
        left_v = QVBoxLayout(left_widget)
        left_v.setContentsMargins(0, 0, 0, 0)

        tb = QToolBar()
        tb.setStyleSheet(TOOLBAR_QSS)
        left_v.addWidget(tb)

        tb.addWidget(QLabel(" Mode: "))
        self.mode_group = QActionGroup(self)
        self.mode_actions = {}
        for mode, label in ((MODE_SELECT, "Select"), (MODE_ADD_AREA, "Draw Area"),
                            (MODE_RESHAPE, "Reshape"), (MODE_DELETE_AREA, "Delete Area")):
            a = tb.addAction(label)
            a.setCheckable(True)
            a.triggered.connect(lambda _checked, m=mode: self.set_map_mode(m))
            self.mode_group.addAction(a)
            self.mode_actions[mode] = a
        self.mode_actions[MODE_SELECT].setChecked(True)
        tb.addSeparator()

        tb.addWidget(QLabel(" Areas: "))
        tb.addAction("Refresh", lambda: self.view.post_bounds())

        s = self.settings
        self.scene = QGraphicsScene()
        self.view = MapView(
            self.scene, self.controller.channel,
            MapInfo(s.initial_center[0], s.initial_center[1], s.pixels_per_degree),
            settle_ms=s.bounds_settle_ms, vertex_count=s.draw_vertex_count,
        )
        self.view.mode_changed.connect(self.on_mode_changed)
        left_v.addWidget(self.view)

        self.lbl_coords = QLabel("Lat: 0.00000 Lon: 0.00000")
        self.lbl_coords.setAlignment(Qt.AlignmentFlag.AlignRight | Qt.AlignmentFlag.AlignVCenter)
        left_v.addWidget(self.lbl_coords)
        self.view.coord_changed.connect(self.update_coords)

        main_h.addWidget(left_widget, 3)

        right_widget = QWidget()
        right_v = QVBoxLayout(right_widget)
        right_v.setContentsMargins(0, 0, 0, 0)

        lbl_sel = QLabel("Selected Areas"); lbl_sel.setObjectName("boldLbl")
        right_v.addWidget(lbl_sel)
        self.selected_list = QListWidget()
        right_v.addWidget(self.selected_list)
        self.btn_deselect = QPushButton("Deselect")
        self.btn_deselect.clicked.connect(self.deselect_current)
        right_v.addWidget(self.btn_deselect)

        lbl_drawn = QLabel("Drawn Areas (check = public)"); lbl_drawn.setObjectName("boldLbl")
        right_v.addWidget(lbl_drawn)
        self.drawn_list = QListWidget()
        self.drawn_list.itemChanged.connect(self.on_drawn_item_changed)
        right_v.addWidget(self.drawn_list)

        main_h.addWidget(right_widget, 1)

        self.btn_retry = QPushButton("Retry")
        self.btn_retry.setEnabled(False)
        self.btn_retry.clicked.connect(self.retry_fetch)
        self.statusBar().addPermanentWidget(self.btn_retry)

    # ----- map -----

    def set_map_mode(self, mode):
        self.view.set_mode(mode)

    def on_mode_changed(self, mode):
        self.mode_actions[mode].setChecked(True)
        self.show_status(f"Mode: {mode}")
        # vertex handles depend on the mode
        self.redraw_map()

    def update_coords(self, lat, lon):
        self.lbl_coords.setText(f"Lat: {lat:.5f} Lon: {lon:.5f}")

    def redraw_map(self):
        self.view.render_areas(self.controller.render_items())
        self.refresh_lists()

    # ----- lists -----

    def refresh_lists(self):
        c = self.controller

        self.selected_list.clear()
        for area in c.selection.areas():
            item = QListWidgetItem(area.name)
            item.setData(AREA_ROLE, area)
            self.selected_list.addItem(item)

        self.drawn_list.blockSignals(True)
        self.drawn_list.clear()
        for area in c.store.drawn:
            label = area.name if area.id is not None else f"{area.name} (unsaved)"
            item = QListWidgetItem(label)
            item.setData(AREA_ROLE, area)
            item.setFlags(item.flags() | Qt.ItemFlag.ItemIsUserCheckable)
            checked = c.selection.is_public(area)
            item.setCheckState(Qt.CheckState.Checked if checked else Qt.CheckState.Unchecked)
            self.drawn_list.addItem(item)
        self.drawn_list.blockSignals(False)

    def deselect_current(self):
        item = self.selected_list.currentItem()
        if item is None:
            return
        self.controller.deselect(item.data(AREA_ROLE))

    def on_drawn_item_changed(self, item):
        area = item.data(AREA_ROLE)
        is_public = item.checkState() == Qt.CheckState.Checked
        if not self.controller.set_public(area, is_public):
            self.refresh_lists()

    # ----- draw confirmation -----

    def on_confirmation_requested(self, draft):
        # open after the mouse event that completed the gesture has returned
        QTimer.singleShot(0, lambda: self.open_creation_dialog(draft))

    def open_creation_dialog(self, draft):
        d = AreaCreationDialog(draft, self)
        if d.exec() == QDialog.DialogCode.Accepted:
            self.controller.submit(d.submitted_area())
        else:
            self.controller.cancel()
        self.set_map_mode(MODE_SELECT)

    # ----- status -----

    def show_status(self, text):
        self.statusBar().showMessage(text, 5000 if text else 0)

    def on_error(self, err):
        if isinstance(err, FetchFailed):
            self.btn_retry.setEnabled(True)
        # a rejected reshape left the dragged outline behind
        self.redraw_map()

    def on_loading_changed(self, loading):
        if loading:
            self.btn_retry.setEnabled(False)

    def retry_fetch(self):
        self.btn_retry.setEnabled(False)
        if self.controller.retry_fetch() is None:
            self.view.post_bounds()

    def closeEvent(self, event):
        logger.info("Waiting for background tasks")
        self.runner.shutdown()
        event.accept()
