from __future__ import annotations

import logging
import sys
from typing import Optional

from PySide6 import QtCore, QtGui, QtWidgets
from sqlalchemy.engine import Connection
from sqlalchemy.exc import SQLAlchemyError

from .config import Config
from .db import init_db, open_connection
from .engine import ScanResult, ScanStatus, TapEngine
from .exceptions import ReaderInitError
from .reader_adapter import MockReader, MockState, ReaderAdapter, RealReader
from .services import (
    UserRow,
    fetch_users,
    format_last_scan,
    presence_label,
    set_username,
)

logger = logging.getLogger(__name__)


def show_temp_message(
    parent,
    title,
    text,
    icon=QtWidgets.QMessageBox.Icon.Information,
    timeout_ms: int = 3000,
):
    box = QtWidgets.QMessageBox(parent)
    box.setIcon(icon)
    box.setText(text)
    box.setWindowTitle(title)
    box.setStandardButtons(QtWidgets.QMessageBox.StandardButton.Ok)
    box.setModal(False)
    box.show()
    QtCore.QTimer.singleShot(timeout_ms, box.accept)
    return box


class UserTableModel(QtCore.QAbstractTableModel):
    HEADERS = ["UID", "Name", "Taps", "Last Scan", "Status"]

    def __init__(self, rows: list[UserRow]):
        super().__init__()
        self._rows = rows

    def update(self, rows: list[UserRow]):
        self.beginResetModel()
        self._rows = rows
        self.endResetModel()

    def rowCount(
        self,
        parent: (
            QtCore.QModelIndex | QtCore.QPersistentModelIndex
        ) = QtCore.QModelIndex(),
    ):
        return len(self._rows)

    def columnCount(
        self,
        parent: (
            QtCore.QModelIndex | QtCore.QPersistentModelIndex
        ) = QtCore.QModelIndex(),
    ):
        return len(self.HEADERS)

    def headerData(
        self,
        section,
        orientation,
        role: QtCore.Qt.ItemDataRole | int = QtCore.Qt.ItemDataRole.DisplayRole,
    ):
        if (
            role == QtCore.Qt.ItemDataRole.DisplayRole
            and orientation == QtCore.Qt.Orientation.Horizontal
        ):
            return self.HEADERS[section]
        return None

    def data(self, index, role: int = QtCore.Qt.ItemDataRole.DisplayRole):
        if not index.isValid():
            return None
        r = self._rows[index.row()]
        col = index.column()
        if role == QtCore.Qt.ItemDataRole.DisplayRole:
            if col == 0:
                return r.uid
            if col == 1:
                return r.username or "—"
            if col == 2:
                return str(r.tap_count)
            if col == 3:
                return format_last_scan(r.last_scan_time)
            if col == 4:
                return presence_label(r.tap_count)
        if role == QtCore.Qt.ItemDataRole.BackgroundRole:
            # Green while tapped in, yellow once tapped out
            if presence_label(r.tap_count) == "IN":
                return QtGui.QBrush(QtGui.QColor(40, 167, 69, 60))
            else:
                return QtGui.QBrush(QtGui.QColor(255, 193, 7, 60))
        if role == QtCore.Qt.ItemDataRole.TextAlignmentRole:
            if col in (2, 3, 4):
                return int(QtCore.Qt.AlignmentFlag.AlignCenter)
        return None


class NameManagerDialog(QtWidgets.QDialog):
    def __init__(self, conn: Connection, parent=None):
        super().__init__(parent)
        self.setWindowTitle("Manage Names")
        self.resize(600, 400)
        self.conn = conn
        self.table = QtWidgets.QTableWidget(self)
        self.table.setColumnCount(3)
        self.table.setHorizontalHeaderLabels(["UID", "Name", "Action"])
        self.table.horizontalHeader().setStretchLastSection(True)
        layout = QtWidgets.QVBoxLayout(self)
        layout.addWidget(self.table)
        self.reload()

    def reload(self):
        try:
            users = fetch_users(self.conn)
        except SQLAlchemyError as e:
            self.conn.rollback()
            logger.error("Failed to load users: %s", e)
            show_temp_message(
                self, "Error", str(e), QtWidgets.QMessageBox.Icon.Critical
            )
            return
        self.table.setRowCount(len(users))
        for row, u in enumerate(users):
            self.table.setItem(row, 0, QtWidgets.QTableWidgetItem(u.uid))
            self.table.setItem(row, 1, QtWidgets.QTableWidgetItem(u.username or ""))
            btn = QtWidgets.QPushButton("Rename")

            def make_handler(uid=u.uid, current=u.username):
                def handler():
                    name, ok = QtWidgets.QInputDialog.getText(
                        self, "Rename", f"Name for {uid}:", text=current or ""
                    )
                    if not ok:
                        return
                    try:
                        set_username(self.conn, uid, name)
                        self.reload()
                    except SQLAlchemyError as e:
                        self.conn.rollback()
                        show_temp_message(
                            self, "Error", str(e), QtWidgets.QMessageBox.Icon.Critical
                        )

                return handler

            btn.clicked.connect(make_handler())
            self.table.setCellWidget(row, 2, btn)


class ScanWindow(QtWidgets.QMainWindow):
    REFRESH_MS = 3000

    def __init__(
        self,
        conn: Connection,
        reader: Optional[ReaderAdapter] = None,
        poll_interval: float = 0.1,
        scan_delay: float = 1.0,
    ):
        super().__init__()
        self.conn = conn
        self.reader = reader
        self.engine = TapEngine(conn, reader)
        self.scan_delay_ms = int(scan_delay * 1000)
        self.setWindowTitle("RFID Scan")
        self.resize(800, 520)

        # Table
        self.table = QtWidgets.QTableView()
        self.model = UserTableModel([])
        self.table.setModel(self.model)
        self.table.setSelectionBehavior(
            QtWidgets.QTableView.SelectionBehavior.SelectRows
        )
        self.table.setAlternatingRowColors(True)
        self.table.horizontalHeader().setStretchLastSection(True)
        self.table.horizontalHeader().setSectionResizeMode(
            QtWidgets.QHeaderView.ResizeMode.Stretch
        )

        # Toolbar
        tb = QtWidgets.QToolBar()
        tb.setMovable(False)
        self.addToolBar(QtCore.Qt.ToolBarArea.TopToolBarArea, tb)
        act_manage = QtGui.QAction("Manage Names", self)
        act_manage.triggered.connect(self.open_manage)
        act_refresh = QtGui.QAction("Refresh", self)
        act_refresh.triggered.connect(self.fetch_data)
        tb.addAction(act_manage)
        tb.addSeparator()
        tb.addAction(act_refresh)

        self.greeting = QtWidgets.QLabel("Tap a card")
        self.greeting.setAlignment(QtCore.Qt.AlignmentFlag.AlignCenter)
        font = self.greeting.font()
        font.setPointSize(20)
        self.greeting.setFont(font)

        # Mock input (if any)
        mock_box = None
        if isinstance(self.reader, MockReader):
            mock_box = QtWidgets.QGroupBox("Mock Tap")
            mock_uid = QtWidgets.QLineEdit()
            mock_uid.setPlaceholderText("UID hex e.g. 041AFF")
            send_btn = QtWidgets.QPushButton("Simulate Tap")

            def do_mock():
                try:
                    self.reader.set_next(mock_uid.text())  # type: ignore - this is validated by isinstance above
                except ValueError as e:
                    show_temp_message(
                        self, "Mock Error", str(e), QtWidgets.QMessageBox.Icon.Warning
                    )

            send_btn.clicked.connect(do_mock)
            mock_uid.returnPressed.connect(do_mock)
            h = QtWidgets.QHBoxLayout()
            h.addWidget(QtWidgets.QLabel("UID:"))
            h.addWidget(mock_uid)
            h.addWidget(send_btn)
            mock_box.setLayout(h)

        # Central layout
        central = QtWidgets.QWidget()
        v = QtWidgets.QVBoxLayout(central)
        v.addWidget(self.greeting)
        v.addWidget(self.table)
        if mock_box:
            v.addWidget(mock_box)
        self.setCentralWidget(central)

        self.statusBar().showMessage(
            "Ready" if self.reader else "No reader available. View only."
        )

        # Periodic refresh
        self._timer = QtCore.QTimer(self)
        self._timer.setInterval(self.REFRESH_MS)
        self._timer.timeout.connect(self.fetch_data)
        self._timer.start()

        # Fixed-interval reader poll
        self._poll_timer = QtCore.QTimer(self)
        self._poll_timer.setInterval(max(1, int(poll_interval * 1000)))
        self._poll_timer.timeout.connect(self.poll_reader)
        if self.reader is not None:
            self._poll_timer.start()

        self.setStyleSheet(
            """
            QMainWindow { background: #0f1115; }
            QToolBar { background: #111318; border: none; }
            QTableView { background: #151821; color: #e2e8f0; gridline-color: #2d3340; alternate-background-color:#171a24; }
            QHeaderView::section { background: #121520; color: #b6c2d9; padding:6px; border: 1px solid #2d3340; }
            QLabel, QLineEdit { color: #e2e8f0; }
            QLineEdit { background:#0d0f14; border:1px solid #2b3242; padding:6px; border-radius:4px; }
            QPushButton { background:#1f2737; color:#e2e8f0; padding:6px 10px; border:1px solid #2b3242; border-radius:6px; }
            QPushButton:hover { background:#273149; }
            QGroupBox { border:1px solid #2b3242; border-radius:6px; margin-top: 8px; }
            QGroupBox::title { subcontrol-origin: margin; left: 10px; padding: 0 4px; }
            """
        )

        self.fetch_data()

    def poll_reader(self):
        result = self.engine.poll_once()
        if result.status == ScanStatus.NO_CARD:
            return
        self._show_result(result)
        # hold off the next poll so a resting card is not re-read at once
        self._poll_timer.stop()
        QtCore.QTimer.singleShot(self.scan_delay_ms, self._poll_timer.start)

    def _show_result(self, result: ScanResult):
        if not result.ok:
            logger.error("SQL error for UID %s: %s", result.uid, result.error)
            self.statusBar().showMessage(f"Database error for {result.uid}", 5000)
            return
        print(result.message)
        if result.status == ScanStatus.UPDATED:
            self.greeting.setText(result.message)
        else:
            self.greeting.setText(f"New card {result.uid}")
        who = result.username or f"UID {result.uid}"
        self.statusBar().showMessage(f"{who}: {result.message}", 5000)
        self.fetch_data()

    def fetch_data(self):
        try:
            rows = fetch_users(self.conn)
        except SQLAlchemyError as e:
            self.conn.rollback()
            logger.error("Failed to load users: %s", e)
            self.statusBar().showMessage("Failed to load users", 5000)
            return
        self.model.update(rows)

    def open_manage(self):
        dlg = NameManagerDialog(self.conn, self)
        dlg.exec()
        self.fetch_data()


def run_ui(cfg: Config, mock: bool = False):
    app = QtWidgets.QApplication(sys.argv)
    reader: Optional[ReaderAdapter]
    if mock:
        reader = MockReader(MockState())
    else:
        try:
            reader = RealReader()
        except ReaderInitError as e:
            logger.warning("%s; starting without a reader", e)
            reader = None
    try:
        with open_connection(cfg) as conn:
            init_db(conn)
            win = ScanWindow(conn, reader, cfg.poll_interval, cfg.scan_delay)
            win.show()
            code = app.exec()
    finally:
        if reader is not None:
            reader.close()
    sys.exit(code)
