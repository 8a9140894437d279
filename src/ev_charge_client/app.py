"""PyQt5 user interface for the EV charge map client."""
from __future__ import annotations

import logging
from typing import Callable, Dict, Optional

from PyQt5.QtCore import QObject, QThread, QTimer, QUrl, Qt, pyqtSignal
from PyQt5.QtGui import QDesktopServices, QImage, QPixmap
from PyQt5.QtWidgets import (
    QApplication,
    QFileDialog,
    QFrame,
    QHBoxLayout,
    QLabel,
    QLineEdit,
    QListWidget,
    QListWidgetItem,
    QMainWindow,
    QPushButton,
    QScrollArea,
    QStackedWidget,
    QVBoxLayout,
    QWidget,
)

from .catalog import load_station_feed
from .config import AppConfig, CameraConfig, StyleConfig
from .icon import create_icon
from .map_state import CHARGING_DETAIL, LocationRequest, MapStateController, parse_station_link
from .maps import build_map_html
from .navigation import DetailsView, NavigationStateMachine, ScannerView, View
from .network import tiles_reachable
from .presenters import station_card, station_detail
from .profile import UserProfile, load_profile, profile_stats, recent_summary, session_rows
from .qr import QRCodeManager
from .security import SessionAuthorizer, open_directions
from .state import SessionState

_logger = logging.getLogger(__name__)


def _rich_label(text: str = "", object_name: str = "") -> QLabel:
    """A label that renders already-sanitised markup."""

    label = QLabel(text)
    label.setTextFormat(Qt.RichText)
    label.setWordWrap(True)
    label.setOpenExternalLinks(False)
    if object_name:
        label.setObjectName(object_name)
    return label


def _plain_label(text: str = "", object_name: str = "") -> QLabel:
    label = QLabel(text)
    label.setTextFormat(Qt.PlainText)
    label.setWordWrap(True)
    if object_name:
        label.setObjectName(object_name)
    return label


def _back_button(handler: Callable[[], object]) -> QPushButton:
    button = QPushButton("←")
    button.setObjectName("BackButton")
    button.setFixedWidth(44)
    button.clicked.connect(handler)
    return button


def _open_camera(cv2, camera_config: CameraConfig):  # pragma: no cover - requires a camera
    """Return the first capture device that opens, sized per ``camera_config``."""

    for backend in camera_config.get_backends() or [getattr(cv2, "CAP_ANY", 0)]:
        for index in camera_config.get_indices():
            capture = cv2.VideoCapture(index, backend)
            if capture.isOpened():
                capture.set(cv2.CAP_PROP_FRAME_WIDTH, camera_config.width)
                capture.set(cv2.CAP_PROP_FRAME_HEIGHT, camera_config.height)
                return capture
            capture.release()
    return None


def _fit_frame(cv2, frame, max_side: int):  # pragma: no cover - requires OpenCV
    height, width = frame.shape[:2]
    longest = max(height, width)
    if longest <= max_side:
        return frame
    ratio = max_side / float(longest)
    return cv2.resize(frame, (int(width * ratio), int(height * ratio)))


class CameraWorker(QObject):  # pragma: no cover - requires Qt event loop
    """Reads camera frames on a worker thread until one carries a charger code."""

    frame_captured = pyqtSignal(object)
    decoded = pyqtSignal(str)
    status = pyqtSignal(str)
    finished = pyqtSignal()

    def __init__(self, config: AppConfig, camera_config: CameraConfig):
        super().__init__()
        self._camera_config = camera_config
        self._frame_skip = max(1, config.camera_frame_skip)
        self._max_side = config.max_frame_size
        self._codes = QRCodeManager(config)
        self._active = False

    def stop(self) -> None:
        self._active = False

    def run(self) -> None:
        try:
            import cv2  # type: ignore
            import pyzbar  # type: ignore  # noqa: F401
        except Exception:
            self.status.emit("Camera support is not installed")
            self.finished.emit()
            return

        capture = _open_camera(cv2, self._camera_config)
        if capture is None:
            self.status.emit("No camera could be opened")
            self.finished.emit()
            return

        self._active = True
        self.status.emit("Point the camera at the charger code")
        count = 0
        try:
            while self._active:
                ok, frame = capture.read()
                if not ok or frame is None:
                    self.status.emit("Camera stopped delivering frames")
                    break

                frame = _fit_frame(cv2, frame, self._max_side)
                self.frame_captured.emit(frame)

                count += 1
                if count % self._frame_skip:
                    continue

                payload = self._codes.decode_frame(frame)
                if payload and self._active:
                    _logger.debug("Charger code found in camera frame %d", count)
                    self.decoded.emit(payload)
                    break
        finally:
            self._active = False
            capture.release()
            self.finished.emit()


class GeolocationProvider(QObject):  # pragma: no cover - requires Qt event loop
    """Single position request through :mod:`PyQt5.QtPositioning`."""

    def __init__(self, timeout_ms: int, parent: Optional[QObject] = None):
        super().__init__(parent)
        self._timeout_ms = timeout_ms
        self._source = None

    def request(self, request: LocationRequest) -> None:
        try:
            from PyQt5.QtPositioning import QGeoPositionInfoSource
        except Exception:
            QTimer.singleShot(0, lambda: request.fail("Qt positioning module not installed"))
            return

        source = QGeoPositionInfoSource.createDefaultSource(self)
        if source is None:
            QTimer.singleShot(0, lambda: request.fail("No positioning source available"))
            return

        def on_position(info) -> None:
            coordinate = info.coordinate()
            request.resolve(coordinate.latitude(), coordinate.longitude())

        source.positionUpdated.connect(on_position)
        source.updateTimeout.connect(lambda: request.fail("Position request timed out"))
        source.error.connect(lambda code: request.fail(f"Positioning error {int(code)}"))
        self._source = source
        source.requestUpdate(self._timeout_ms)


def _create_map_widget(on_station_link: Callable[[str], object]):  # pragma: no cover - requires Qt
    """Return a web view for the Leaflet map, or ``None`` without QtWebEngine."""

    try:
        from PyQt5.QtWebEngineWidgets import QWebEnginePage, QWebEngineView
    except Exception:
        return None

    class StationLinkPage(QWebEnginePage):
        def acceptNavigationRequest(self, url, nav_type, is_main_frame):  # noqa: N802
            station_id = parse_station_link(url.toString())
            if station_id is not None:
                on_station_link(station_id)
                return False
            if nav_type == QWebEnginePage.NavigationTypeLinkClicked:
                QDesktopServices.openUrl(url)
                return False
            return super().acceptNavigationRequest(url, nav_type, is_main_frame)

    view = QWebEngineView()
    view.setPage(StationLinkPage(view))
    return view


class MapPage(QWidget):  # pragma: no cover - requires Qt event loop
    def __init__(self, controller: MapStateController, config: AppConfig, style: StyleConfig):
        super().__init__()
        self._controller = controller
        self._config = config
        self._style = style
        self._last_render = None
        self._setup_ui()

    def _setup_ui(self) -> None:
        layout = QVBoxLayout(self)

        self._search = QLineEdit()
        self._search.setPlaceholderText("Search for charging stations...")
        self._search.textChanged.connect(self._controller.set_search_query)
        layout.addWidget(self._search)

        self._banner = _rich_label(object_name="ChargingBanner")
        self._banner.hide()
        layout.addWidget(self._banner)

        self._tiles_status = _plain_label("", "WarningLabel")
        self._tiles_status.hide()
        layout.addWidget(self._tiles_status)

        self._map = _create_map_widget(self._controller.select_station_id)
        if self._map is None:
            self._map = _plain_label("Map view requires PyQtWebEngine", "SubtleLabel")
            self._map.setAlignment(Qt.AlignCenter)
        self._map.setMinimumHeight(280)
        layout.addWidget(self._map, stretch=3)

        self._overlay = _plain_label("", "SubtleLabel")
        layout.addWidget(self._overlay)

        title = _plain_label("Nearby Charging Stations", "SectionTitle")
        layout.addWidget(title)

        self._list = QListWidget()
        self._list.itemClicked.connect(self._on_item_clicked)
        layout.addWidget(self._list, stretch=2)

    def set_tiles_online(self, online: bool) -> None:
        self._tiles_status.setText("" if online else "Map tiles unreachable – showing cached view")
        self._tiles_status.setVisible(not online)

    def refresh(self) -> None:
        banner = self._controller.charging_banner()
        if banner is None:
            self._banner.hide()
        else:
            self._banner.setText(f"<b>⚡ {banner}</b><br/><small>{CHARGING_DETAIL}</small>")
            self._banner.show()

        overlay = self._controller.location_overlay()
        self._overlay.setText(overlay or "")

        request = self._controller.render_request()
        if request != self._last_render and hasattr(self._map, "setHtml"):
            self._map.setHtml(
                build_map_html(request, self._config, self._style),
                QUrl("https://unpkg.com/"),
            )
            self._last_render = request

        self._refresh_list()

    def _refresh_list(self) -> None:
        self._list.clear()
        for station in self._controller.filtered_stations:
            card = station_card(station, self._config.max_card_amenities)
            tags = " ".join(f"<span class='tag'>[{tag}]</span>" for tag in card.amenity_tags)
            degraded = " <i>(data inconsistent)</i>" if card.degraded else ""
            markup = (
                f"<b>{card.name}</b> &nbsp; <span>{card.status}</span><br/>"
                f"<small>{card.address}</small><br/>"
                f"{card.availability} ports available{degraded} &nbsp; {card.cost}<br/>"
                f"<small>{tags}</small>"
            )
            item = QListWidgetItem()
            item.setData(Qt.UserRole, station.id)
            label = _rich_label(markup, "StationCard")
            item.setSizeHint(label.sizeHint())
            self._list.addItem(item)
            self._list.setItemWidget(item, label)

    def _on_item_clicked(self, item: QListWidgetItem) -> None:
        station = self._controller.station_by_id(item.data(Qt.UserRole))
        if station is not None:
            self._controller.on_station_card_activated(station)


class DetailsPage(QWidget):  # pragma: no cover - requires Qt event loop
    def __init__(self, navigation: NavigationStateMachine, config: AppConfig):
        super().__init__()
        self._navigation = navigation
        self._config = config
        self._station = None
        self._setup_ui()

    def _setup_ui(self) -> None:
        outer = QVBoxLayout(self)
        header = QHBoxLayout()
        header.addWidget(_back_button(self._navigation.back))
        header.addWidget(_plain_label("Station Details", "HeaderLabel"), stretch=1)
        outer.addLayout(header)

        scroll = QScrollArea()
        scroll.setWidgetResizable(True)
        body = QFrame()
        body.setObjectName("CentralPanel")
        self._body_layout = QVBoxLayout(body)

        self._title = _rich_label(object_name="StationTitle")
        self._status = _rich_label(object_name="StatusPill")
        self._address = _rich_label(object_name="SubtleLabel")
        self._metrics = _rich_label()
        self._amenities = _rich_label()
        self._facts = _rich_label()
        for widget in (
            self._title,
            self._status,
            self._address,
            self._metrics,
            self._amenities,
            self._facts,
        ):
            self._body_layout.addWidget(widget)

        buttons = QHBoxLayout()
        self._directions_btn = QPushButton("Get Directions")
        self._directions_btn.clicked.connect(self._open_directions)
        self._charge_btn = QPushButton("Start Charging")
        self._charge_btn.setObjectName("AccentButton")
        self._charge_btn.clicked.connect(self._navigation.start_charging)
        buttons.addWidget(self._directions_btn)
        buttons.addWidget(self._charge_btn)
        self._body_layout.addLayout(buttons)
        self._body_layout.addStretch(1)

        scroll.setWidget(body)
        outer.addWidget(scroll)

    def show_station(self, station) -> None:
        self._station = station
        detail = station_detail(station)
        self._title.setText(f"<h2>{detail.name}</h2>")
        self._status.setText(f"<span class='{detail.status_class}'>{detail.status}</span>")
        self._address.setText(detail.address)
        degraded = "<br/><i>Availability data is inconsistent</i>" if detail.degraded else ""
        self._metrics.setText(
            f"<b>{detail.availability}</b> Ports Available &nbsp;&nbsp; "
            f"<b>{detail.cost}</b> per kWh &nbsp;&nbsp; "
            f"<b>{detail.charge_time}</b> Est. charge time{degraded}"
        )
        amenities = "".join(f"<li>{item.label}</li>" for item in detail.amenities)
        self._amenities.setText(f"<h3>Amenities</h3><ul>{amenities}</ul>")
        facts = "".join(f"<tr><td>{key}:</td><td>{value}</td></tr>" for key, value in detail.facts)
        self._facts.setText(f"<table>{facts}</table>")
        self._charge_btn.setText(detail.charge_button_label)
        self._charge_btn.setEnabled(detail.can_start_charging)

    def _open_directions(self) -> None:
        if self._station is None:
            return
        open_directions(
            self._station,
            lambda url: QDesktopServices.openUrl(QUrl(url)),
            self._config.directions_base_url,
        )


class ScannerPage(QWidget):  # pragma: no cover - requires Qt event loop
    """Camera preview; acts as the capture control of the navigation machine."""

    def __init__(
        self,
        navigation: NavigationStateMachine,
        config: AppConfig,
        camera_config: CameraConfig,
    ):
        super().__init__()
        self._navigation = navigation
        self._config = config
        self._camera_config = camera_config
        self._qr = QRCodeManager(config)
        self._camera_thread: QThread | None = None
        self._camera_worker: CameraWorker | None = None
        self._cv2_module = None
        self._setup_ui()

    def _setup_ui(self) -> None:
        layout = QVBoxLayout(self)
        header = QHBoxLayout()
        header.addWidget(_back_button(self._navigation.back))
        header.addWidget(_plain_label("Scan Charger Code", "HeaderLabel"), stretch=1)
        layout.addLayout(header)

        self._display = _plain_label("Camera preview will appear here", "CameraDisplay")
        self._display.setAlignment(Qt.AlignCenter)
        self._display.setMinimumSize(320, 240)
        layout.addWidget(self._display, stretch=1)

        self._status = _plain_label("", "SubtleLabel")
        layout.addWidget(self._status)

        buttons = QHBoxLayout()
        self._rescan_btn = QPushButton("Scan Again")
        self._rescan_btn.clicked.connect(lambda: self._navigation.rescan())
        self._rescan_btn.setEnabled(False)
        load_btn = QPushButton("Load Code Image…")
        load_btn.clicked.connect(self._load_image)
        buttons.addWidget(self._rescan_btn)
        buttons.addWidget(load_btn)
        layout.addLayout(buttons)

    def start(self) -> None:
        if self._camera_thread:
            return
        try:
            import cv2  # type: ignore

            self._cv2_module = cv2
        except Exception:
            self._cv2_module = None

        self._status.setText("Initialising camera…")
        worker = CameraWorker(self._config, self._camera_config)
        thread = QThread()
        worker.moveToThread(thread)

        thread.started.connect(worker.run)
        worker.frame_captured.connect(self._on_camera_frame)
        worker.decoded.connect(self._on_decoded)
        worker.status.connect(self._status.setText)
        worker.finished.connect(self._on_camera_finished)
        thread.finished.connect(thread.deleteLater)

        self._camera_thread = thread
        self._camera_worker = worker
        thread.start()

    def stop(self) -> None:
        if self._camera_worker:
            self._camera_worker.stop()
        self._release_thread()
        self._display.clear()
        self._display.setText("Camera preview will appear here")

    def refresh(self) -> None:
        message = self._navigation.scan_message
        if message:
            self._status.setText(f"Code not accepted: {message}")
        self._rescan_btn.setEnabled(not self._navigation.scanning)

    def _load_image(self) -> None:
        path, _ = QFileDialog.getOpenFileName(
            self, "Load Charger Code", "", "Images (*.png *.jpg *.jpeg *.bmp)"
        )
        if not path:
            return
        payload = self._qr.read_from_file(path)
        if payload is None:
            self._status.setText("No code found in image")
            return
        if not self._navigation.scanning:
            self._navigation.rescan(start_capture=False)
        self._navigation.scan_result(payload)

    def _on_camera_frame(self, frame) -> None:
        if self._cv2_module is None:
            return

        rgb = self._cv2_module.cvtColor(frame, self._cv2_module.COLOR_BGR2RGB)
        height, width = rgb.shape[:2]
        image = QImage(rgb.data, width, height, rgb.strides[0], QImage.Format_RGB888).copy()
        self._display.setPixmap(
            QPixmap.fromImage(image).scaled(
                self._display.size(), Qt.KeepAspectRatio, Qt.SmoothTransformation
            )
        )

    def _on_decoded(self, payload: str) -> None:
        self._navigation.scan_result(payload)

    def _on_camera_finished(self) -> None:
        self._release_thread()

    def _release_thread(self) -> None:
        if self._camera_thread and self._camera_thread.isRunning():
            self._camera_thread.quit()
            self._camera_thread.wait(1500)
        self._camera_thread = None
        self._camera_worker = None


class ProfilePage(QWidget):  # pragma: no cover - requires Qt event loop
    def __init__(self, navigation: NavigationStateMachine, profile: UserProfile):
        super().__init__()
        self._navigation = navigation
        self._profile = profile
        self._setup_ui()

    def _setup_ui(self) -> None:
        layout = QVBoxLayout(self)
        header = QHBoxLayout()
        header.addWidget(_back_button(self._navigation.back))
        header.addWidget(_plain_label("Profile", "HeaderLabel"), stretch=1)
        layout.addLayout(header)

        profile = self._profile
        layout.addWidget(_plain_label(profile.name, "StationTitle"))
        layout.addWidget(_plain_label(profile.email, "SubtleLabel"))
        layout.addWidget(_plain_label(f"Member since {profile.member_since}", "SubtleLabel"))

        stats = QHBoxLayout()
        for stat in profile_stats(profile):
            stats.addWidget(_rich_label(f"<b>{stat.value}</b><br/><small>{stat.label}</small>", "StatCard"))
        layout.addLayout(stats)

        layout.addWidget(_plain_label("Recent Charging Sessions", "SectionTitle"))
        layout.addWidget(_plain_label(recent_summary(profile), "SubtleLabel"))
        sessions = QListWidget()
        for row in session_rows(profile):
            item = QListWidgetItem()
            label = _rich_label(
                f"<b>{row.station}</b> &nbsp; <small>{row.day}</small><br/>"
                f"{row.duration} · {row.energy} · {row.cost}"
            )
            item.setSizeHint(label.sizeHint())
            sessions.addItem(item)
            sessions.setItemWidget(item, label)
        layout.addWidget(sessions, stretch=1)

        layout.addWidget(_plain_label("Favorite Station", "SectionTitle"))
        layout.addWidget(_plain_label(profile.favorite_station))


class ChargeMapApp(QMainWindow):  # pragma: no cover - requires Qt event loop
    def __init__(self, config: Optional[AppConfig] = None) -> None:
        super().__init__()

        self._config = config if config is not None else AppConfig.from_env()
        self._camera_config = CameraConfig()
        self._style = StyleConfig()

        self._session = SessionState()
        self._navigation = NavigationStateMachine(
            self._session, authorizer=SessionAuthorizer(self._config.session_secret)
        )
        self._map = MapStateController.from_feed(
            load_station_feed(), self._navigation, self._config
        )
        self._geolocation = GeolocationProvider(self._config.geolocation_timeout_ms, self)

        self._setup_ui()

        self._navigation.set_capture(self._scanner_page)
        self._navigation.subscribe(self._on_view_changed)
        self._map.subscribe(lambda _state: self._map_page.refresh())

        self._map_page.refresh()
        self._geolocation.request(self._map.begin_location_request())

        self._network_timer = QTimer(self)
        self._network_timer.timeout.connect(self._update_network_status)
        self._network_timer.start(self._config.network_check_interval_ms)
        self._update_network_status()

    def _setup_ui(self) -> None:
        self.setWindowTitle(f"{self._config.app_name} v{self._config.app_version}")
        self.setGeometry(100, 100, 480, 860)
        self.setMinimumSize(400, 640)

        try:
            self.setWindowIcon(create_icon(color=self._style.accent_primary))
        except RuntimeError:
            pass

        self._apply_stylesheet()

        root = QWidget()
        layout = QVBoxLayout(root)
        layout.setContentsMargins(0, 0, 0, 0)

        header = QHBoxLayout()
        header.setContentsMargins(16, 12, 16, 12)
        header.addWidget(_plain_label("⚡ EV Charge", "HeaderLabel"), stretch=1)
        self._charging_indicator = _plain_label("🔋 Charging", "ChargingIndicator")
        self._charging_indicator.hide()
        header.addWidget(self._charging_indicator)
        layout.addLayout(header)

        self._stack = QStackedWidget()
        self._map_page = MapPage(self._map, self._config, self._style)
        self._details_page = DetailsPage(self._navigation, self._config)
        self._scanner_page = ScannerPage(self._navigation, self._config, self._camera_config)
        self._profile_page = ProfilePage(self._navigation, load_profile())
        self._pages: Dict[str, QWidget] = {
            "map": self._map_page,
            "details": self._details_page,
            "scanner": self._scanner_page,
            "profile": self._profile_page,
        }
        for page in self._pages.values():
            self._stack.addWidget(page)
        layout.addWidget(self._stack, stretch=1)

        nav = QHBoxLayout()
        self._nav_buttons: Dict[str, QPushButton] = {}
        for target, label in (("map", "Find"), ("scanner", "Scan"), ("profile", "Profile")):
            button = QPushButton(label)
            button.setObjectName("NavButton")
            button.setCheckable(True)
            button.clicked.connect(lambda _checked, name=target: self._navigation.navigate_to(name))
            nav.addWidget(button)
            self._nav_buttons[target] = button
        self._nav_buttons["map"].setChecked(True)
        layout.addLayout(nav)

        self.setCentralWidget(root)
        self.show()

    def _apply_stylesheet(self) -> None:
        style = self._style
        self.setStyleSheet(
            f"""
            QMainWindow {{ background: {style.bg_primary}; }}
            QWidget {{ color: {style.fg_primary}; font-family: {style.font_family}; font-size: {style.font_size}px; }}
            QLineEdit {{ background: {style.bg_secondary}; border: 1px solid {style.border}; border-radius: 8px; padding: 10px; }}
            QLineEdit:focus {{ border: 1px solid {style.accent_primary}; }}
            QPushButton {{ background: {style.bg_secondary}; border: 1px solid {style.border}; padding: 10px 16px; border-radius: 6px; font-weight: bold; }}
            QPushButton:disabled {{ color: {style.fg_secondary}; }}
            QPushButton#AccentButton {{ background: {style.accent_primary}; color: white; border: none; }}
            QPushButton#NavButton {{ border: none; background: {style.bg_primary}; }}
            QPushButton#NavButton:checked {{ color: {style.accent_primary}; }}
            QListWidget {{ border: none; background: {style.bg_primary}; }}
            #HeaderLabel {{ font-size: 20px; font-weight: bold; }}
            #SectionTitle {{ font-size: 16px; font-weight: bold; }}
            #StationTitle {{ font-size: 18px; font-weight: bold; }}
            #SubtleLabel {{ color: {style.fg_secondary}; }}
            #ChargingIndicator {{ color: {style.accent_primary}; }}
            #ChargingBanner {{ background: {style.bg_secondary}; border-left: 4px solid {style.success}; padding: 10px; }}
            #WarningLabel {{ background: {style.warning}; color: white; padding: 6px; border-radius: 4px; }}
            #CentralPanel {{ background: {style.bg_primary}; }}
            #CameraDisplay {{ border: 2px dashed {style.border}; background: {style.bg_secondary}; border-radius: 4px; }}
            """
        )

    def _on_view_changed(self, view: View) -> None:
        if isinstance(view, DetailsView):
            self._details_page.show_station(view.station)
        if isinstance(view, ScannerView):
            self._scanner_page.refresh()

        self._stack.setCurrentWidget(self._pages[view.name])
        for name, button in self._nav_buttons.items():
            button.setChecked(name == view.name)

        self._charging_indicator.setVisible(self._session.is_charging)
        self._map_page.refresh()

    def _update_network_status(self) -> None:
        self._map_page.set_tiles_online(tiles_reachable(self._config))

    def closeEvent(self, event) -> None:  # type: ignore[override]
        self._network_timer.stop()
        self._scanner_page.stop()
        event.accept()


def run(config: Optional[AppConfig] = None) -> int:  # pragma: no cover - requires Qt event loop
    app = QApplication.instance() or QApplication([])
    app.setApplicationName("EV Charge Map")
    window = ChargeMapApp(config)
    _logger.debug("Main window created: %s", window.windowTitle())
    return app.exec_()


__all__ = ["run", "ChargeMapApp"]
