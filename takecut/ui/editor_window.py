"""
Editor window.

Layout:
- Center: Preview player + timeline
- Right: Cut list, manual cut entry, export options
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

from PySide6.QtCore import Qt, QTimer, QThreadPool, Slot
from PySide6.QtWidgets import (
    QMainWindow,
    QWidget,
    QVBoxLayout,
    QHBoxLayout,
    QSplitter,
    QFileDialog,
    QMessageBox,
    QStatusBar,
    QLabel,
    QPushButton,
    QDoubleSpinBox,
    QComboBox,
    QGroupBox,
    QFormLayout,
    QListWidget,
    QListWidgetItem,
    QProgressBar,
    QFrame,
)
from PySide6.QtGui import QAction, QKeySequence

from takecut import __app_name__
from takecut.analysis import JsonFileAnalyzer, seed_ai_cuts
from takecut.core.cutlist import CutListModel, CutNotRemovableError, InvalidRange
from takecut.core.models import (
    ExportFormat,
    ExportSettings,
    FrameRate,
    MediaInfo,
    Resolution,
    format_time,
    snap_to_duration,
)
from takecut.core.project import Project
from takecut.core.settings import Settings
from takecut.core.timeline import TimelineController
from takecut.export import EncoderOptions, ExportInProgressError, Exporter
from takecut.media.ffmpeg import (
    FFmpegEngine,
    FFmpegError,
    FFmpegNotFoundError,
    get_engine,
    probe_media,
)
from takecut.media.waveform import WaveformData, WaveformGenerator

from .timeline_widget import TimelineWidget
from .video_player import VideoPlayer
from .worker import Worker

logger = logging.getLogger(__name__)

PROJECT_FILTER = "TakeCut Project (*.takecut);;All Files (*)"
MEDIA_FILTER = "Video Files (*.mp4 *.mov *.mkv *.webm *.avi);;All Files (*)"

CUT_ICONS = {
    "filler": "💬",
    "silence": "🔇",
    "manual": "✂",
}


class EditorWindow(QMainWindow):
    """Ana editör penceresi."""

    def __init__(self, settings: Optional[Settings] = None):
        super().__init__()

        self.settings = settings or Settings.load()
        self.project: Optional[Project] = None
        self.media_info: Optional[MediaInfo] = None
        self.controller: Optional[TimelineController] = None
        self.waveform_data: Optional[WaveformData] = None
        self.thread_pool = QThreadPool()
        self.exporter = Exporter(
            engine_factory=lambda: FFmpegEngine(timeout=self.settings.engine_timeout_sec),
            options=EncoderOptions(
                crf=self.settings.mp4_crf,
                preset=self.settings.mp4_preset,
                audio_bitrate=self.settings.mp4_audio_bitrate,
                gif_dither=self.settings.gif_dither,
            ),
        )
        self._project_path: Optional[Path] = None
        self._active_workers: list = []   # callback'ler bitene kadar referans tut
        self._refreshing_cuts = False

        self._setup_ui()
        self._setup_menu()
        self._setup_statusbar()
        self._apply_theme()
        self._apply_export_settings(self.settings.default_export_settings())
        self._set_editing_enabled(False)

    def _start_worker(self, worker: Worker):
        """Worker'ı başlat ve sinyaller işlenene kadar canlı tut."""
        self._active_workers.append(worker)

        def cleanup():
            if worker in self._active_workers:
                self._active_workers.remove(worker)
                logger.debug(f"Worker removed, {len(self._active_workers)} remaining")

        worker.signals.finished.connect(lambda: QTimer.singleShot(100, cleanup))
        self.thread_pool.start(worker)

    def check_ffmpeg(self) -> bool:
        """FFmpeg kurulumunu kontrol et."""
        try:
            get_engine()
            return True
        except FFmpegNotFoundError as e:
            QMessageBox.critical(
                self,
                "FFmpeg not found",
                f"{e}\n\nInstall FFmpeg or run: pip install static-ffmpeg",
            )
            return False

    # ========================================================================
    # UI Setup
    # ========================================================================

    def _setup_ui(self):
        self.setWindowTitle(__app_name__)
        self.setMinimumSize(1100, 700)
        self.resize(1400, 860)

        central = QWidget()
        self.setCentralWidget(central)
        main_layout = QHBoxLayout(central)
        main_layout.setContentsMargins(0, 0, 0, 0)

        splitter = QSplitter(Qt.Horizontal)
        main_layout.addWidget(splitter)
        splitter.addWidget(self._create_center_panel())
        splitter.addWidget(self._create_right_panel())
        splitter.setSizes([1050, 350])
        splitter.setStretchFactor(0, 1)
        splitter.setStretchFactor(1, 0)

    def _create_center_panel(self) -> QWidget:
        panel = QWidget()
        layout = QVBoxLayout(panel)
        layout.setContentsMargins(8, 8, 8, 8)
        layout.setSpacing(6)

        self.video_player = VideoPlayer()
        self.video_player.position_changed.connect(self._on_video_position_changed)
        layout.addWidget(self.video_player, 1)

        self.timeline = TimelineWidget()
        self.timeline.drag_finished.connect(self._update_stats)
        layout.addWidget(self.timeline)

        stats = QFrame()
        stats_layout = QHBoxLayout(stats)
        stats_layout.setContentsMargins(4, 0, 4, 0)
        self.trim_label = QLabel("Trim: --")
        self.kept_label = QLabel("Kept: --")
        self.removed_label = QLabel("Removed: --")
        for label in (self.trim_label, self.kept_label, self.removed_label):
            label.setObjectName("statLabel")
            stats_layout.addWidget(label)
        stats_layout.addStretch()
        layout.addWidget(stats)

        return panel

    def _create_right_panel(self) -> QWidget:
        panel = QFrame()
        panel.setObjectName("rightPanel")
        panel.setMinimumWidth(300)
        panel.setMaximumWidth(420)
        layout = QVBoxLayout(panel)
        layout.setContentsMargins(8, 8, 8, 8)

        # Cuts
        cuts_group = QGroupBox("Cuts")
        cuts_layout = QVBoxLayout(cuts_group)
        self.cuts_list = QListWidget()
        self.cuts_list.itemChanged.connect(self._on_cut_item_changed)
        self.cuts_list.itemDoubleClicked.connect(self._on_cut_double_clicked)
        cuts_layout.addWidget(self.cuts_list)

        self.remove_cut_btn = QPushButton("Remove Manual Cut")
        self.remove_cut_btn.clicked.connect(self._remove_selected_cut)
        cuts_layout.addWidget(self.remove_cut_btn)
        layout.addWidget(cuts_group, 1)

        # Manual cut
        manual_group = QGroupBox("Manual Cut")
        manual_layout = QFormLayout(manual_group)

        self.cut_start_spin = QDoubleSpinBox()
        self.cut_start_spin.setDecimals(2)
        self.cut_start_spin.setSingleStep(0.1)
        self.cut_start_spin.setSuffix(" s")
        self.cut_end_spin = QDoubleSpinBox()
        self.cut_end_spin.setDecimals(2)
        self.cut_end_spin.setSingleStep(0.1)
        self.cut_end_spin.setSuffix(" s")

        start_row = QHBoxLayout()
        start_row.addWidget(self.cut_start_spin, 1)
        mark_in_btn = QPushButton("Mark In")
        mark_in_btn.clicked.connect(lambda: self._mark_from_playhead(self.cut_start_spin))
        start_row.addWidget(mark_in_btn)
        manual_layout.addRow("Start:", start_row)

        end_row = QHBoxLayout()
        end_row.addWidget(self.cut_end_spin, 1)
        mark_out_btn = QPushButton("Mark Out")
        mark_out_btn.clicked.connect(lambda: self._mark_from_playhead(self.cut_end_spin))
        end_row.addWidget(mark_out_btn)
        manual_layout.addRow("End:", end_row)

        self.add_cut_btn = QPushButton("Add Cut")
        self.add_cut_btn.clicked.connect(self._add_manual_cut)
        manual_layout.addRow(self.add_cut_btn)
        layout.addWidget(manual_group)

        # Export
        export_group = QGroupBox("Export")
        export_layout = QFormLayout(export_group)

        self.format_combo = QComboBox()
        for fmt in ExportFormat:
            self.format_combo.addItem(fmt.value.upper(), fmt)
        export_layout.addRow("Format:", self.format_combo)

        self.resolution_combo = QComboBox()
        for resolution in Resolution:
            self.resolution_combo.addItem(resolution.value, resolution)
        export_layout.addRow("Resolution:", self.resolution_combo)

        self.fps_combo = QComboBox()
        for rate in FrameRate:
            self.fps_combo.addItem(f"{rate.fps} fps", rate)
        export_layout.addRow("Frame rate:", self.fps_combo)

        self.export_btn = QPushButton("Export")
        self.export_btn.setObjectName("primaryButton")
        self.export_btn.clicked.connect(self.export_video)
        export_layout.addRow(self.export_btn)

        self.progress_bar = QProgressBar()
        self.progress_bar.setRange(0, 100)
        self.progress_bar.setValue(0)
        export_layout.addRow(self.progress_bar)
        layout.addWidget(export_group)

        return panel

    def _setup_menu(self):
        menubar = self.menuBar()
        file_menu = menubar.addMenu("File")

        open_action = QAction("Open Media...", self)
        open_action.setShortcut(QKeySequence.Open)
        open_action.triggered.connect(self.import_media)
        file_menu.addAction(open_action)

        open_project_action = QAction("Open Project...", self)
        open_project_action.setShortcut("Ctrl+Shift+O")
        open_project_action.triggered.connect(self.open_project)
        file_menu.addAction(open_project_action)

        file_menu.addSeparator()

        save_action = QAction("Save Project", self)
        save_action.setShortcut(QKeySequence.Save)
        save_action.triggered.connect(self.save_project)
        file_menu.addAction(save_action)

        save_as_action = QAction("Save Project As...", self)
        save_as_action.setShortcut(QKeySequence.SaveAs)
        save_as_action.triggered.connect(self.save_project_as)
        file_menu.addAction(save_as_action)

        file_menu.addSeparator()

        export_action = QAction("Export...", self)
        export_action.setShortcut("Ctrl+E")
        export_action.triggered.connect(self.export_video)
        file_menu.addAction(export_action)

        file_menu.addSeparator()

        quit_action = QAction("Quit", self)
        quit_action.setShortcut(QKeySequence.Quit)
        quit_action.triggered.connect(self.close)
        file_menu.addAction(quit_action)

        playback_menu = menubar.addMenu("Playback")
        play_action = QAction("Play / Pause", self)
        play_action.setShortcut(Qt.Key_Space)
        play_action.triggered.connect(self.video_player.toggle_playback)
        playback_menu.addAction(play_action)

        trim_start_action = QAction("Go to Trim Start", self)
        trim_start_action.setShortcut(Qt.Key_Home)
        trim_start_action.triggered.connect(
            lambda: self.controller and self.controller.seek(self.controller.model.trim.start)
        )
        playback_menu.addAction(trim_start_action)

    def _setup_statusbar(self):
        self.statusbar = QStatusBar()
        self.setStatusBar(self.statusbar)
        self.statusbar.showMessage("Ready")

    def _apply_theme(self):
        self.setStyleSheet("""
            QMainWindow, QWidget { background-color: #161616; color: #e0e0e0; }
            QFrame#rightPanel { background-color: #1e1e1e; border-left: 1px solid #333333; }
            QGroupBox { border: 1px solid #333333; border-radius: 4px; margin-top: 14px; padding: 6px; }
            QGroupBox::title { subcontrol-origin: margin; left: 8px; color: #aaaaaa; }
            QPushButton { background-color: #2a2a2a; border: 1px solid #444444; border-radius: 4px; padding: 5px 10px; }
            QPushButton:hover { background-color: #333333; }
            QPushButton:disabled { color: #666666; }
            QPushButton#primaryButton { background-color: #facc15; color: #111111; font-weight: bold; }
            QListWidget, QDoubleSpinBox, QComboBox { background-color: #222222; border: 1px solid #3a3a3a; }
            QProgressBar { border: 1px solid #3a3a3a; border-radius: 3px; text-align: center; }
            QProgressBar::chunk { background-color: #facc15; }
            QLabel#statLabel { color: #aaaaaa; font-family: monospace; padding-right: 16px; }
        """)

    def _set_editing_enabled(self, enabled: bool):
        for widget in (
            self.cuts_list,
            self.remove_cut_btn,
            self.cut_start_spin,
            self.cut_end_spin,
            self.add_cut_btn,
            self.export_btn,
        ):
            widget.setEnabled(enabled)

    # ========================================================================
    # Media / Project
    # ========================================================================

    def import_media(self):
        file_path, _ = QFileDialog.getOpenFileName(self, "Open Media", "", MEDIA_FILTER)
        if file_path:
            self.load_media(Path(file_path))

    def load_media(self, file_path: Path, model: Optional[CutListModel] = None) -> bool:
        """
        Medyayı yükle ve editörü hazırla.

        model verilmezse yeni model oluşturulur ve AI cut'ları yanındaki
        transcript dosyasından eklenir.
        """
        self.statusbar.showMessage(f"Loading {file_path.name}...")

        try:
            media_info = probe_media(file_path)
        except FFmpegError as e:
            QMessageBox.critical(self, "Error", f"Could not read media:\n{e}")
            self.statusbar.showMessage("Ready")
            return False

        if media_info.duration <= 0:
            QMessageBox.critical(self, "Error", f"{file_path.name} has no duration")
            return False

        if model is None:
            model = CutListModel.create(
                media_info.duration, min_trim_gap=self.settings.min_trim_gap_sec
            )
            model = seed_ai_cuts(model, JsonFileAnalyzer(), file_path)

        self.media_info = media_info
        self.waveform_data = None
        if self.project is None or self.project.media_path != file_path:
            self.project = Project(name=file_path.stem, media_path=file_path)
        self.project.model = model

        self.controller = TimelineController(
            model,
            player=self.video_player,
            width=max(1, self.timeline.width()),
            handle_tolerance_px=self.settings.handle_tolerance_px,
        )
        self.controller.add_model_listener(self._on_model_changed)
        self.timeline.set_controller(self.controller)
        self.timeline.set_waveform(None)

        if not self.video_player.load_video(file_path):
            logger.warning(f"Preview unavailable for {file_path}")

        for spin in (self.cut_start_spin, self.cut_end_spin):
            spin.setRange(0.0, media_info.duration)
        self.cut_start_spin.setValue(0.0)
        self.cut_end_spin.setValue(min(1.0, media_info.duration))

        self._set_editing_enabled(True)
        self._refresh_cuts_list()
        self._update_stats()
        self.setWindowTitle(f"{__app_name__} - {file_path.name}")
        self.statusbar.showMessage(
            f"Loaded {file_path.name}: {format_time(media_info.duration)}, "
            f"{len(model.ai_cuts)} suggested cuts"
        )

        if media_info.has_audio:
            self._extract_waveform(file_path)
        return True

    def _extract_waveform(self, media_path: Path):
        """Audio çıkar ve waveform üret (arka planda)."""
        samples_per_bucket = self.settings.waveform_samples_per_bucket

        def do_work(progress_callback):
            cache_dir = Settings.get_cache_dir()
            audio_path = cache_dir / f"{media_path.stem}_audio.wav"

            progress_callback(10, "Extracting audio...")
            get_engine().extract_audio(media_path, audio_path)

            progress_callback(60, "Generating waveform...")
            generator = WaveformGenerator(samples_per_bucket=samples_per_bucket, cache_dir=cache_dir)
            return generator.generate(audio_path)

        def on_complete(waveform):
            if self.project is None or self.project.media_path != media_path:
                return  # başka medya yüklendi
            self.waveform_data = waveform
            self.timeline.set_waveform(waveform)
            self.statusbar.showMessage("Waveform ready", 3000)

        def on_error(error):
            logger.warning(f"Waveform unavailable: {error}")
            self.statusbar.showMessage("Waveform unavailable", 5000)

        worker = Worker(do_work)
        worker.signals.progress.connect(
            lambda value, message: message and self.statusbar.showMessage(message),
            Qt.QueuedConnection,
        )
        worker.signals.result.connect(on_complete, Qt.QueuedConnection)
        worker.signals.error.connect(on_error, Qt.QueuedConnection)
        self._start_worker(worker)

    def open_project(self):
        file_path, _ = QFileDialog.getOpenFileName(self, "Open Project", "", PROJECT_FILTER)
        if file_path:
            self.load_project(Path(file_path))

    def load_project(self, path: Path) -> bool:
        try:
            project = Project.load(path, min_trim_gap=self.settings.min_trim_gap_sec)
        except (OSError, ValueError, KeyError, TypeError) as e:
            QMessageBox.critical(self, "Error", f"Could not open project:\n{e}")
            return False

        if project.media_path is None or not project.media_path.exists():
            QMessageBox.warning(
                self, "Missing media", f"Media file not found:\n{project.media_path}"
            )
            return False

        self.project = project
        if not self.load_media(project.media_path, model=project.model):
            return False

        self._project_path = path
        self._apply_export_settings(project.export_settings)
        self.settings.add_recent_project(str(path))
        logger.info(f"Project opened: {path}")
        return True

    def save_project(self):
        if not self.project or not self.controller:
            return
        if not self._project_path:
            self.save_project_as()
            return

        self.project.model = self.controller.model
        self.project.export_settings = self.current_export_settings()
        try:
            self.project.save(self._project_path)
        except OSError as e:
            QMessageBox.critical(self, "Error", f"Could not save project:\n{e}")
            return
        self.settings.add_recent_project(str(self._project_path))
        self.statusbar.showMessage(f"Saved {self._project_path.name}", 3000)

    def save_project_as(self):
        if not self.project:
            return
        file_path, _ = QFileDialog.getSaveFileName(
            self, "Save Project", f"{self.project.name}.takecut", PROJECT_FILTER
        )
        if file_path:
            self._project_path = Path(file_path)
            self.save_project()

    # ========================================================================
    # Cuts
    # ========================================================================

    def _on_model_changed(self, model: CutListModel):
        if self.project is not None:
            self.project.model = model
        self._refresh_cuts_list()
        self._update_stats()

    def _refresh_cuts_list(self):
        """Cut listesini modelden yeniden kur (checkbox durumu modelden okunur)."""
        self._refreshing_cuts = True
        try:
            selected = self.cuts_list.currentItem()
            selected_id = selected.data(Qt.UserRole) if selected else None
            self.cuts_list.clear()

            if self.controller is None:
                return

            for cut in sorted(self.controller.model.cuts, key=lambda c: (c.start, c.id)):
                icon = CUT_ICONS.get(cut.kind.value, "")
                label = f" {cut.label}" if cut.label else ""
                item = QListWidgetItem(
                    f"{icon} {format_time(cut.start)} → {format_time(cut.end)}{label}"
                )
                item.setData(Qt.UserRole, cut.id)
                item.setFlags(item.flags() | Qt.ItemIsUserCheckable)
                item.setCheckState(Qt.Checked if cut.enabled else Qt.Unchecked)
                self.cuts_list.addItem(item)
                if cut.id == selected_id:
                    self.cuts_list.setCurrentItem(item)
        finally:
            self._refreshing_cuts = False

    def _update_stats(self):
        if self.controller is None:
            return
        model = self.controller.model
        self.trim_label.setText(
            f"Trim: {format_time(model.trim.start)} - {format_time(model.trim.end)}"
        )
        self.kept_label.setText(f"Kept: {format_time(model.kept_duration())}")
        self.removed_label.setText(
            f"Removed: {format_time(model.removed_duration())} ({len(model.enabled_cuts)} cuts)"
        )

    @Slot(QListWidgetItem)
    def _on_cut_item_changed(self, item: QListWidgetItem):
        if self._refreshing_cuts or self.controller is None:
            return
        cut_id = item.data(Qt.UserRole)
        enabled = item.checkState() == Qt.Checked
        self.controller.set_cut_enabled(cut_id, enabled)

    @Slot(QListWidgetItem)
    def _on_cut_double_clicked(self, item: QListWidgetItem):
        if self.controller is None:
            return
        cut = self.controller.model.get_cut(item.data(Qt.UserRole))
        self.controller.seek(cut.start)

    def _remove_selected_cut(self):
        item = self.cuts_list.currentItem()
        if item is None or self.controller is None:
            return
        try:
            self.controller.remove_cut(item.data(Qt.UserRole))
        except CutNotRemovableError:
            QMessageBox.information(
                self, "Cut", "Suggested cuts can only be disabled, not removed."
            )

    def _mark_from_playhead(self, spin: QDoubleSpinBox):
        if self.controller is not None:
            spin.setValue(self.controller.playhead)

    def _add_manual_cut(self):
        if self.controller is None:
            return
        duration = self.controller.model.duration
        decimals = self.cut_end_spin.decimals()
        start = snap_to_duration(self.cut_start_spin.value(), duration, decimals)
        end = snap_to_duration(self.cut_end_spin.value(), duration, decimals)
        try:
            self.controller.add_manual_cut(start, end)
        except InvalidRange as e:
            QMessageBox.warning(self, "Invalid cut", str(e))
            return
        self.statusbar.showMessage(f"Cut added: {format_time(start)} - {format_time(end)}", 3000)

    # ========================================================================
    # Playback
    # ========================================================================

    @Slot(float)
    def _on_video_position_changed(self, time_sec: float):
        """Oynatma sırasında trim ve aktif cut'lar kontrolcü tarafından uygulanır."""
        if self.controller is None or not self.video_player.is_playing:
            return
        self.controller.on_time_advanced(time_sec)

    # ========================================================================
    # Export
    # ========================================================================

    def current_export_settings(self) -> ExportSettings:
        return ExportSettings(
            format=self.format_combo.currentData(),
            resolution=self.resolution_combo.currentData(),
            frame_rate=self.fps_combo.currentData(),
        )

    def _apply_export_settings(self, settings: ExportSettings):
        for combo, value in (
            (self.format_combo, settings.format),
            (self.resolution_combo, settings.resolution),
            (self.fps_combo, settings.frame_rate),
        ):
            index = combo.findData(value)
            if index >= 0:
                combo.setCurrentIndex(index)

    def export_video(self):
        if self.controller is None or self.project is None or self.media_info is None:
            return
        if self.exporter.busy:
            QMessageBox.warning(self, "Export", "An export is already in progress.")
            return

        settings = self.current_export_settings()
        start_dir = self.settings.last_export_dir or str(self.project.media_path.parent)
        default_path = Path(start_dir) / f"{self.project.name}_edited{settings.format.extension}"
        file_path, _ = QFileDialog.getSaveFileName(
            self,
            "Export",
            str(default_path),
            f"{settings.format.value.upper()} (*{settings.format.extension})",
        )
        if not file_path:
            return

        output_path = Path(file_path)
        if output_path.resolve() == self.project.media_path.resolve():
            QMessageBox.warning(self, "Export", "Choose a different file than the source.")
            return

        self.settings.last_export_dir = str(output_path.parent)
        self.settings.remember_export_settings(settings)

        source_path = self.project.media_path
        segments = self.controller.keep_segments()
        has_audio = self.media_info.has_audio
        exporter = self.exporter

        def do_work(progress_callback):
            result = exporter.export_file(
                source_path,
                segments,
                settings,
                progress_callback=lambda value: progress_callback(value, ""),
                has_audio=has_audio,
            )
            result.save(output_path)
            return result

        def on_complete(result):
            self.progress_bar.setValue(100)
            message = (
                f"Exported {format_time(result.duration)} to {output_path.name} "
                f"({result.size / 1024 / 1024:.2f} MB)"
            )
            if result.is_empty:
                message = f"Everything was cut, wrote an empty {settings.format.value.upper()}"
            self.statusbar.showMessage(message)
            QMessageBox.information(self, "Export complete", message)

        def on_error(error):
            if isinstance(error, ExportInProgressError):
                QMessageBox.warning(self, "Export", str(error))
                return
            self.progress_bar.setValue(0)
            self.statusbar.showMessage("Export failed")
            QMessageBox.critical(self, "Export failed", str(error))

        self.progress_bar.setValue(0)
        self.statusbar.showMessage(f"Exporting {len(segments)} segment(s)...")

        worker = Worker(do_work)
        worker.signals.progress.connect(
            lambda value, message: self.progress_bar.setValue(value), Qt.QueuedConnection
        )
        worker.signals.result.connect(on_complete, Qt.QueuedConnection)
        worker.signals.error.connect(on_error, Qt.QueuedConnection)
        self._start_worker(worker)

    def closeEvent(self, event):
        self.video_player.pause()
        self.video_player.close()
        try:
            self.settings.save()
        except OSError as e:
            logger.warning(f"Settings not saved: {e}")
        super().closeEvent(event)
