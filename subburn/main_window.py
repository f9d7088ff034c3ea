# subburn/main_window.py
import logging
from pathlib import Path

from PySide6.QtCore import Qt, QThread, QTimer, Signal
from PySide6.QtGui import QAction
from PySide6.QtWidgets import (
    QMainWindow, QWidget, QGridLayout, QVBoxLayout, QLabel, QPushButton, QProgressBar,
    QFileDialog, QMessageBox, QDialog
)

from .utils.settings import load_settings, save_settings, encode_options_from
from .utils.paths import trim_path, VIDEO_EXT, SUBTITLE_EXT
from .models.job import Done, PathSelection, Progress, RenderOutcome
from .workers.info_probe import DurationProbeWorker
from .workers.renderer import RenderController, RenderHandle, ControllerError, SpawnFailed
from .dialogs.prefs import PrefsDialog

logger = logging.getLogger(__name__)

POLL_INTERVAL_MS = 50

class MainWindow(QMainWindow):
    probe_requested = Signal(str)

    def __init__(self):
        super().__init__()
        self.setWindowTitle("SubBurn")
        self.resize(600, 270)
        self.settings = load_settings()

        self.paths = PathSelection()
        self.duration_ms: int | None = None
        self.handle: RenderHandle | None = None
        self.controller = RenderController()
        self._apply_settings()

        header = QLabel("Burn ASS subtitles into an MP4 video")
        header.setStyleSheet("font-size:16px; font-weight:600; padding:8px;")

        self.btn_video = QPushButton("Open Video"); self.btn_video.clicked.connect(self.open_video)
        self.video_label = QLabel("Not selected")
        self.btn_sub = QPushButton("Open Subtitle"); self.btn_sub.clicked.connect(self.open_subtitle)
        self.sub_label = QLabel("Not selected")
        self.btn_render = QPushButton("Render"); self.btn_render.setEnabled(False); self.btn_render.clicked.connect(self.render)
        self.btn_cancel = QPushButton("Cancel"); self.btn_cancel.setVisible(False); self.btn_cancel.clicked.connect(self.cancel_render)

        self.progress = QProgressBar(); self.progress.setVisible(False)

        grid = QGridLayout()
        grid.setSpacing(4)
        grid.addWidget(self.btn_video, 0, 0); grid.addWidget(self.video_label, 0, 1)
        grid.addWidget(self.btn_sub, 1, 0); grid.addWidget(self.sub_label, 1, 1)
        grid.addWidget(self.btn_render, 2, 0, 1, 2)
        grid.addWidget(self.progress, 3, 0); grid.addWidget(self.btn_cancel, 3, 1, Qt.AlignRight)

        central = QWidget(); v = QVBoxLayout(central)
        v.addWidget(header); v.addLayout(grid); v.addStretch()
        self.setCentralWidget(central)

        m = self.menuBar().addMenu("&Options")
        act_prefs = QAction("Preferences…", self); act_prefs.triggered.connect(self.open_prefs); m.addAction(act_prefs)

        self.probe_worker = DurationProbeWorker()
        self.probe_thread = QThread(self); self.probe_worker.moveToThread(self.probe_thread)
        self.probe_requested.connect(self.probe_worker.probe)
        self.probe_worker.probed.connect(self._on_probed)
        self.probe_thread.start()

        self.poll_timer = QTimer(self)
        self.poll_timer.setInterval(POLL_INTERVAL_MS)
        self.poll_timer.timeout.connect(self._poll_render)

        self.statusBar().showMessage("Ready")

    def _apply_settings(self):
        self.controller.configure(
            ffmpeg_path=self.settings["ffmpeg_path"],
            options=encode_options_from(self.settings),
            write_log=bool(self.settings.get("write_log", True)),
        )

    def closeEvent(self, e):
        self.poll_timer.stop()
        if self.handle is not None:
            self.controller.cancel(self.handle)
            if not self.handle.join(5.0):
                logger.warning("ffmpeg did not stop in time; %s may still be running", self.handle.job.cmdline)
        if self.probe_thread.isRunning(): self.probe_thread.quit(); self.probe_thread.wait(3000)
        super().closeEvent(e)

    def _remember_dir(self, path: str):
        self.settings["last_dir"] = str(Path(path).parent); save_settings(self.settings)

    def open_video(self):
        f, _ = QFileDialog.getOpenFileName(self, "Select a video file", self.settings["last_dir"], f"Video Files (*{VIDEO_EXT})")
        if not f: return
        self.paths.set_video(f); self._remember_dir(f)
        self.video_label.setText(trim_path(f)); self.video_label.setToolTip(f)
        self.duration_ms = None
        self.statusBar().showMessage("Reading video duration…")
        self.probe_requested.emit(f)
        self._refresh_render_button()

    def open_subtitle(self):
        f, _ = QFileDialog.getOpenFileName(self, "Select a subtitle file", self.settings["last_dir"], f"Subtitle ASS Files (*{SUBTITLE_EXT})")
        if not f: return
        self.paths.set_subtitle(f); self._remember_dir(f)
        self.sub_label.setText(trim_path(f)); self.sub_label.setToolTip(f)
        self._refresh_render_button()

    def _on_probed(self, path: str, ms: int, err: str):
        if path != self.paths.video_path: return  # a newer video was picked meanwhile
        if err:
            logger.warning("Could not read duration of %s: %s", path, err)
            self.duration_ms = None
            self.statusBar().showMessage(f"Duration unknown: {err}")
            return
        self.duration_ms = ms
        secs = ms // 1000
        self.statusBar().showMessage(f"Duration {secs // 60}:{secs % 60:02d}")

    def _refresh_render_button(self):
        self.btn_render.setEnabled(self.paths.can_render() and not self.controller.is_running)

    def render(self):
        if self.controller.is_running: return
        if not self.paths.sources_exist():
            QMessageBox.warning(self, "Render", "The selected video or subtitle file no longer exists.")
            return
        f, _ = QFileDialog.getSaveFileName(self, "Save subbed file to", self.settings["last_dir"], f"Video Files (*{VIDEO_EXT})")
        if not f: return
        self.paths.set_output(f)
        sel = self.paths.snapshot()
        try:
            self.handle = self.controller.start(sel.video_path, sel.subtitle_path, sel.output_path)
        except SpawnFailed as e:
            QMessageBox.critical(self, "Render", f"Could not start ffmpeg ({self.controller.ffmpeg_path}).\n\n{e.os_error}\n\nCheck Options → Preferences.")
            return
        except ControllerError as e:
            QMessageBox.warning(self, "Render", str(e))
            return

        self.paths.set_output(self.handle.output_path)
        self.btn_render.setText("Rendering…"); self.btn_render.setEnabled(False)
        self.btn_video.setEnabled(False); self.btn_sub.setEnabled(False)
        self.btn_cancel.setVisible(True); self.btn_cancel.setEnabled(True)
        if self.duration_ms:
            self.progress.setRange(0, max(1, self.duration_ms // 1000))
        else:
            self.progress.setRange(0, 0)  # busy indicator when the duration is unknown
        self.progress.setValue(0); self.progress.setVisible(True)
        self.statusBar().showMessage(f"Rendering to {self.handle.output_path}")
        self.poll_timer.start()

    def cancel_render(self):
        if self.handle is not None:
            self.controller.cancel(self.handle)
            self.btn_cancel.setEnabled(False)
            self.statusBar().showMessage("Cancelling…")

    def _poll_render(self):
        if self.handle is None:
            self.poll_timer.stop(); return
        for event in self.controller.drain(self.handle):
            if isinstance(event, Progress):
                if self.progress.maximum() > 0:
                    self.progress.setValue(min(event.seconds, self.progress.maximum()))
            elif isinstance(event, Done):
                self._on_done(event)

    def _on_done(self, done: Done):
        self.poll_timer.stop()
        handle, self.handle = self.handle, None
        self.btn_render.setText("Render")
        self.btn_video.setEnabled(True); self.btn_sub.setEnabled(True)
        self.btn_cancel.setVisible(False)
        self.progress.setRange(0, 100); self.progress.setValue(0); self.progress.setVisible(False)
        self._refresh_render_button()

        if done.ok:
            self.statusBar().showMessage(f"Done: {handle.output_path}")
        elif done.outcome is RenderOutcome.CANCELLED:
            self.statusBar().showMessage("Render cancelled")
        else:
            self.statusBar().showMessage(f"Render failed (exit code {done.return_code})")
            log_hint = f"\n\nSee the ffmpeg log: {handle.job.log_path}" if handle.job.log_path else ""
            QMessageBox.warning(self, "Render", f"ffmpeg exited with code {done.return_code}.{log_hint}")

    def open_prefs(self):
        dlg = PrefsDialog(self.settings, self)
        if dlg.exec() == QDialog.Accepted:
            self.settings.update(dlg.get_values())
            save_settings(self.settings)
            self._apply_settings()  # used from the next render on
            self.statusBar().showMessage("Saved preferences.")
