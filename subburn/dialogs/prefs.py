# subburn/dialogs/prefs.py
from PySide6.QtWidgets import (
    QDialog, QDialogButtonBox, QFormLayout, QHBoxLayout, QLabel, QVBoxLayout,
    QLineEdit, QPushButton, QSpinBox, QComboBox, QCheckBox, QFileDialog
)

from ..utils.settings import PRESETS

class PrefsDialog(QDialog):
    def __init__(self, settings: dict, parent=None):
        super().__init__(parent)
        self.setWindowTitle("Preferences")
        self.settings = settings
        self.setMinimumWidth(520)

        self.ff_edit = QLineEdit(self.settings["ffmpeg_path"])
        btn_browse_ff = QPushButton("Browse…"); btn_browse_ff.clicked.connect(self._browse_ffmpeg)

        self.crf_spin = QSpinBox(); self.crf_spin.setRange(0, 51)
        self.crf_spin.setValue(int(self.settings["crf"])); self.crf_spin.setSuffix("  (lower = better quality)")

        self.preset = QComboBox(); self.preset.addItems(PRESETS)
        self.preset.setCurrentText(self.settings.get("preset", "slow"))

        self.codec_edit = QLineEdit(self.settings.get("video_codec", "libx264"))
        codec_hint = QLabel("(Audio is always copied; output container is MP4)")

        self.chk_log = QCheckBox("Write ffmpeg log next to the rendered file")
        self.chk_log.setChecked(self.settings.get("write_log", True))

        form = QFormLayout()
        row_ff = QHBoxLayout(); row_ff.addWidget(self.ff_edit); row_ff.addWidget(btn_browse_ff)
        form.addRow("ffmpeg path:", row_ff)
        form.addRow("Quality (CRF):", self.crf_spin)
        form.addRow("Preset:", self.preset)
        form.addRow("Video codec:", self.codec_edit); form.addRow("", codec_hint)
        form.addRow("", self.chk_log)

        buttons = QDialogButtonBox(QDialogButtonBox.Ok | QDialogButtonBox.Cancel)
        buttons.accepted.connect(self.accept); buttons.rejected.connect(self.reject)

        layout = QVBoxLayout(self); layout.addLayout(form); layout.addWidget(buttons)

    def _browse_ffmpeg(self):
        f, _ = QFileDialog.getOpenFileName(self, "Locate ffmpeg", self.ff_edit.text() or "/usr/bin", "All (*)")
        if f: self.ff_edit.setText(f)

    def get_values(self) -> dict:
        return {
            "ffmpeg_path": self.ff_edit.text().strip() or "ffmpeg",
            "crf": int(self.crf_spin.value()),
            "preset": self.preset.currentText(),
            "video_codec": self.codec_edit.text().strip() or "libx264",
            "write_log": self.chk_log.isChecked(),
        }
