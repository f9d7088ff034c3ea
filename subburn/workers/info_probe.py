from PySide6.QtCore import QObject, Signal
from ..parsers.mp4_header import probe_duration, ProbeError

class DurationProbeWorker(QObject):
    probed = Signal(str, int, str)  # path, milliseconds (-1 if unknown), err
    def probe(self, path: str):
        err = ""; ms = -1
        try:
            ms = probe_duration(path).milliseconds
        except ProbeError as e:
            err = str(e)
        self.probed.emit(path, ms, err)
