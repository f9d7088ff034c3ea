# subburn/models/job.py
import subprocess
import threading
from dataclasses import dataclass, field, replace
from enum import Enum
from pathlib import Path


@dataclass(frozen=True)
class MediaDuration:
    milliseconds: int

    def __post_init__(self):
        if self.milliseconds < 0:
            raise ValueError("duration cannot be negative")

    @property
    def seconds(self) -> int:
        return self.milliseconds // 1000


@dataclass
class PathSelection:
    """The video, subtitle and output paths picked in the UI."""
    video_path: str = ""
    subtitle_path: str = ""
    output_path: str = ""

    def set_video(self, path: str): self.video_path = path
    def set_subtitle(self, path: str): self.subtitle_path = path
    def set_output(self, path: str): self.output_path = path

    def can_render(self) -> bool:
        return bool(self.video_path) and bool(self.subtitle_path)

    def sources_exist(self) -> bool:
        return Path(self.video_path).is_file() and Path(self.subtitle_path).is_file()

    def snapshot(self) -> "PathSelection":
        return replace(self)


class JobState(Enum):
    IDLE = "idle"
    SPAWNING = "spawning"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"


class RenderOutcome(Enum):
    SUCCESS = "success"
    FAILED = "failed"
    CANCELLED = "cancelled"


@dataclass(frozen=True)
class Progress:
    seconds: int


@dataclass(frozen=True)
class Done:
    outcome: RenderOutcome = RenderOutcome.SUCCESS
    return_code: int | None = None

    @property
    def ok(self) -> bool:
        return self.outcome is RenderOutcome.SUCCESS


ProgressEvent = Progress | Done


@dataclass
class RenderJob:
    video_path: str
    subtitle_path: str
    output_path: str
    state: JobState = JobState.IDLE
    process: subprocess.Popen | None = None
    thread: threading.Thread | None = None
    cancel_requested: threading.Event = field(default_factory=threading.Event)
    log_path: Path | None = None
    cmdline: str | None = None
