# subburn/workers/renderer.py
import logging
import queue
import shlex
import shutil
import subprocess
import sys
import threading
from dataclasses import dataclass
from pathlib import Path

from ..models.job import Done, JobState, Progress, ProgressEvent, RenderJob, RenderOutcome
from ..parsers.ffmpeg_progress import is_progress_field, microseconds_to_seconds, parse_progress_line
from ..utils.paths import VIDEO_EXT, default_log_path, ensure_extension, subtitle_filter
from .channel import ProgressChannel

logger = logging.getLogger(__name__)

CANCEL_CHECK_INTERVAL = 0.1  # seconds

_EOF = object()


class ControllerError(Exception):
    pass


class AlreadyRunning(ControllerError):
    def __init__(self):
        super().__init__("a render is already running")


class InvalidInputs(ControllerError):
    pass


class SpawnFailed(ControllerError):
    def __init__(self, os_error: OSError):
        super().__init__(f"could not launch ffmpeg: {os_error}")
        self.os_error = os_error


@dataclass
class EncodeOptions:
    crf: int = 18
    preset: str = "slow"
    video_codec: str = "libx264"
    audio_codec: str = "copy"
    container_ext: str = VIDEO_EXT
    faststart: bool = True


def build_command(ffmpeg: str, video: str, subtitle: str, output: str,
                  options: EncodeOptions | None = None) -> list[str]:
    o = options or EncodeOptions()
    cmd = [
        ffmpeg,
        "-y",
        "-progress", "pipe:2",
        "-i", video,
        "-vf", subtitle_filter(subtitle),
        "-crf", str(o.crf),
        "-preset", o.preset,
    ]
    if o.faststart:
        cmd.extend(["-movflags", "+faststart"])
    cmd.extend(["-c:v", o.video_codec, "-c:a", o.audio_codec, output])
    return cmd


def _hidden_window_kwargs() -> dict:
    # No console window for the child on Windows
    if sys.platform != "win32":
        return {}
    si = subprocess.STARTUPINFO()
    si.dwFlags |= subprocess.STARTF_USESHOWWINDOW
    si.wShowWindow = subprocess.SW_HIDE
    return {"startupinfo": si, "creationflags": getattr(subprocess, "CREATE_NO_WINDOW", 0x08000000)}


def _pump_lines(stream, lines: queue.SimpleQueue):
    try:
        for line in stream:
            lines.put(line)
    except Exception as e:
        lines.put(e)
    finally:
        lines.put(_EOF)


class RenderHandle:
    def __init__(self, job: RenderJob, channel: ProgressChannel):
        self.job = job
        self.channel = channel

    @property
    def output_path(self) -> str:
        return self.job.output_path

    def join(self, timeout: float | None = None) -> bool:
        """Wait for the monitor thread; True once it has finished."""
        if self.job.thread is None:
            return True
        self.job.thread.join(timeout)
        return not self.job.thread.is_alive()


class RenderController:
    """Runs one ffmpeg subtitle burn at a time and reports its progress."""

    def __init__(self, ffmpeg_path: str = "ffmpeg", options: EncodeOptions | None = None,
                 popen=subprocess.Popen, write_log: bool = True, log_dir: Path | None = None):
        self.ffmpeg_path = ffmpeg_path
        self.options = options or EncodeOptions()
        self.write_log = write_log
        self.log_dir = log_dir
        self._popen = popen
        self._active: RenderHandle | None = None
        self._lock = threading.Lock()

    @property
    def is_running(self) -> bool:
        return self._active is not None

    def configure(self, ffmpeg_path: str | None = None, options: EncodeOptions | None = None,
                  write_log: bool | None = None) -> None:
        """Change settings for later jobs; a running job keeps its command line."""
        with self._lock:
            if ffmpeg_path is not None:
                self.ffmpeg_path = ffmpeg_path
            if options is not None:
                self.options = options
            if write_log is not None:
                self.write_log = write_log

    def start(self, video_path: str, subtitle_path: str, output_path: str) -> RenderHandle:
        with self._lock:
            if self._active is not None:
                raise AlreadyRunning()
            missing = [name for name, p in (("video", video_path), ("subtitle", subtitle_path),
                                            ("output", output_path)) if not (p and p.strip())]
            if missing:
                raise InvalidInputs(f"missing {', '.join(missing)} path")

            job = RenderJob(
                video_path=str(video_path),
                subtitle_path=str(subtitle_path),
                output_path=ensure_extension(str(output_path), self.options.container_ext),
            )
            if self.write_log:
                job.log_path = default_log_path(job.output_path, self.log_dir)

            ffmpeg = shutil.which(self.ffmpeg_path) or self.ffmpeg_path
            cmd = build_command(ffmpeg, job.video_path, job.subtitle_path, job.output_path, self.options)
            job.cmdline = " ".join(shlex.quote(c) for c in cmd)
            logger.info("Starting render: $ %s", job.cmdline)

            job.state = JobState.SPAWNING
            try:
                job.process = self._popen(
                    cmd,
                    stdin=subprocess.DEVNULL,
                    stdout=subprocess.PIPE,
                    stderr=subprocess.STDOUT,
                    text=True,
                    encoding="utf-8",
                    errors="replace",
                    bufsize=1,
                    **_hidden_window_kwargs(),
                )
            except OSError as e:
                job.state = JobState.FAILED
                logger.error("Could not launch %s: %s", ffmpeg, e)
                raise SpawnFailed(e) from e

            job.state = JobState.RUNNING
            channel = ProgressChannel()
            handle = RenderHandle(job, channel)
            job.thread = threading.Thread(
                target=self._monitor, args=(job, channel), name="subburn-render", daemon=True
            )
            try:
                job.thread.start()
            except RuntimeError:
                logger.error("Could not start the render monitor, stopping ffmpeg")
                job.state = JobState.FAILED
                job.process.kill()
                job.process.wait()
                raise
            self._active = handle
            return handle

    def poll(self, handle: RenderHandle) -> ProgressEvent | None:
        event = handle.channel.poll()
        if isinstance(event, Done):
            self._release(handle)
        return event

    def drain(self, handle: RenderHandle) -> list[ProgressEvent]:
        events = handle.channel.drain()
        if events and isinstance(events[-1], Done):
            self._release(handle)
        return events

    def cancel(self, handle: RenderHandle) -> None:
        if handle.job.state is JobState.RUNNING and not handle.job.cancel_requested.is_set():
            logger.info("Cancel requested for %s", handle.job.output_path)
            handle.job.cancel_requested.set()

    def _release(self, handle: RenderHandle):
        with self._lock:
            if self._active is handle:
                self._active = None

    def _open_log(self, job: RenderJob):
        if job.log_path is None:
            return None
        try:
            lf = open(job.log_path, "a", encoding="utf-8")
        except OSError as e:
            logger.warning("Cannot write ffmpeg log %s: %s", job.log_path, e)
            job.log_path = None
            return None
        return self._write_log(job, lf, f"$ {job.cmdline}\n")

    def _write_log(self, job: RenderJob, lf, text: str):
        """Append to the job log; on failure stop logging and return None."""
        try:
            lf.write(text)
            return lf
        except OSError as e:
            logger.warning("Stopped writing ffmpeg log %s: %s", job.log_path, e)
            self._close_log(job, lf)
            return None

    def _close_log(self, job: RenderJob, lf):
        if lf is None:
            return
        try:
            lf.close()
        except OSError as e:
            logger.warning("Could not close ffmpeg log %s: %s", job.log_path, e)

    def _monitor(self, job: RenderJob, channel: ProgressChannel):
        proc = job.process
        return_code = None
        crashed = False
        lf = self._open_log(job)
        try:
            with proc.stdout as stream:
                # Lines are pumped on a helper thread so a silent ffmpeg still sees cancel
                lines: queue.SimpleQueue = queue.SimpleQueue()
                reader = threading.Thread(target=_pump_lines, args=(stream, lines),
                                          name="subburn-render-reader", daemon=True)
                reader.start()
                while not job.cancel_requested.is_set():
                    try:
                        line = lines.get(timeout=CANCEL_CHECK_INTERVAL)
                    except queue.Empty:
                        continue
                    if line is _EOF or job.cancel_requested.is_set():
                        break
                    if isinstance(line, Exception):
                        raise line
                    if (us := parse_progress_line(line)) is not None:
                        channel.put(Progress(microseconds_to_seconds(us)))
                    elif lf and line.strip() and not is_progress_field(line):
                        lf = self._write_log(job, lf, line if line.endswith("\n") else line + "\n")
                if job.cancel_requested.is_set() and proc.poll() is None:
                    proc.terminate()
                return_code = proc.wait()
                reader.join(1.0)
        except Exception:
            crashed = True
            logger.exception("Render monitor failed for %s", job.output_path)
            if proc.poll() is None:
                proc.kill()
            return_code = proc.wait()
        finally:
            self._close_log(job, lf)
            if job.cancel_requested.is_set():
                outcome = RenderOutcome.CANCELLED
            elif crashed or return_code != 0:
                outcome = RenderOutcome.FAILED
            else:
                outcome = RenderOutcome.SUCCESS
            job.state = JobState.COMPLETED
            logger.info("Render %s: %s (exit code %s)", job.output_path, outcome.value, return_code)
            channel.put(Done(outcome, return_code))
