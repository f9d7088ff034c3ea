from __future__ import annotations

import pytest

from subburn.models.job import Done, MediaDuration, PathSelection, RenderOutcome


def test_snapshot_is_independent_of_later_edits():
    selection = PathSelection("in.mp4", "subs.ass", "out.mp4")
    snap = selection.snapshot()

    selection.set_video("other.mp4")

    assert snap.video_path == "in.mp4"
    assert selection.video_path == "other.mp4"


def test_can_render_needs_video_and_subtitle():
    selection = PathSelection()
    assert not selection.can_render()
    selection.set_video("in.mp4")
    assert not selection.can_render()
    selection.set_subtitle("subs.ass")
    assert selection.can_render()


def test_media_duration_rejects_negative_values():
    with pytest.raises(ValueError):
        MediaDuration(-1)
    assert MediaDuration(12500).seconds == 12


def test_done_ok_only_on_success():
    assert Done().ok
    assert not Done(RenderOutcome.FAILED, 1).ok
    assert not Done(RenderOutcome.CANCELLED, -15).ok


def test_sources_exist_checks_both_inputs(tmp_path):
    video = tmp_path / "in.mp4"
    video.write_bytes(b"")
    selection = PathSelection(str(video), str(tmp_path / "missing.ass"))
    assert not selection.sources_exist()

    (tmp_path / "missing.ass").write_text("[Script Info]\n")
    assert selection.sources_exist()
