import logging

from handknob.control.display_provider import (
    RotationLatch,
    TuiDisplayProvider,
    gauge,
    status_lines,
)


def test_status_lines_show_knob_degrees():
    lines = status_lines(0.5, "left")
    assert lines[0] == "Knob Rotation"
    assert lines[1] == "180 degrees"
    assert "0.500" in lines[2]


def test_gauge_fill_tracks_value():
    assert gauge(0.0, cells=4) == "[----]"
    assert gauge(0.5, cells=4) == "[##--]"
    assert gauge(1.7, cells=4) == "[####]"


def test_tui_scroll_mode_logs_value(caplog):
    caplog.set_level(logging.INFO)
    display = TuiDisplayProvider(tracked_chirality="left", cli_output="scroll")
    display.update(0.25)
    assert "rotation=0.250 (90 deg)" in caplog.text


def test_rotation_latch_keeps_latest_value():
    latch = RotationLatch()
    assert latch.read() == (0.0, 0)
    latch(0.3)
    latch(0.6)
    assert latch.read() == (0.6, 2)
