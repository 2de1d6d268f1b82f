#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Test suite for FFmpeg progress translation
"""

import pytest
import sys
import os

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from video_assembly.services import ProgressTranslator, PhaseProgressMapper


STATS_LINE = "frame=  150 fps= 60 q=28.0 size=     512kB time=00:00:05.00 bitrate= 838.9kbits/s speed=2.01x"


class FakeClock:
    def __init__(self):
        self.now = 0.0

    def __call__(self):
        return self.now


class TestTryParse:
    """Test suite for reading tagged progress lines"""

    @pytest.mark.parametrize("line,expected", [
        ("[MAIN] [####################--------------------] 50%", (True, 50.0)),
        ("  [MAIN] [----] 0%", (True, 0.0)),
        ("[MAIN] [###] 12.5%", (True, 12.5)),
        ("[MAIN] [###] 140%", (True, 100.0)),
    ])
    def test_progress_lines(self, line, expected):
        assert ProgressTranslator.try_parse(line) == expected

    @pytest.mark.parametrize("line", [
        "",
        "[FF] [####] 50%",
        "frame=  10 time=00:00:01.00",
        "[MAIN] no percentage here",
        "[MAIN] [###] abc%",
    ])
    def test_other_lines_are_not_progress(self, line):
        assert ProgressTranslator.try_parse(line) == (False, 0.0)

    def test_formatted_line_parses_back(self):
        line = ProgressTranslator.format_progress_line(42.7)
        assert line.startswith("[MAIN] [")
        assert ProgressTranslator.try_parse(line) == (True, 42.0)


class TestMapToOverall:
    """Test suite for phase mapping"""

    def test_default_video_phase(self):
        assert ProgressTranslator.map_to_overall(0, 80, 20) == pytest.approx(80.0)
        assert ProgressTranslator.map_to_overall(50, 80, 20) == pytest.approx(90.0)
        assert ProgressTranslator.map_to_overall(100, 80, 20) == pytest.approx(100.0)

    def test_clamps_input(self):
        assert ProgressTranslator.map_to_overall(150, 80, 20) == pytest.approx(100.0)
        assert ProgressTranslator.map_to_overall(-5, 80, 20) == pytest.approx(80.0)


class TestCondense:
    """Test suite for condensing raw FFmpeg output"""

    def setup_method(self):
        self.clock = FakeClock()
        self.translator = ProgressTranslator(expected_seconds=10.0, expected_frames=300,
                                             clock=self.clock)

    def test_parse_stats(self):
        stats = ProgressTranslator.parse_stats(STATS_LINE)
        assert stats.frame == 150
        assert stats.fps == 60.0
        assert stats.time_seconds == pytest.approx(5.0)
        assert stats.speed == pytest.approx(2.01)
        assert stats.bitrate == "838.9kbits/s"

    def test_stats_line_yields_main_and_detail(self):
        lines = self.translator.condense(STATS_LINE)

        assert len(lines) == 2
        assert lines[0] == "[MAIN] [" + "#" * 20 + "-" * 20 + "] 50%"
        assert lines[1].startswith("[FF] ")
        assert "frame 150/300" in lines[1]

    def test_repeated_percent_is_throttled(self):
        assert self.translator.condense(STATS_LINE)
        assert self.translator.condense(STATS_LINE) == []

        self.clock.now += 1.0
        assert len(self.translator.condense(STATS_LINE)) == 2

    def test_new_percent_bypasses_throttle(self):
        self.translator.condense(STATS_LINE)
        lines = self.translator.condense(STATS_LINE.replace("00:00:05.00", "00:00:06.00"))
        assert ProgressTranslator.try_parse(lines[0]) == (True, 60.0)

    def test_frames_used_without_time(self):
        stats = ProgressTranslator.parse_stats("frame=   75 fps=30")
        assert self.translator.percent_for(stats) == pytest.approx(25.0)

    def test_error_lines_tagged(self):
        lines = self.translator.condense("Error opening input file missing.png")
        assert lines == ["[FFMPEG] Error opening input file missing.png"]

    def test_other_lines_dropped(self):
        assert self.translator.condense("  Stream #0:0: Video: png") == []


class TestPhaseProgressMapper:
    """Test suite for PhaseProgressMapper"""

    def setup_method(self):
        self.events = []
        self.mapper = PhaseProgressMapper(self.events.append)

    def test_defaults_to_last_fifth(self):
        event = self.mapper.report(50.0, "encoding")
        assert event.phase == "video"
        assert event.percentage == pytest.approx(90.0)
        assert self.events == [event]

    def test_status_message_starts_video_phase(self):
        self.mapper.observe_status("Creating video...", 60.0)
        assert self.mapper.handle_line("[MAIN] [###] 50%").percentage == pytest.approx(80.0)

    def test_other_status_keeps_phase(self):
        self.mapper.observe_status("Rendering images", 30.0)
        assert self.mapper.base == 80.0

    def test_non_progress_lines_ignored(self):
        assert self.mapper.handle_line("[FF] detail") is None
        assert self.events == []

    def test_begin_phase_spans_rest_of_bar(self):
        self.mapper.begin_phase("ffmpeg", 10.0, span=20.0)
        assert self.mapper.report(50.0).percentage == pytest.approx(20.0)

        self.mapper.begin_phase("video", 150.0)
        assert self.mapper.base == 100.0
        assert self.mapper.span == 0.0
