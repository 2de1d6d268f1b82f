#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Test suite for slideshow filter graph construction
"""

import pytest
from pathlib import Path
import sys
import os

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from core.exceptions import ImageSetTooSmallError
from video_assembly.models import EncodeConfig
from video_assembly.services import FilterGraphBuilder, TransitionKind
from video_assembly.services.filter_graph import FilterNode, FilterChain, format_seconds


class TestTransitionPlan:
    """Test suite for transition planning"""

    def setup_method(self):
        self.builder = FilterGraphBuilder()

    @pytest.mark.parametrize("count", [2, 3, 7, 20])
    def test_n_images_give_n_minus_one_transitions(self, count):
        config = EncodeConfig(static_duration=3.0, enable_fade=True)
        plan = self.builder.plan_transitions(count, config)

        assert len(plan) == count - 1
        assert plan.offsets == [pytest.approx(i * 3.0) for i in range(1, count)]
        assert all(t.kind == TransitionKind.CROSSFADE for t in plan)

    def test_cuts_without_fades(self):
        plan = self.builder.plan_transitions(3, EncodeConfig(enable_fade=False))
        assert [t.kind for t in plan] == [TransitionKind.CUT, TransitionKind.CUT]

    def test_offsets_follow_enforced_total_duration(self):
        config = EncodeConfig(enable_fade=True, enforce_total_duration=True, total_duration_seconds=12.0)
        plan = self.builder.plan_transitions(4, config)
        assert plan.offsets == [pytest.approx(3.0), pytest.approx(6.0), pytest.approx(9.0)]

    def test_single_image_has_no_transitions(self):
        assert len(self.builder.plan_transitions(1, EncodeConfig())) == 0


class TestFilterGraphBuilder:
    """Test suite for FilterGraphBuilder.build"""

    def setup_method(self):
        self.builder = FilterGraphBuilder()
        self.images = [Path(f"/frames/{i:03d}.png") for i in range(3)]

    def test_three_images_without_fades_use_two_concat_filters(self):
        config = EncodeConfig(width=800, height=600, static_duration=2.0,
                              enable_fade=False, frame_rate=30)
        graph = self.builder.build(self.images, config)

        assert graph.count_filters("concat") == 2
        assert graph.count_filters("xfade") == 0
        assert graph.map_target == "[outv]"

    def test_crossfade_chain_text(self):
        config = EncodeConfig(static_duration=2.0, fade_duration=0.5, enable_fade=True)
        rendered = self.builder.build(self.images, config).render()

        assert "[v0][v1]xfade=transition=fade:duration=0.5:offset=2[f1]" in rendered
        assert "[f1][v2]xfade=transition=fade:duration=0.5:offset=4[f2]" in rendered
        assert rendered.endswith("[f2]format=yuv420p[outv]")

    def test_inputs_are_normalized(self):
        config = EncodeConfig(width=1280, height=720, frame_rate=25)
        graph = self.builder.build(self.images, config)
        first = graph.chains[0].render()

        assert first.startswith("[0:v]scale=1280:720:force_original_aspect_ratio=decrease")
        assert "pad=1280:720:(ow-iw)/2:(oh-ih)/2" in first
        assert "setsar=1" in first
        assert "fps=25" in first
        assert first.endswith("setpts=PTS-STARTPTS[v0]")

    def test_single_image_maps_normalized_stream(self):
        graph = self.builder.build(self.images[:1], EncodeConfig())

        assert len(graph.chains) == 1
        assert graph.map_target == "[v0]"

    def test_empty_input_rejected(self):
        with pytest.raises(ImageSetTooSmallError):
            self.builder.build([], EncodeConfig())


class TestGraphRendering:
    """Test suite for node rendering"""

    def test_node_render(self):
        assert FilterNode("setsar", ("1",)).render() == "setsar=1"
        assert FilterNode("null").render() == "null"
        assert FilterNode("concat", options=(("n", "2"),)).render() == "concat=n=2"

    def test_chain_render(self):
        chain = FilterChain(("a", "b"), (FilterNode("concat", options=(("n", "2"),)),), ("c",))
        assert chain.render() == "[a][b]concat=n=2[c]"
        assert chain.uses("concat")

    @pytest.mark.parametrize("value,expected", [
        (2.0, "2"),
        (0.5, "0.5"),
        (4.0 / 3.0, "1.333"),
        (0.0, "0"),
    ])
    def test_format_seconds(self, value, expected):
        assert format_seconds(value) == expected
