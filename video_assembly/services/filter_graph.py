"""
Filter graph builder.

Builds the -filter_complex graph for a slideshow as typed nodes: one
normalizing chain per input image (scale, pad, pixel format, frame rate,
timestamp reset) followed by the transition chains joining consecutive
clips. Text is only produced by ``FilterGraph.render()``.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Sequence, Tuple

from core.exceptions import ImageSetTooSmallError
from ..models.encode_config import EncodeConfig


OUTPUT_LABEL = "outv"
PIXEL_FORMAT = "yuv420p"


def format_seconds(value: float) -> str:
    """Render a duration for filter arguments ('2', '0.5', '1.333')."""
    text = f"{value:.3f}".rstrip('0').rstrip('.')
    return text or "0"


@dataclass(frozen=True)
class FilterNode:
    """A single filter with positional and named arguments."""
    name: str
    args: Tuple[str, ...] = ()
    options: Tuple[Tuple[str, str], ...] = ()

    def render(self) -> str:
        parts = list(self.args) + [f"{key}={value}" for key, value in self.options]
        if not parts:
            return self.name
        return f"{self.name}={':'.join(parts)}"


@dataclass(frozen=True)
class FilterChain:
    """Filters applied in sequence between labeled input and output pads."""
    inputs: Tuple[str, ...]
    filters: Tuple[FilterNode, ...]
    outputs: Tuple[str, ...]

    def render(self) -> str:
        sources = ''.join(f"[{label}]" for label in self.inputs)
        sinks = ''.join(f"[{label}]" for label in self.outputs)
        return f"{sources}{','.join(node.render() for node in self.filters)}{sinks}"

    def uses(self, filter_name: str) -> bool:
        return any(node.name == filter_name for node in self.filters)


@dataclass
class FilterGraph:
    """The complete graph; ``output_label`` is the pad passed to -map."""
    chains: List[FilterChain] = field(default_factory=list)
    output_label: str = OUTPUT_LABEL

    def render(self) -> str:
        return ';'.join(chain.render() for chain in self.chains)

    def count_filters(self, filter_name: str) -> int:
        return sum(1 for chain in self.chains for node in chain.filters if node.name == filter_name)

    @property
    def map_target(self) -> str:
        return f"[{self.output_label}]"


class TransitionKind(Enum):
    """How two consecutive clips are joined."""
    CROSSFADE = "xfade"
    CUT = "concat"


@dataclass(frozen=True)
class Transition:
    """Transition into clip ``clip_index`` starting at ``offset`` seconds."""
    clip_index: int
    offset: float
    kind: TransitionKind


@dataclass(frozen=True)
class TransitionPlan:
    """Ordered transitions; N images give N-1 transitions."""
    transitions: Tuple[Transition, ...] = ()

    def __len__(self) -> int:
        return len(self.transitions)

    def __iter__(self):
        return iter(self.transitions)

    @property
    def offsets(self) -> List[float]:
        return [transition.offset for transition in self.transitions]


class FilterGraphBuilder:
    """
    Builds the slideshow filter graph from an image list and EncodeConfig.

    Every input is normalized to the same canvas, pixel format, frame rate
    and zero-based timestamps before joining, since xfade and concat reject
    streams with mismatched timing.
    """

    def plan_transitions(self, image_count: int, config: EncodeConfig) -> TransitionPlan:
        """
        Plan the transitions between ``image_count`` clips.

        Transition i (1-based) starts at i times the per-slide static
        duration.
        """
        if image_count < 2:
            return TransitionPlan()

        static = config.effective_static_duration(image_count)
        kind = TransitionKind.CROSSFADE if config.enable_fade else TransitionKind.CUT
        return TransitionPlan(tuple(
            Transition(clip_index=i, offset=i * static, kind=kind)
            for i in range(1, image_count)
        ))

    def build(self, images: Sequence, config: EncodeConfig) -> FilterGraph:
        """
        Build the graph for ``images`` (input i is the i-th image).

        Raises:
            ImageSetTooSmallError: If no images are given
        """
        count = len(images)
        if count == 0:
            raise ImageSetTooSmallError(0)

        graph = FilterGraph()
        for index in range(count):
            graph.chains.append(self._input_chain(index, config))

        if count == 1:
            graph.output_label = "v0"
            return graph

        last_label = "v0"
        for transition in self.plan_transitions(count, config):
            out_label = f"f{transition.clip_index}"
            graph.chains.append(FilterChain(
                inputs=(last_label, f"v{transition.clip_index}"),
                filters=(self._transition_node(transition, config),),
                outputs=(out_label,),
            ))
            last_label = out_label

        graph.chains.append(FilterChain(
            inputs=(last_label,),
            filters=(FilterNode("format", (PIXEL_FORMAT,)),),
            outputs=(graph.output_label,),
        ))
        return graph

    def _input_chain(self, index: int, config: EncodeConfig) -> FilterChain:
        width, height = str(config.width), str(config.height)
        return FilterChain(
            inputs=(f"{index}:v",),
            filters=(
                FilterNode("scale", (width, height), (("force_original_aspect_ratio", "decrease"),)),
                FilterNode("pad", (width, height, "(ow-iw)/2", "(oh-ih)/2")),
                FilterNode("setsar", ("1",)),
                FilterNode("format", (PIXEL_FORMAT,)),
                FilterNode("fps", (str(config.frame_rate),)),
                FilterNode("setpts", ("PTS-STARTPTS",)),
            ),
            outputs=(f"v{index}",),
        )

    def _transition_node(self, transition: Transition, config: EncodeConfig) -> FilterNode:
        if transition.kind == TransitionKind.CROSSFADE:
            return FilterNode("xfade", options=(
                ("transition", "fade"),
                ("duration", format_seconds(config.fade_duration)),
                ("offset", format_seconds(transition.offset)),
            ))
        return FilterNode("concat", options=(("n", "2"), ("v", "1"), ("a", "0")))
