"""
Pipeline ordering and resolution.

MechanismOrderer fixes the execution order of a player's runtimes;
PipelineResolver runs them over a fresh context and aggregates everything
the rest of the turn needs: engine inputs, turn delay, UI metadata,
assistance data and extra engine affectors/hooks.
"""

from __future__ import annotations

import logging
from typing import Any, Mapping, Optional, Sequence

from .affectors import AffectorFn
from .errors import PipelineResolutionError
from .hooks import HookFn
from .mechanisms import AssistanceProvider, MechanismRuntime
from .pipeline import PipelineContext

logger = logging.getLogger(__name__)


class MechanismOrderer:
    """
    Total order over runtimes.

    Runtimes sort by ``(priority, original_index)`` so equal priorities keep
    their submission order. This is a total order, not a dependency graph.
    """

    def __init__(self, runtimes: Sequence[MechanismRuntime]):
        self.runtimes = list(runtimes)

    def ordered(self) -> list[MechanismRuntime]:
        """Runtimes in pipeline execution order."""
        indexed = sorted(
            enumerate(self.runtimes),
            key=lambda pair: (pair[1].mechanism.priority, pair[0]),
        )
        return [runtime for _, runtime in indexed]


class PipelineResolver:
    """
    Resolves one turn for one player.

    Example:
        resolver = PipelineResolver(runtimes, {"elevation": 30, "powder_charges": 3})
        attributes = resolver.ballistic_attributes()
        delay = resolver.turn_order_delay()
    """

    def __init__(
        self,
        runtimes: Sequence[MechanismRuntime],
        player_input: Optional[Mapping[str, Any]] = None
    ):
        self.runtimes = list(runtimes)
        self.player_input = dict(player_input or {})
        self.orderer = MechanismOrderer(self.runtimes)

    def ordered_runtimes(self) -> list[MechanismRuntime]:
        """Runtimes in execution order."""
        return self.orderer.ordered()

    def resolve(self) -> PipelineContext:
        """
        Run every runtime over a fresh context.

        Returns:
            The frozen, fully resolved context

        Raises:
            PipelineResolutionError: If any runtime fails; the partially
                built context is discarded.
        """
        context = PipelineContext(self.player_input)
        ordered = self.ordered_runtimes()
        logger.debug(
            "Resolving pipeline: %s",
            ", ".join(f"{r.name}[{r.mechanism.priority}]" for r in ordered),
        )

        for runtime in ordered:
            try:
                for transform in runtime.resolve(context):
                    context.set_or_update(transform)
            except Exception as e:
                logger.error("%s failed during resolution: %s", runtime.name, e)
                raise PipelineResolutionError(
                    runtime.mechanism.mechanism_id, runtime.name, str(e)
                ) from e

        return context.freeze()

    def ballistic_attributes(self) -> dict[str, float]:
        """Engine inputs from a fresh resolution, with defaults filled in."""
        return self.resolve().to_ballistic_inputs()

    def turn_order_delay(self) -> float:
        """Sum of every runtime's delay contribution (seconds)."""
        return sum(runtime.turn_order_delay() for runtime in self.runtimes)

    def ui_metadata(self) -> list[dict[str, Any]]:
        """Non-empty metadata dicts, in pipeline order."""
        metadata = [runtime.metadata() for runtime in self.ordered_runtimes()]
        return [entry for entry in metadata if entry]

    def assistance_data(self, context: Optional[PipelineContext] = None) -> dict[str, Any]:
        """
        Merge assistance from every AssistanceProvider runtime.

        Merge order follows pipeline order; on key collision the later
        provider wins.

        Args:
            context: Already resolved context; resolved afresh when None

        Returns:
            Merged assistance data
        """
        if context is None:
            context = self.resolve()

        merged: dict[str, Any] = {}
        for runtime in self.ordered_runtimes():
            if isinstance(runtime, AssistanceProvider):
                merged.update(runtime.assistance_data(context))
        return merged

    def engine_affectors(self) -> list[AffectorFn]:
        """Extra affectors contributed by runtimes."""
        return [affector for runtime in self.ordered_runtimes() for affector in runtime.affectors()]

    def engine_hooks(self) -> list[HookFn]:
        """Extra hooks contributed by runtimes."""
        return [hook for runtime in self.ordered_runtimes() for hook in runtime.hooks()]
