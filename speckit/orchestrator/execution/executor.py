"""Step executor interface.

The runner never generates step content itself.  It hands an
``ExecutionContext`` to an injected executor and records whatever comes back.
Tests substitute a fake executor; the hosting application plugs in the
model call.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

if TYPE_CHECKING:
    import anyio

    from speckit.orchestrator.models.pipeline import (
        PipelineDefinition,
        PipelineStepDefinition,
        StepResult,
        StepRuntimeState,
    )


@dataclass(frozen=True)
class ExecutionContext:
    """Read-only view of the pipeline handed to the executor.

    ``responses`` and ``inputs`` are keyed by step id and cover every step of
    the pipeline; steps without a response map to ``None``.
    """

    workspace_id: str
    pipeline: PipelineDefinition
    step: PipelineStepDefinition
    step_state: StepRuntimeState
    responses: Mapping[str, StepResult | None]
    inputs: Mapping[str, Mapping[str, Any]]
    prompt: str
    cancel_requested: anyio.Event
    """Set when ``PipelineRunner.cancel_current_step`` is called."""

    @property
    def step_inputs(self) -> Mapping[str, Any]:
        return self.inputs.get(self.step.id, {})

    @property
    def cancelled(self) -> bool:
        return self.cancel_requested.is_set()


@runtime_checkable
class StepExecutor(Protocol):
    async def execute(self, context: ExecutionContext) -> StepResult | None:
        """Run one step.  ``None`` means nothing to record."""
        ...


class FunctionExecutor:
    """Adapt a plain async callable to the ``StepExecutor`` protocol."""

    def __init__(self, fn: Callable[[ExecutionContext], Awaitable[StepResult | None]]) -> None:
        self._fn = fn

    async def execute(self, context: ExecutionContext) -> StepResult | None:
        return await self._fn(context)
