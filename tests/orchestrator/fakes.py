"""Test doubles shared by the orchestrator tests."""

from __future__ import annotations

from collections.abc import Sequence

import anyio

from speckit.orchestrator.execution.executor import ExecutionContext
from speckit.orchestrator.models.pipeline import PipelineDefinition, PipelineStepDefinition, StepPrompt, StepResult


class FakeExecutor:
    """Executor double.

    Returns ``results`` in order (an ``Exception`` instance is raised instead),
    records every context it receives, and optionally blocks on ``gate``.
    Once ``results`` is exhausted every step returns ``done:<step id>``.
    Construct inside a running event loop.
    """

    def __init__(self, results: Sequence[StepResult | Exception | None] = (), *, gate: anyio.Event | None = None):
        self._results = list(results)
        self.gate = gate
        self.started = anyio.Event()
        self.contexts: list[ExecutionContext] = []

    async def execute(self, context: ExecutionContext) -> StepResult | None:
        self.contexts.append(context)
        self.started.set()
        if self.gate is not None:
            await self.gate.wait()
        if self._results:
            outcome = self._results.pop(0)
        else:
            outcome = StepResult(content=f"done:{context.step.id}")
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


def make_pipeline(
    step_ids: Sequence[str] = ("plan", "spec", "tasks"),
    pipeline_id: str = "spec-kit",
) -> PipelineDefinition:
    return PipelineDefinition(
        id=pipeline_id,
        name="Spec Kit",
        steps=[
            PipelineStepDefinition(
                id=step_id,
                name=step_id.title(),
                prompt=StepPrompt(template=f"Run {step_id}"),
            )
            for step_id in step_ids
        ],
    )
