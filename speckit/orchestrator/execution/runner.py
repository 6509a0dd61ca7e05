"""Pipeline runner -- a per-workspace state machine over a fixed step list.

One runner drives one ``PipelineDefinition`` for any number of workspaces.
Each workspace has its own ``WorkspaceRunState``; exactly one workspace is
*active* at a time and the navigation methods act on it.

Workspace status transitions::

    idle -> running -> {paused <-> running} -> completed
                 \\-> error (retryable via run_current_step)

Everything except ``run_current_step`` is synchronous: each call reads and
writes the whole state object without yielding, so it is atomic from the
caller's point of view.  ``run_current_step`` suspends only while awaiting
the executor, and at most one step may be in flight per workspace.

Switching the active workspace demotes a ``running`` previous workspace to
``paused``.  Its state object stays in memory and an in-flight step still
records its result there, but it will not auto-advance.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime
from types import MappingProxyType
from typing import TYPE_CHECKING, Any

import anyio
from loguru import logger

from speckit.orchestrator.errors import NoCurrentStepError, StepAlreadyRunningError, StepCancelledError
from speckit.orchestrator.execution.executor import ExecutionContext
from speckit.orchestrator.execution.prompt import missing_inputs, render_step_prompt
from speckit.orchestrator.models.enums import RunnerStatus, StepStatus
from speckit.orchestrator.models.pipeline import (
    PipelineDefinition,
    PipelineStepDefinition,
    StepResult,
    StepRuntimeState,
    WorkspaceRunState,
)

if TYPE_CHECKING:
    from collections.abc import Mapping

    from speckit.orchestrator.execution.executor import StepExecutor

DEFAULT_WORKSPACE_ID = "default"

StatusListener = Callable[[RunnerStatus, str], None]
"""Called with ``(new_status, workspace_id)`` on every workspace status change."""


def _utcnow() -> datetime:
    return datetime.now(tz=UTC)


@dataclass
class _InFlight:
    step_id: str
    scope: anyio.CancelScope
    cancel_requested: anyio.Event


class PipelineRunner:
    """Drive a pipeline through its steps, independently per workspace.

    Parameters
    ----------
    pipeline:
        The step list.  Replace it with ``set_pipeline``.
    executor:
        Performs the work of a step.  Without one, ``run_current_step``
        records nothing and callers are expected to use ``set_step_response``.
    workspace_id:
        Initially active workspace (``"default"`` if omitted).
    auto_advance:
        Move to the next step after a step finishes successfully.
    """

    def __init__(
        self,
        pipeline: PipelineDefinition,
        executor: StepExecutor | None = None,
        *,
        workspace_id: str | None = None,
        auto_advance: bool = True,
    ) -> None:
        self._pipeline = pipeline
        self._executor = executor
        self.auto_advance = auto_advance
        self._states: dict[str, WorkspaceRunState] = {}
        self._in_flight: dict[str, _InFlight] = {}
        self._listeners: list[StatusListener] = []
        self._active_id = workspace_id or DEFAULT_WORKSPACE_ID
        self._ensure(self._active_id)

    # -- Observers -------------------------------------------------------------

    def subscribe(self, listener: StatusListener) -> Callable[[], None]:
        """Register a status listener.  Returns a function that removes it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self, status: RunnerStatus, workspace_id: str) -> None:
        for listener in list(self._listeners):
            try:
                listener(status, workspace_id)
            except Exception:
                logger.exception("Status listener failed for workspace {}", workspace_id)

    def _set_status(self, state: WorkspaceRunState, status: RunnerStatus) -> None:
        if state.status == status:
            return
        state.status = status
        self._notify(status, state.workspace_id)

    # -- Workspaces ------------------------------------------------------------

    @property
    def active_workspace_id(self) -> str:
        return self._active_id

    @active_workspace_id.setter
    def active_workspace_id(self, workspace_id: str | None) -> None:
        self.switch_workspace(workspace_id)

    def switch_workspace(self, workspace_id: str | None) -> None:
        """Make *workspace_id* active, pausing the previous one if it was running."""
        workspace_id = workspace_id or DEFAULT_WORKSPACE_ID
        previous_id = self._active_id
        if previous_id != workspace_id:
            previous = self._states.get(previous_id)
            if previous is not None and previous.status == RunnerStatus.RUNNING:
                logger.debug("Pausing workspace {} (switching to {})", previous_id, workspace_id)
                self._set_status(previous, RunnerStatus.PAUSED)
        self._ensure(workspace_id)
        self._active_id = workspace_id

    @property
    def workspace_ids(self) -> list[str]:
        return list(self._states)

    def _ensure(self, workspace_id: str) -> WorkspaceRunState:
        state = self._states.get(workspace_id)
        if state is None or state.pipeline_id != self._pipeline.id:
            state = self._states[workspace_id] = WorkspaceRunState.initial(self._pipeline, workspace_id)
        return state

    def _resolve(self, workspace_id: str | None) -> WorkspaceRunState:
        return self._ensure(workspace_id or self._active_id)

    # -- Pipeline --------------------------------------------------------------

    @property
    def pipeline(self) -> PipelineDefinition:
        return self._pipeline

    def set_pipeline(self, pipeline: PipelineDefinition) -> None:
        """Swap the definition.  A new pipeline id resets every workspace."""
        self._pipeline = pipeline
        for workspace_id, state in list(self._states.items()):
            if state.pipeline_id == pipeline.id:
                continue
            self._detach(workspace_id)
            fresh = self._states[workspace_id] = WorkspaceRunState.initial(pipeline, workspace_id)
            if state.status != fresh.status:
                self._notify(fresh.status, workspace_id)

    # -- Queries ---------------------------------------------------------------

    def state(self, workspace_id: str | None = None) -> WorkspaceRunState:
        """Snapshot of a workspace's run state (a copy; mutating it has no effect)."""
        return self._resolve(workspace_id).model_copy(deep=True)

    def current_step(self, workspace_id: str | None = None) -> PipelineStepDefinition | None:
        index = self._resolve(workspace_id).current_step_index
        if 0 <= index < len(self._pipeline.steps):
            return self._pipeline.steps[index]
        return None

    def is_step_running(self, workspace_id: str | None = None) -> bool:
        return (workspace_id or self._active_id) in self._in_flight

    # -- Lifecycle -------------------------------------------------------------

    def start_pipeline(self, workspace_id: str | None = None) -> None:
        state = self._resolve(workspace_id)
        if state.status in (RunnerStatus.IDLE, RunnerStatus.PAUSED):
            if state.started_at is None:
                state.started_at = _utcnow()
            self._set_status(state, RunnerStatus.RUNNING)

    def pause_pipeline(self, workspace_id: str | None = None) -> None:
        state = self._resolve(workspace_id)
        if state.status == RunnerStatus.RUNNING:
            self._set_status(state, RunnerStatus.PAUSED)

    def resume_pipeline(self, workspace_id: str | None = None) -> None:
        state = self._resolve(workspace_id)
        if state.status == RunnerStatus.PAUSED:
            self._set_status(state, RunnerStatus.RUNNING)

    def reset_pipeline(self, workspace_id: str | None = None) -> None:
        """Discard all progress for the workspace, cancelling any in-flight step.

        The workspace accepts a new ``run_current_step`` immediately; the
        cancelled call unwinds without touching the fresh state.
        """
        workspace_id = workspace_id or self._active_id
        self._detach(workspace_id)
        previous = self._states.get(workspace_id)
        fresh = self._states[workspace_id] = WorkspaceRunState.initial(self._pipeline, workspace_id)
        if previous is not None and previous.status != fresh.status:
            self._notify(fresh.status, workspace_id)

    # -- Navigation ------------------------------------------------------------

    def advance_step(self, workspace_id: str | None = None) -> None:
        self._advance(self._resolve(workspace_id))

    def _advance(self, state: WorkspaceRunState) -> None:
        if state.current_step_index >= self._pipeline.last_index:
            if state.status != RunnerStatus.COMPLETED:
                if state.finished_at is None:
                    state.finished_at = _utcnow()
                self._set_status(state, RunnerStatus.COMPLETED)
            return

        next_index = state.current_step_index + 1
        state.current_step_index = next_index
        state.history.append(next_index)

    def rewind_step(self, workspace_id: str | None = None) -> None:
        state = self._resolve(workspace_id)
        if len(state.history) <= 1:
            return
        state.history.pop()
        state.current_step_index = state.history[-1]

    def go_to_step(self, step_id: str, workspace_id: str | None = None) -> None:
        index = self._pipeline.index_of(step_id)
        if index is None:
            logger.warning("Cannot navigate to unknown step id {}", step_id)
            return
        state = self._resolve(workspace_id)
        state.current_step_index = index
        state.history.append(index)

    # -- Step records ----------------------------------------------------------

    def set_step_inputs(self, step_id: str, inputs: Mapping[str, Any], workspace_id: str | None = None) -> None:
        target = self._resolve(workspace_id).steps.get(step_id)
        if target is None:
            logger.warning("Ignoring inputs for unknown step id {}", step_id)
            return
        target.inputs = {**target.inputs, **inputs}

    def set_step_response(self, step_id: str, result: StepResult, workspace_id: str | None = None) -> None:
        """Record a step result and mark the step completed.

        Recording the final step's result also completes the workspace.  This
        depends on the step's position in the pipeline, not on
        ``current_step_index``, so a last-step response recorded out of order
        completes the workspace too.
        """
        state = self._resolve(workspace_id)
        target = state.steps.get(step_id)
        if target is None:
            logger.warning("Ignoring response for unknown step id {}", step_id)
            return

        now = _utcnow()
        target.status = StepStatus.COMPLETED
        target.response = result.model_copy(deep=True)
        target.error = None
        target.completed_at = now

        if self._pipeline.index_of(step_id) == self._pipeline.last_index:
            if state.finished_at is None:
                state.finished_at = now
            self._set_status(state, RunnerStatus.COMPLETED)

    # -- Execution -------------------------------------------------------------

    async def run_current_step(
        self,
        input_overrides: Mapping[str, Any] | None = None,
        *,
        workspace_id: str | None = None,
    ) -> StepResult | None:
        """Execute the current step of the workspace through the executor.

        The result is recorded against the workspace that was active when the
        call started, even if the active workspace changes meanwhile.

        Raises
        ------
        NoCurrentStepError
            The pipeline has no step at the current index.
        StepAlreadyRunningError
            A step of this workspace is already in flight.
        StepCancelledError
            ``cancel_current_step`` was called before the executor finished.
            The step goes back to ``idle``.
        Exception
            Anything the executor raised.  Step and workspace are marked
            ``error`` first.
        """
        workspace_id = workspace_id or self._active_id
        state = self._ensure(workspace_id)
        index = state.current_step_index
        if not 0 <= index < len(self._pipeline.steps):
            msg = f"Pipeline '{self._pipeline.id}' has no step at index {index}"
            raise NoCurrentStepError(msg)
        if workspace_id in self._in_flight:
            msg = f"Step '{self._in_flight[workspace_id].step_id}' is already running in workspace '{workspace_id}'"
            raise StepAlreadyRunningError(msg)

        step = self._pipeline.steps[index]
        step_state = self._begin_step(state, step, input_overrides)

        absent = missing_inputs(step, step_state.inputs)
        if absent:
            logger.warning("Step {} is missing required inputs: {}", step.id, ", ".join(absent))

        in_flight = _InFlight(step_id=step.id, scope=anyio.CancelScope(), cancel_requested=anyio.Event())
        self._in_flight[workspace_id] = in_flight
        try:
            with in_flight.scope:
                try:
                    context = self._build_context(state, step, in_flight.cancel_requested)
                    result = await self._execute(context)
                except anyio.get_cancelled_exc_class():
                    if self._in_flight.get(workspace_id) is in_flight:
                        self._return_step_to_idle(workspace_id, step.id)
                    raise
                except Exception as exc:
                    if self._in_flight.get(workspace_id) is in_flight:
                        self._fail_step(workspace_id, step.id, exc)
                    raise
        finally:
            # A reset detaches the record; the state it belonged to is gone.
            owned = self._in_flight.get(workspace_id) is in_flight
            if owned:
                del self._in_flight[workspace_id]

        if in_flight.scope.cancelled_caught or not owned:
            logger.info("Step {} cancelled in workspace {}", step.id, workspace_id)
            msg = f"Step '{step.id}' was cancelled"
            raise StepCancelledError(msg)

        if result is not None:
            self.set_step_response(step.id, result, workspace_id=workspace_id)
        else:
            self._return_step_to_idle(workspace_id, step.id)

        if self.auto_advance:
            current = self._ensure(workspace_id)
            if current.status != RunnerStatus.PAUSED:
                self._advance(current)
        return result

    def cancel_current_step(self, workspace_id: str | None = None) -> bool:
        """Request cancellation of the workspace's in-flight step.

        Returns ``False`` if nothing was running.
        """
        in_flight = self._in_flight.get(workspace_id or self._active_id)
        if in_flight is None:
            return False
        in_flight.cancel_requested.set()
        in_flight.scope.cancel()
        return True

    def _detach(self, workspace_id: str) -> None:
        """Cancel the in-flight step and forget it without waiting for it to unwind."""
        if self.cancel_current_step(workspace_id):
            del self._in_flight[workspace_id]

    def _begin_step(
        self,
        state: WorkspaceRunState,
        step: PipelineStepDefinition,
        input_overrides: Mapping[str, Any] | None,
    ) -> StepRuntimeState:
        now = _utcnow()
        step_state = state.steps.get(step.id)
        if step_state is None:
            step_state = state.steps[step.id] = StepRuntimeState(id=step.id)
        step_state.status = StepStatus.RUNNING
        step_state.error = None
        step_state.inputs = {**step_state.inputs, **(input_overrides or {})}
        if step_state.started_at is None:
            step_state.started_at = now

        if state.status in (RunnerStatus.IDLE, RunnerStatus.ERROR):
            if state.started_at is None:
                state.started_at = now
            state.error = None
            self._set_status(state, RunnerStatus.RUNNING)
        return step_state

    def _build_context(
        self,
        state: WorkspaceRunState,
        step: PipelineStepDefinition,
        cancel_requested: anyio.Event,
    ) -> ExecutionContext:
        responses = MappingProxyType(
            {step_id: s.response.model_copy(deep=True) if s.response else None for step_id, s in state.steps.items()}
        )
        inputs = MappingProxyType({step_id: MappingProxyType(dict(s.inputs)) for step_id, s in state.steps.items()})
        return ExecutionContext(
            workspace_id=state.workspace_id,
            pipeline=self._pipeline,
            step=step,
            step_state=state.steps[step.id].model_copy(deep=True),
            responses=responses,
            inputs=inputs,
            prompt=render_step_prompt(step, inputs=inputs, responses=responses),
            cancel_requested=cancel_requested,
        )

    async def _execute(self, context: ExecutionContext) -> StepResult | None:
        if self._executor is None:
            return None
        result = await self._executor.execute(context)
        if isinstance(result, str):
            return StepResult(content=result)
        return result

    def _return_step_to_idle(self, workspace_id: str, step_id: str) -> None:
        step_state = self._ensure(workspace_id).steps.get(step_id)
        if step_state is not None and step_state.status == StepStatus.RUNNING:
            step_state.status = StepStatus.IDLE

    def _fail_step(self, workspace_id: str, step_id: str, exc: Exception) -> None:
        message = str(exc) or type(exc).__name__
        logger.warning("Step {} failed in workspace {}: {}", step_id, workspace_id, message)
        state = self._ensure(workspace_id)
        step_state = state.steps.get(step_id)
        if step_state is not None:
            step_state.status = StepStatus.ERROR
            step_state.error = message
        state.error = message
        self._set_status(state, RunnerStatus.ERROR)

    # -- Snapshots -------------------------------------------------------------

    def restore_state(self, snapshot: WorkspaceRunState) -> bool:
        """Load a saved run state for ``snapshot.workspace_id``.

        Ignored (returns ``False``) if it belongs to a different pipeline.
        Steps of the current definition missing from the snapshot start idle;
        anything recorded as running becomes idle / paused since the call
        that was running cannot have survived.
        """
        if snapshot.pipeline_id != self._pipeline.id:
            logger.warning(
                "Ignoring saved run of pipeline {} (active pipeline is {})",
                snapshot.pipeline_id,
                self._pipeline.id,
            )
            return False

        workspace_id = snapshot.workspace_id
        if workspace_id in self._in_flight:
            msg = f"Cannot restore workspace '{workspace_id}' while a step is running"
            raise StepAlreadyRunningError(msg)

        restored = WorkspaceRunState.initial(self._pipeline, workspace_id)
        for step_id, saved in snapshot.steps.items():
            if step_id not in restored.steps:
                continue
            step_state = saved.model_copy(deep=True)
            if step_state.status == StepStatus.RUNNING:
                step_state.status = StepStatus.IDLE
            restored.steps[step_id] = step_state

        history = [i for i in snapshot.history if 0 <= i < len(self._pipeline.steps)]
        restored.history = history or [0]
        restored.current_step_index = restored.history[-1]
        restored.started_at = snapshot.started_at
        restored.finished_at = snapshot.finished_at
        restored.error = snapshot.error
        restored.status = RunnerStatus.PAUSED if snapshot.status == RunnerStatus.RUNNING else snapshot.status

        previous = self._states.get(workspace_id)
        self._states[workspace_id] = restored
        if previous is None or previous.status != restored.status:
            self._notify(restored.status, workspace_id)
        return True
