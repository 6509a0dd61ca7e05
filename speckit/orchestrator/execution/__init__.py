"""Pipeline execution for the orchestrator.

- **executor**: Step executor protocol and the context handed to it
- **prompt**: Step prompt rendering (Jinja2 templates)
- **runner**: Per-workspace pipeline state machine
- **checkpoint**: Saving / restoring run state through workspace metadata
"""

from speckit.orchestrator.execution.executor import ExecutionContext, FunctionExecutor, StepExecutor
from speckit.orchestrator.execution.runner import DEFAULT_WORKSPACE_ID, PipelineRunner

__all__ = [
    "DEFAULT_WORKSPACE_ID",
    "ExecutionContext",
    "FunctionExecutor",
    "PipelineRunner",
    "StepExecutor",
]
