"""Step prompt rendering with Jinja2 template support.

Step templates may contain Jinja2 syntax.  Template variables:

- the current step's own inputs, at top level
- ``inputs``    : dict[str, dict]  -- inputs of every step, by step id
- ``responses`` : dict[str, str]   -- content of every recorded response, by step id
- ``step``      : the step definition
- ``date``      : current date (YYYY-MM-DD)

Example template::

    Write a spec for {{ feature }}.
    {% if responses.research %}Use these findings: {{ responses.research }}{% endif %}
"""

from __future__ import annotations

from collections.abc import Mapping
from datetime import UTC, datetime
from typing import Any

import jinja2

from speckit.orchestrator.models.pipeline import PipelineStepDefinition, StepResult


def render_step_prompt(
    step: PipelineStepDefinition,
    *,
    inputs: Mapping[str, Mapping[str, Any]],
    responses: Mapping[str, StepResult | None],
    extra_vars: dict[str, object] | None = None,
) -> str:
    """Render ``step.prompt.template``.

    Templates without Jinja2 syntax are returned unchanged.  Undefined
    variables render as empty strings.
    """
    raw = step.prompt.template
    if "{{" not in raw and "{%" not in raw:
        return raw

    template_vars: dict[str, object] = dict(inputs.get(step.id, {}))
    template_vars.update(
        {
            "inputs": {step_id: dict(values) for step_id, values in inputs.items()},
            "responses": {step_id: result.content for step_id, result in responses.items() if result is not None},
            "step": step,
            "date": datetime.now(tz=UTC).strftime("%Y-%m-%d"),
        }
    )
    if extra_vars:
        template_vars.update(extra_vars)

    env = jinja2.Environment(autoescape=False)  # noqa: S701
    return env.from_string(raw).render(**template_vars)


def missing_inputs(step: PipelineStepDefinition, step_inputs: Mapping[str, Any]) -> list[str]:
    """Required inputs of *step* that are absent or ``None``."""
    return [name for name in step.prompt.required_inputs if step_inputs.get(name) is None]
