"""
Crew-style task execution.

Describes an agent by role, goal and backstory, and runs a task through
it with the outputs of earlier tasks passed along as context.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional

from mcp_ai_agent.models.base import Usage


@dataclass
class CrewStyleAgent:
    name: str
    goal: str
    backstory: str
    agent: Any
    model: Any = None


@dataclass
class CrewTask:
    description: str
    expected_output: str


@dataclass
class TaskResult:
    text: Optional[str]
    object: Any
    text_generation_result: Any
    object_generation_result: Any
    usage: Usage


def crew_style_prompt(
    agent: CrewStyleAgent,
    task: CrewTask,
    previous_tasks: Optional[Dict[str, str]] = None,
) -> str:
    sections = [
        f"<role>\n{agent.name}.\n</role>",
        f"<backstory>\n{agent.backstory}\n</backstory>",
    ]
    if previous_tasks:
        previous = "\n".join(f"<{key}>{value}</{key}>" for key, value in previous_tasks.items())
        sections.append(f"<previous_tasks>\n{previous}\n</previous_tasks>")
    sections += [
        f"<goal>\n{agent.goal}\n</goal>",
        f"<current_task>\n{task.description}\n</current_task>",
        f"<expected_output>\n{task.expected_output}\n</expected_output>",
    ]
    return "\n\n".join(sections)


async def execute_task(
    agent: CrewStyleAgent,
    task: CrewTask,
    previous_tasks: Optional[Dict[str, str]] = None,
    schema: Any = None,
) -> TaskResult:
    """Run `task` on the agent, returning an object when `schema` is given and text otherwise."""
    prompt = crew_style_prompt(agent, task, previous_tasks)
    if schema is not None:
        response = await agent.agent.generate_object(schema=schema, prompt=prompt, model=agent.model)
        return TaskResult(
            text=None,
            object=response.object,
            text_generation_result=response.text_generation_result,
            object_generation_result=response.object_generation_result,
            usage=response.usage,
        )

    response = await agent.agent.generate_response(prompt=prompt, model=agent.model)
    return TaskResult(
        text=response.text,
        object=None,
        text_generation_result=response,
        object_generation_result=None,
        usage=response.usage,
    )
