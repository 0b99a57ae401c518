"""
Planners decide which function an agent executes next.

The agent hands a PlanningContext (persona, goal, state snapshot, worker
environments and recent actions) to a planner and gets a Decision back:
either call one function with arguments, or do nothing. LLMPlanner asks a
language model through the LLM adapter and expects a JSON reply.
"""

import json
import re
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, List, Literal, Optional

from agent_shell.framework.history import ActionRecord
from agent_shell.llm.base import BaseLLMProvider
from agent_shell.utils.logger import get_logger

logger = get_logger(__name__)


class PlannerAuthenticationError(RuntimeError):
    """Raised when the planner's backing service rejects the credential."""


@dataclass
class WorkerView:
    """Snapshot of one worker as the planner sees it."""

    id: str
    name: str
    description: str
    environment: Dict[str, Any]
    functions: List[Dict[str, Any]]


@dataclass
class PlanningContext:
    """Everything a planner may consult for one decision."""

    agent_name: str
    goal: str
    description: str
    state: Dict[str, Any]
    workers: List[WorkerView]
    history: List[ActionRecord] = field(default_factory=list)
    task: Optional[str] = None


@dataclass
class Decision:
    """
    A planner's choice for one step.

    Attributes:
        type: "call" to execute a function, "done" when nothing is left to do.
        worker_id: Worker owning the function (call only).
        function_name: Function to execute (call only).
        args: Arguments for the function (call only).
        reasoning: Free-text justification reported in verbose logs.
    """

    type: Literal["call", "done"]
    worker_id: Optional[str] = None
    function_name: Optional[str] = None
    args: Dict[str, Any] = field(default_factory=dict)
    reasoning: str = ""

    @classmethod
    def call(
        cls,
        worker_id: str,
        function_name: str,
        args: Optional[Dict[str, Any]] = None,
        reasoning: str = "",
    ) -> "Decision":
        return cls("call", worker_id, function_name, dict(args or {}), reasoning)

    @classmethod
    def done(cls, reasoning: str = "") -> "Decision":
        return cls("done", reasoning=reasoning)

    @property
    def is_call(self) -> bool:
        return self.type == "call"

    def __str__(self) -> str:
        if not self.is_call:
            return f"done ({self.reasoning})" if self.reasoning else "done"
        args = json.dumps(self.args, ensure_ascii=False, default=str)
        return f"call {self.worker_id}.{self.function_name}({args})"


class BasePlanner(ABC):
    """
    Interface between the agent and whatever picks its actions.

    Example:
        >>> class AlwaysGreet(BasePlanner):
        ...     async def plan(self, context):
        ...         return Decision.call("greeting_worker", "greet", {"message": "Hi"})
    """

    async def authenticate(self) -> None:
        """
        Verify access to the planner's backing service.

        Raises:
            PlannerAuthenticationError: If access is refused.
        """

    @abstractmethod
    async def plan(self, context: PlanningContext) -> Decision:
        """Return the next decision for context."""


class LLMPlanner(BasePlanner):
    """
    Planner backed by a language model.

    Example:
        >>> from agent_shell.llm.adapter import LLMConfig, UniversalLLMAdapter
        >>> planner = LLMPlanner(UniversalLLMAdapter(LLMConfig(model="gpt-4o-mini")))
        >>> decision = await planner.plan(context)
    """

    def __init__(self, llm: BaseLLMProvider, verify_credentials: bool = True):
        self.llm = llm
        self.verify_credentials = verify_credentials

    async def authenticate(self) -> None:
        if not self.verify_credentials:
            return

        if not await self.llm.check_credentials():
            raise PlannerAuthenticationError(
                f"Credential rejected for model {self.llm.get_model_info()['name']}"
            )

    async def plan(self, context: PlanningContext) -> Decision:
        messages = [
            {"role": "system", "content": self._create_system_message(context)},
            {"role": "user", "content": self._create_context_message(context)},
        ]
        response = await self.llm.acompletion(messages)
        decision = self._parse_response(response["content"], context)

        logger.debug(
            "Planner decision",
            extra={"decision": str(decision), "agent": context.agent_name},
        )
        return decision

    def _create_system_message(self, context: PlanningContext) -> str:
        return f"""You are {context.agent_name}. {context.description}

Your goal: {context.goal}

You act by calling functions that belong to workers. Reply with a single JSON object and nothing else:
- To call a function: {{"worker": "<worker id>", "function": "<function name>", "args": {{"<argument name>": <value>}}, "reasoning": "<why>"}}
- When nothing needs to be done: {{"done": true, "reasoning": "<why>"}}

Only call functions listed by the user message and supply every required argument with its declared type.
"""

    def _create_context_message(self, context: PlanningContext) -> str:
        lines = [
            "Agent state:",
            json.dumps(context.state, ensure_ascii=False, default=str),
            "",
            "Workers:",
        ]

        for worker in context.workers:
            lines.append(f"- {worker.id} ({worker.name}): {worker.description}")
            lines.append(
                f"  Environment: {json.dumps(worker.environment, ensure_ascii=False, default=str)}"
            )
            lines.append("  Functions:")
            for function in worker.functions:
                lines.append(f"    - {function['name']}: {function['description']}")
                for arg in function["args"]:
                    optional = ", optional" if arg.get("optional") else ""
                    lines.append(
                        f"        {arg['name']} ({arg['type']}{optional}): {arg['description']}"
                    )

        lines.append("")
        lines.append("Recent actions:")
        if context.history:
            lines.extend(f"- {record.describe()}" for record in context.history)
        else:
            lines.append("None")

        if context.task is not None:
            lines.append("")
            lines.append(f"Task: {context.task}")
            lines.append("Reply with done once the task is complete.")

        return "\n".join(lines)

    def _parse_response(self, response: str, context: PlanningContext) -> Decision:
        """
        Turn the model's reply into a Decision.

        Accepts bare JSON, JSON inside a code fence, or JSON surrounded by
        prose. Anything unparseable counts as a done decision.
        """
        data = self._extract_json(response)
        if data is None:
            logger.warning(
                "Planner reply is not JSON, treating as done",
                extra={"reply": response[:200]},
            )
            return Decision.done(response.strip())

        reasoning = str(data.get("reasoning", ""))

        if data.get("done"):
            return Decision.done(reasoning)

        function_name = data.get("function")
        if not function_name:
            return Decision.done(reasoning or "No function chosen")

        worker_id = data.get("worker")
        if not worker_id and len(context.workers) == 1:
            worker_id = context.workers[0].id

        args = data.get("args")
        if not isinstance(args, dict):
            args = {}

        return Decision.call(str(worker_id or ""), str(function_name), args, reasoning)

    def _extract_json(self, response: str) -> Optional[Dict[str, Any]]:
        candidates = [response.strip()]

        fenced = re.search(r"```(?:json)?\s*(\{.*?\})\s*```", response, re.DOTALL)
        if fenced:
            candidates.append(fenced.group(1))

        braces = re.search(r"\{.*\}", response, re.DOTALL)
        if braces:
            candidates.append(braces.group(0))

        for candidate in candidates:
            try:
                data = json.loads(candidate)
            except json.JSONDecodeError:
                continue
            if isinstance(data, dict):
                return data

        return None
