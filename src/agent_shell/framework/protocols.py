"""
Structural interfaces the interaction drivers depend on.

Drivers accept any object with these capabilities, so the bundled GameAgent
can be swapped for another agent framework without touching the shell.
"""

from typing import Any, Optional, Protocol, runtime_checkable

from agent_shell.utils.logger import AgentLogger


@runtime_checkable
class TaskRunner(Protocol):
    """Something that accepts free-text tasks (a worker)."""

    id: str

    async def run_task(self, task: str) -> Any: ...


@runtime_checkable
class AgentRuntime(Protocol):
    """The capability set {init, run, set_logger, get_worker_by_id}."""

    name: str

    async def init(self) -> None: ...

    async def run(
        self,
        interval_seconds: float,
        verbose: bool = False,
        max_steps: Optional[int] = None,
    ) -> None: ...

    def set_logger(self, sink: Optional[AgentLogger]) -> None: ...

    def get_worker_by_id(self, worker_id: str) -> TaskRunner: ...
