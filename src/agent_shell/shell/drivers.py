"""
Interaction drivers: what the shell does with an initialized agent.

TimedDriver hands control to the agent's own run loop. PromptDriver reads
lines from the terminal and forwards each as a task to one worker until the
exit command is entered. Both return the process exit status.
"""

import asyncio
import uuid
from abc import ABC, abstractmethod
from enum import Enum
from typing import Callable, Optional

from agent_shell.framework.protocols import AgentRuntime, TaskRunner
from agent_shell.utils.logger import clear_task_id, get_logger, set_task_id

logger = get_logger(__name__)


class InteractionDriver(ABC):
    """Strategy run by the bootstrap once the agent is initialized."""

    @abstractmethod
    async def drive(self, agent: AgentRuntime) -> int:
        """Interact with agent and return the exit status."""


class TimedDriver(InteractionDriver):
    """
    Let the agent act on its own every tick_interval seconds.

    Example:
        >>> exit_code = await TimedDriver(60, verbose=True).drive(agent)
    """

    def __init__(
        self,
        tick_interval: float = 60,
        verbose: bool = True,
        max_steps: Optional[int] = None,
        output: Callable[[str], None] = print,
    ):
        if tick_interval <= 0:
            raise ValueError("tick_interval must be positive")
        self.tick_interval = tick_interval
        self.verbose = verbose
        self.max_steps = max_steps
        self.output = output

    async def drive(self, agent: AgentRuntime) -> int:
        self.output("Starting agent...")
        await agent.run(self.tick_interval, verbose=self.verbose, max_steps=self.max_steps)
        return 0


class PromptState(str, Enum):
    AWAITING_INPUT = "awaiting_input"
    PROCESSING = "processing"
    TERMINATED = "terminated"


class PromptDriver(InteractionDriver):
    """
    Read-eval loop forwarding each line to a worker as a task.

    A line equal to the exit command (case-insensitive, surrounding
    whitespace ignored) ends the loop; so does end of input. Every other
    line, the empty line included, is wrapped in task_template and the
    next prompt is only shown once the task has settled. Task errors are
    reported and the loop continues.

    Example:
        >>> driver = PromptDriver(
        ...     worker_id="chat_worker",
        ...     task_template='Respond to the user\\'s message: "{message}"',
        ... )
        >>> exit_code = await driver.drive(agent)
    """

    def __init__(
        self,
        worker_id: str,
        task_template: str = "{message}",
        exit_command: str = "exit",
        prompt: str = "You: ",
        greeting: Optional[str] = None,
        farewell: str = "Goodbye!",
        input_fn: Callable[[str], str] = input,
        output: Callable[[str], None] = print,
    ):
        if "{message}" not in task_template:
            raise ValueError("task_template must contain a {message} placeholder")

        self.worker_id = worker_id
        self.task_template = task_template
        self.exit_command = exit_command.strip().lower()
        self.prompt = prompt
        self.greeting = greeting
        self.farewell = farewell
        self.input_fn = input_fn
        self.output = output
        self.state = PromptState.AWAITING_INPUT

    def is_exit(self, line: str) -> bool:
        return line.strip().lower() == self.exit_command

    def build_task(self, message: str) -> str:
        return self.task_template.format(message=message)

    async def drive(self, agent: AgentRuntime) -> int:
        worker = agent.get_worker_by_id(self.worker_id)

        if self.greeting:
            self.output(self.greeting)
        self.output(f"Type '{self.exit_command}' to quit.")

        self.state = PromptState.AWAITING_INPUT
        while self.state is not PromptState.TERMINATED:
            try:
                line = await asyncio.to_thread(self.input_fn, self.prompt)
            except EOFError:
                line = self.exit_command

            if self.is_exit(line):
                self.output(self.farewell)
                self.state = PromptState.TERMINATED
                break

            self.state = PromptState.PROCESSING
            await self.handle_user_input(worker, line)
            self.state = PromptState.AWAITING_INPUT

        return 0

    async def handle_user_input(self, worker: TaskRunner, message: str) -> None:
        """Forward one message as a task; report but never raise task errors."""
        set_task_id(uuid.uuid4().hex[:12])
        try:
            task = self.build_task(message)
            logger.debug("Running task", extra={"worker": worker.id, "task": task})
            await worker.run_task(task)
        except Exception as e:
            logger.error(f"Task failed: {e}", extra={"worker": worker.id}, exc_info=True)
            self.output(f"Error processing message: {e}")
        finally:
            clear_task_id()
