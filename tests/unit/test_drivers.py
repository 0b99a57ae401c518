"""
Unit tests for the interaction drivers.

Input is scripted and output captured, so the tests can assert the exact
interleaving of prompts and tasks.
"""

import asyncio
import threading
from typing import List

import pytest

from agent_shell.framework.planner import Decision
from agent_shell.framework.protocols import AgentRuntime, TaskRunner
from agent_shell.shell.drivers import PromptDriver, PromptState, TimedDriver
from agent_shell.utils.logger import get_task_id


class FakeWorker:
    def __init__(self, events: List[str], fail_on: str = None):
        self.id = "chat_worker"
        self.events = events
        self.fail_on = fail_on
        self.task_ids: List[str] = []

    async def run_task(self, task: str):
        self.task_ids.append(get_task_id())
        self.events.append(f"task:{task}")
        if self.fail_on is not None and self.fail_on in task:
            raise RuntimeError("model unavailable")
        self.events.append("settled")


class FakeAgent:
    def __init__(self, worker: FakeWorker):
        self.name = "Fake"
        self.worker = worker
        self.run_calls = []

    async def init(self):
        pass

    async def run(self, interval_seconds, verbose=False, max_steps=None):
        self.run_calls.append((interval_seconds, verbose, max_steps))

    def set_logger(self, sink):
        pass

    def get_worker_by_id(self, worker_id):
        if worker_id != self.worker.id:
            raise KeyError(worker_id)
        return self.worker


class ScriptedInput:
    """input() replacement reading from a list; raises EOFError when empty."""

    def __init__(self, lines: List[str], events: List[str]):
        self.lines = list(lines)
        self.events = events

    def __call__(self, prompt: str) -> str:
        self.events.append(f"prompt:{prompt}")
        if not self.lines:
            raise EOFError
        return self.lines.pop(0)


@pytest.fixture
def events() -> List[str]:
    return []


def make_driver(lines, events, **kwargs) -> PromptDriver:
    return PromptDriver(
        worker_id="chat_worker",
        input_fn=ScriptedInput(lines, events),
        output=lambda line: events.append(f"out:{line}"),
        **kwargs,
    )


@pytest.mark.unit
class TestTimedDriver:
    """Test cases for the timed driver."""

    async def test_hands_control_to_agent_run(self, events):
        agent = FakeAgent(FakeWorker(events))
        output: List[str] = []

        exit_code = await TimedDriver(60, verbose=True, output=output.append).drive(agent)

        assert exit_code == 0
        assert output == ["Starting agent..."]
        assert agent.run_calls == [(60, True, None)]

    def test_non_positive_interval_rejected(self):
        with pytest.raises(ValueError, match="positive"):
            TimedDriver(0)


@pytest.mark.unit
class TestPromptDriver:
    """Test cases for the prompt loop."""

    def test_fake_agent_satisfies_protocols(self, events):
        worker = FakeWorker(events)

        assert isinstance(worker, TaskRunner)
        assert isinstance(FakeAgent(worker), AgentRuntime)

    @pytest.mark.parametrize("line", ["exit", "EXIT", "Exit", "  exit  "])
    def test_exit_matching(self, line, events):
        assert make_driver([], events).is_exit(line)

    @pytest.mark.parametrize("line", ["", "exit now", "quit"])
    def test_non_exit_lines(self, line, events):
        assert not make_driver([], events).is_exit(line)

    async def test_tasks_run_one_at_a_time(self, events):
        worker = FakeWorker(events)
        driver = make_driver(["hello", "how are you", "exit"], events, prompt="You: ")

        exit_code = await driver.drive(FakeAgent(worker))

        assert exit_code == 0
        assert events == [
            "out:Type 'exit' to quit.",
            "prompt:You: ",
            "task:hello",
            "settled",
            "prompt:You: ",
            "task:how are you",
            "settled",
            "prompt:You: ",
            "out:Goodbye!",
        ]
        assert driver.state is PromptState.TERMINATED

    async def test_exit_in_any_case_stops_without_task(self, events):
        driver = make_driver(["ExIt"], events)

        await driver.drive(FakeAgent(FakeWorker(events)))

        assert not any(e.startswith("task:") for e in events)

    async def test_empty_line_is_forwarded(self, events):
        driver = make_driver(["", "exit"], events)

        await driver.drive(FakeAgent(FakeWorker(events)))

        assert "task:" in events

    async def test_template_wraps_message(self, events):
        driver = make_driver(
            ["hi there", "exit"],
            events,
            task_template='Respond to the user\'s message: "{message}"',
        )

        await driver.drive(FakeAgent(FakeWorker(events)))

        assert "task:Respond to the user's message: \"hi there\"" in events

    async def test_task_error_reported_and_loop_continues(self, events):
        worker = FakeWorker(events, fail_on="boom")
        driver = make_driver(["boom", "hello", "exit"], events)

        exit_code = await driver.drive(FakeAgent(worker))

        assert exit_code == 0
        assert "out:Error processing message: model unavailable" in events
        assert "task:hello" in events

    async def test_end_of_input_exits(self, events):
        driver = make_driver(["hello"], events)

        exit_code = await driver.drive(FakeAgent(FakeWorker(events)))

        assert exit_code == 0
        assert events[-1] == "out:Goodbye!"

    async def test_greeting_and_custom_exit_command(self, events):
        driver = make_driver(["quit"], events, greeting="Ready!", exit_command="Quit")

        await driver.drive(FakeAgent(FakeWorker(events)))

        assert events[:2] == ["out:Ready!", "out:Type 'quit' to quit."]

    async def test_each_task_gets_its_own_task_id(self, events):
        worker = FakeWorker(events)
        driver = make_driver(["a", "b", "exit"], events)

        await driver.drive(FakeAgent(worker))

        assert len(set(worker.task_ids)) == 2
        assert None not in worker.task_ids
        assert get_task_id() is None

    async def test_unknown_worker_fails(self, events):
        driver = PromptDriver(worker_id="missing", input_fn=ScriptedInput([], events))

        with pytest.raises(KeyError):
            await driver.drive(FakeAgent(FakeWorker(events)))

    def test_template_without_placeholder_rejected(self):
        with pytest.raises(ValueError, match="placeholder"):
            PromptDriver(worker_id="chat_worker", task_template="Reply")

    async def test_drives_real_agent(self, make_agent, calls, events):
        agent = make_agent([Decision.call("echo_worker", "echo", {"message": "hi back"})])
        await agent.init()
        driver = PromptDriver(
            worker_id="echo_worker",
            input_fn=ScriptedInput(["hi", "exit"], events),
            output=events.append,
        )

        await driver.drive(agent)

        assert calls == [{"message": "hi back"}]
        assert agent.planner.contexts[0].task == "hi"

    async def test_waiting_for_input_keeps_loop_running(self, events):
        """
        Test that a blocked input read does not stall other coroutines.

        The read only returns once a concurrently scheduled coroutine has
        run, which requires the read to happen off the event loop thread.
        """
        typed = threading.Event()
        loop_thread = threading.get_ident()
        reader_threads = []

        def blocking_input(prompt):
            reader_threads.append(threading.get_ident())
            return "exit" if typed.wait(timeout=5) else "timed out"

        async def type_later():
            await asyncio.sleep(0.01)
            typed.set()

        driver = PromptDriver(
            worker_id="chat_worker", input_fn=blocking_input, output=events.append
        )

        typist = asyncio.create_task(type_later())
        exit_code = await driver.drive(FakeAgent(FakeWorker(events)))
        await typist

        assert exit_code == 0
        assert events[-1] == "Goodbye!"
        assert loop_thread not in reader_threads
