"""
Greeting bot: an agent that sends friendly greetings on a fixed cadence.

Run with ``greeting-bot`` (or ``python examples/01_greeting_bot.py``) after
setting GAME_API_KEY in the environment or a .env file.
"""

from typing import Any, Dict, Optional

from agent_shell.config import Settings, get_settings
from agent_shell.framework.agent import GameAgent
from agent_shell.framework.factory import create_agent
from agent_shell.framework.functions import Argument, FunctionResult, GameFunction
from agent_shell.framework.worker import GameWorker
from agent_shell.shell.bootstrap import run_shell
from agent_shell.shell.drivers import TimedDriver
from agent_shell.utils.logger import AgentLogger

AGENT_NAME = "Greeting Bot"
WORKER_ID = "greeting_worker"


async def greet(args: Dict[str, Any], logger: AgentLogger) -> FunctionResult:
    try:
        print(f"Greeting: {args['message']}")
        return FunctionResult.done("Greeting sent successfully")
    except Exception:
        return FunctionResult.failed("Failed to send greeting")


greet_function = GameFunction(
    name="greet",
    description="Sends a greeting message",
    args=[Argument(name="message", type="string", description="The greeting message")],
    executable=greet,
)


async def get_environment() -> Dict[str, Any]:
    return {"maxGreetings": 5}


async def get_agent_state() -> Dict[str, Any]:
    return {"greetingCount": 0, "lastGreeting": None}


def create_greeting_worker() -> GameWorker:
    return GameWorker(
        id=WORKER_ID,
        name="Greeting Worker",
        description="A worker that sends greetings",
        functions=[greet_function],
        get_environment=get_environment,
    )


def build_greeting_agent(api_key: str, settings: Optional[Settings] = None) -> GameAgent:
    return create_agent(
        api_key,
        name=AGENT_NAME,
        goal="Send friendly greetings",
        description="A bot that sends friendly greetings to users",
        workers=[create_greeting_worker()],
        get_agent_state=get_agent_state,
        settings=settings,
    )


def main() -> None:
    settings = get_settings()
    driver = TimedDriver(settings.driver.tick_interval, verbose=settings.driver.verbose)
    run_shell(build_greeting_agent, driver, settings)


if __name__ == "__main__":
    main()
