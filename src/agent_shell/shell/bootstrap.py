"""
Shared startup routine for every bot.

The bootstrap checks the credential before anything is constructed, builds
the agent, initializes it and hands it to an interaction driver. Startup and
run failures are fatal and turn into exit status 1.

Example:
    >>> from agent_shell.shell.bootstrap import run_shell
    >>> from agent_shell.shell.drivers import TimedDriver
    >>>
    >>> run_shell(build_greeting_agent, TimedDriver(60, verbose=True))
"""

import asyncio
import sys
from typing import Callable, NoReturn, Optional

from agent_shell.config import MissingCredentialError, Settings, get_settings
from agent_shell.framework.protocols import AgentRuntime
from agent_shell.shell.drivers import InteractionDriver
from agent_shell.utils.logger import get_logger, setup_logging

logger = get_logger(__name__)

# Builds the agent from the checked credential
AgentFactory = Callable[[str, Settings], AgentRuntime]

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_INTERRUPTED = 130


async def bootstrap(
    build_agent: AgentFactory,
    driver: InteractionDriver,
    settings: Settings,
    output: Callable[[str], None] = print,
) -> int:
    """
    Check the credential, build and initialize the agent, then drive it.

    Args:
        build_agent: Called with the credential and settings once the
            credential has been checked.
        driver: Interaction strategy run after a successful init().
        settings: Loaded settings.
        output: Line writer for user-facing status lines.

    Returns:
        The driver's exit status, or 1 on any startup or run failure.
    """
    try:
        api_key = settings.require_api_key()
    except MissingCredentialError as e:
        logger.error(f"Startup aborted: {e}")
        output(f"Error: {e}")
        return EXIT_FAILURE

    try:
        agent = build_agent(api_key, settings)

        output("Initializing agent...")
        await agent.init()
        output("Agent initialized successfully")

        return await driver.drive(agent)
    except Exception as e:
        logger.error(f"Error running agent: {e}", exc_info=True)
        output(f"Error running agent: {e}")
        return EXIT_FAILURE


def run_shell(
    build_agent: AgentFactory,
    driver: InteractionDriver,
    settings: Optional[Settings] = None,
) -> NoReturn:
    """
    Process entry point: configure logging, run the bootstrap, exit.

    Raises:
        SystemExit: Always, with the bootstrap's exit status.
    """
    settings = settings or get_settings()
    setup_logging(settings.log_level, settings=settings)

    try:
        exit_code = asyncio.run(bootstrap(build_agent, driver, settings))
    except KeyboardInterrupt:
        print("Interrupted")
        exit_code = EXIT_INTERRUPTED

    sys.exit(exit_code)
