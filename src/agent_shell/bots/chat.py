"""
Chat bot: replies to whatever is typed at the prompt.

Each line typed is handed to the chat worker as a task; type ``exit`` to
quit. Run with ``chat-bot`` (or ``python examples/02_chat_bot.py``).
"""

from typing import Any, Dict, Optional

from agent_shell.config import Settings, get_settings
from agent_shell.framework.agent import GameAgent
from agent_shell.framework.factory import AgentBuilder
from agent_shell.framework.functions import Argument, FunctionResult, GameFunction
from agent_shell.framework.worker import GameWorker
from agent_shell.shell.bootstrap import run_shell
from agent_shell.shell.drivers import PromptDriver
from agent_shell.utils.logger import AgentLogger, create_agent_log_sink

AGENT_NAME = "Chat Bot"
WORKER_ID = "chat_worker"
TASK_TEMPLATE = 'Respond to the user\'s message: "{message}"'


async def reply(args: Dict[str, Any], logger: AgentLogger) -> FunctionResult:
    try:
        print(f"Bot: {args['message']}")
        return FunctionResult.done("Reply sent successfully")
    except Exception as e:
        return FunctionResult.failed(f"Failed to send reply: {e}")


reply_function = GameFunction(
    name="reply",
    description="Sends a reply message to the user",
    args=[Argument(name="message", type="string", description="The reply to send")],
    executable=reply,
)


async def get_environment() -> Dict[str, Any]:
    return {"maxReplyLength": 280}


async def get_agent_state() -> Dict[str, Any]:
    return {"conversationCount": 0, "lastMessage": None}


def create_chat_worker() -> GameWorker:
    return GameWorker(
        id=WORKER_ID,
        name="Chat Worker",
        description="A worker that replies to user messages",
        functions=[reply_function],
        get_environment=get_environment,
    )


def build_chat_agent(api_key: str, settings: Optional[Settings] = None) -> GameAgent:
    builder = (
        AgentBuilder()
        .with_credential(api_key)
        .with_identity(
            name=AGENT_NAME,
            goal="Hold a friendly conversation with the user",
            description="A friendly assistant that answers every message with one short reply",
        )
        .with_state(get_agent_state)
        .with_workers(create_chat_worker())
        .with_logger(create_agent_log_sink(AGENT_NAME))
    )
    if settings is not None:
        builder.with_settings(settings)
    return builder.build()


def create_prompt_driver(settings: Settings) -> PromptDriver:
    return PromptDriver(
        worker_id=WORKER_ID,
        task_template=TASK_TEMPLATE,
        exit_command=settings.driver.exit_command,
        prompt=settings.driver.prompt,
        greeting="Chat Bot is ready. Say something!",
    )


def main() -> None:
    settings = get_settings()
    run_shell(build_chat_agent, create_prompt_driver(settings), settings)


if __name__ == "__main__":
    main()
