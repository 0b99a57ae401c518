"""
Integration tests for the bots against a real LLM.

These tests make real API calls through LiteLLM. They are skipped unless
GAME_API_KEY holds a key accepted by the configured LLM_MODEL provider.
"""

import os

import pytest

from agent_shell.bots import chat, greeting
from agent_shell.config import Settings
from agent_shell.framework.functions import FunctionResultStatus

HAS_API_KEY = bool(os.getenv("GAME_API_KEY", "").strip())


@pytest.fixture
def settings() -> Settings:
    return Settings()


@pytest.mark.integration
@pytest.mark.requires_api_key
@pytest.mark.skipif(not HAS_API_KEY, reason="GAME_API_KEY not available")
@pytest.mark.timeout(120)
class TestRealAgents:
    """End-to-end runs of the bundled bots."""

    async def test_greeting_bot_greets(self, settings, capsys):
        agent = greeting.build_greeting_agent(settings.require_api_key(), settings)
        await agent.init()

        await agent.run(1, verbose=True, max_steps=1)

        records = agent.history.get_records()
        assert len(records) <= 1
        if records:
            assert records[0].function_name == "greet"
            assert records[0].result.status is FunctionResultStatus.DONE
            assert "Greeting:" in capsys.readouterr().out

    async def test_chat_bot_replies_to_task(self, settings, capsys):
        agent = chat.build_chat_agent(settings.require_api_key(), settings)
        await agent.init()
        worker = agent.get_worker_by_id(chat.WORKER_ID)

        records = await worker.run_task(chat.TASK_TEMPLATE.format(message="Hello!"))

        assert 1 <= len(records) <= settings.driver.max_task_steps
        assert records[0].function_name == "reply"
        assert "Bot:" in capsys.readouterr().out
