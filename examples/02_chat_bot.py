"""
Example 2: Chat Bot

Forwards every line typed at the prompt to the chat worker as a task.
Type 'exit' to quit. Requires GAME_API_KEY in the environment or a .env file.
"""

from agent_shell.bots.chat import main

if __name__ == "__main__":
    main()
