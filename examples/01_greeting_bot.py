"""
Example 1: Greeting Bot

Runs an agent that decides on its own, once a minute, whether to send a
greeting. Requires GAME_API_KEY in the environment or a .env file.
"""

from agent_shell.bots.greeting import main

if __name__ == "__main__":
    main()
