"""Role-play tutor backend.

Conversation-turn orchestration, pronunciation verdicts and thin proxies to
the speech and LLM providers used by the mobile practice app.
"""
