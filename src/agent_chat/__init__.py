"""
agent-chat

Resilient chatbot backend: an LLM agent behind a circuit breaker,
exponential backoff retries and a fixed-window rate limiter.
"""

__version__ = "1.0.0"
