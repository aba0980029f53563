"""
Application layer

Resilience primitives, agent lifecycle, chat use case and analytics.
"""
