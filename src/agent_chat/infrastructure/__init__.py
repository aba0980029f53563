"""
Infrastructure layer

Configuration, logging, the Anthropic client adapter and rate limiting.
"""
