"""
AgentHandle unit tests

Content flattening, breaker routing and per-call deadlines.
"""

from types import SimpleNamespace

import pytest

from agent_chat.application.agent.agent_handle import AgentHandle, flatten_content
from agent_chat.application.resilience import CircuitBreaker
from agent_chat.domain.exceptions import AgentTimeoutError, CircuitOpenError
from agent_chat.domain.models import AgentConfig, CircuitState, ToolCall

from mocks.agent_fakes import FakeClock, FakeRemoteAgent


class TestFlattenContent:
    """flatten_content"""

    def test_string_unchanged(self):
        assert flatten_content("plain text") == "plain text"

    def test_text_parts_concatenated_in_order(self):
        parts = [{"type": "text", "text": "a"}, {"type": "text", "text": "b"}]

        assert flatten_content(parts) == "ab"

    def test_non_text_parts_ignored(self):
        parts = [
            {"type": "text", "text": "Hi "},
            {"type": "tool_use", "id": "t1", "name": "greet", "input": {"name": "Ada"}},
            {"type": "text", "text": "Ada"},
        ]

        assert flatten_content(parts) == "Hi Ada"

    def test_sdk_block_objects(self):
        parts = [
            SimpleNamespace(type="text", text="from "),
            SimpleNamespace(type="tool_use", id="t1", name="greet", input={}),
            SimpleNamespace(type="text", text="sdk"),
        ]

        assert flatten_content(parts) == "from sdk"

    def test_none_is_empty(self):
        assert flatten_content(None) == ""
        assert flatten_content([]) == ""

    @pytest.mark.parametrize(
        "content",
        ["x", [{"type": "text", "text": "a"}, {"type": "image"}], None, []],
    )
    def test_idempotent(self, content):
        once = flatten_content(content)

        assert flatten_content(once) == once


def _handle(agent: FakeRemoteAgent, breaker=None, run_timeout=None) -> AgentHandle:
    return AgentHandle(
        agent=agent,
        circuit_breaker=breaker or CircuitBreaker(name="test", clock=FakeClock()),
        config=agent.config,
        run_timeout=run_timeout,
    )


class TestAgentHandleRun:
    """AgentHandle.run"""

    @pytest.mark.asyncio
    async def test_run_returns_flattened_strings(self, default_tools):
        # Given: an agent replying with two text parts and a tool call
        agent = FakeRemoteAgent(
            AgentConfig(model="m", tools=default_tools),
            content=[{"type": "text", "text": "Hello, "}, {"type": "text", "text": "Ada!"}],
            tool_calls=[ToolCall(id="t1", name="greet", arguments={"name": "Ada"})],
        )

        # When
        response = await _handle(agent).run("I'm Ada")

        # Then
        assert response.success is True
        assert response.data.message.content == "Hello, Ada!"
        assert response.data.result == "Hello, Ada!"
        assert response.data.message.role == "assistant"
        assert [c.name for c in response.data.message.tool_calls] == ["greet"]
        assert agent.messages == ["I'm Ada"]

    @pytest.mark.asyncio
    async def test_run_failures_count_toward_breaker(self, default_tools):
        breaker = CircuitBreaker(name="test", failure_threshold=2, clock=FakeClock())
        agent = FakeRemoteAgent(AgentConfig(model="m", tools=default_tools), error=RuntimeError("down"))
        handle = _handle(agent, breaker)

        for _ in range(2):
            with pytest.raises(RuntimeError):
                await handle.run("hi")

        assert breaker.state.state == CircuitState.OPEN
        with pytest.raises(CircuitOpenError):
            await handle.run("hi")
        assert len(agent.messages) == 2

    @pytest.mark.asyncio
    async def test_deadline_raises_timeout_error(self, default_tools):
        breaker = CircuitBreaker(name="test", clock=FakeClock())
        agent = FakeRemoteAgent(AgentConfig(model="m", tools=default_tools), delay=1.0)
        handle = _handle(agent, breaker, run_timeout=0.01)

        with pytest.raises(AgentTimeoutError) as exc_info:
            await handle.run("hi")

        assert exc_info.value.status_code == 504
        assert breaker.state.failure_count == 1

    def test_tools_exposed(self, default_tools):
        agent = FakeRemoteAgent(AgentConfig(model="m", tools=default_tools))

        assert [t.name for t in _handle(agent).tools] == ["greet"]
