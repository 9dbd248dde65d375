"""
Tests for the orchestrator turn driver.
"""

import io

import pytest

from daedalus_agent.agent import Orchestrator, PresetBundle, render_tool_block
from daedalus_agent.errors import ConfigurationError, ToolDispatchError
from daedalus_agent.fragments import TurnInputFragment
from daedalus_agent.gateways import CallParams, ModelResponse
from daedalus_agent.tools import ReplyTool
from daedalus_agent.triggers import DirectTrigger
from daedalus_agent.turn import TurnContext, TurnState, Usage

from conftest import CountingFragment, EchoTool, FakeGateway, tool_response


class InspectingFragment(CountingFragment):
    """Records the orchestrator's turn state while gathering."""

    def __init__(self, key, orchestrator, **kwargs):
        super().__init__(key, "inspect", **kwargs)
        self.orchestrator = orchestrator
        self.observed = []

    async def gather(self, turn: TurnContext) -> str:
        self.observed.append((self.orchestrator.current_turn, self.orchestrator.state))
        return await super().gather(turn)


class ExplodingGateway(FakeGateway):
    async def process(self, *args, **kwargs):
        raise RuntimeError("provider down")


@pytest.mark.asyncio
async def test_execute_without_gateway_is_fatal(settings):
    """Test a turn needs a gateway."""
    orchestrator = Orchestrator(settings=settings)

    with pytest.raises(ConfigurationError):
        await orchestrator.execute("Hello")

    assert orchestrator.current_turn is None


@pytest.mark.asyncio
async def test_execute_end_to_end(settings):
    """Test a turn assembles prompts, calls the gateway and dispatches tools."""
    stream = io.StringIO()
    gateway = FakeGateway(
        response=ModelResponse(
            content="",
            tool_calls=tool_response(("reply", {"replyText": "Hi!"})).tool_calls,
            usage=Usage(prompt_tokens=10, completion_tokens=5, total_tokens=15),
        )
    )
    orchestrator = (
        Orchestrator(settings=settings)
        .add_fragment(CountingFragment("sys", "Be helpful.", section="preamble", order=-1))
        .add_fragment(TurnInputFragment())
        .add_tool(ReplyTool(stream=stream))
        .set_gateway(gateway)
    )

    result = await orchestrator.execute("Hello")

    call = gateway.calls[0]
    assert call["system_prompt"] == "Be helpful.\n\n" + render_tool_block(call["tools"])
    assert call["user_prompt"] == "Hello"
    assert [t.name for t in call["tools"]] == ["reply"]
    assert result.final_text_response is None
    assert [t.key for t in result.executed_tools] == ["reply"]
    assert result.usage.total_tokens == 15
    assert stream.getvalue() == "Hi!\n"


@pytest.mark.asyncio
async def test_execute_returns_text_response(settings, gateway):
    """Test a plain text reply is surfaced."""
    gateway.response = ModelResponse(content="Just text")
    orchestrator = Orchestrator(settings=settings, gateway=gateway)

    result = await orchestrator.execute("Hello")

    assert result.final_text_response == "Just text"
    assert result.executed_tools == []
    assert gateway.calls[0]["user_prompt"] == "Hello"


@pytest.mark.asyncio
async def test_call_params_from_configuration(settings, gateway):
    """Test max output tokens and temperature flow into the call."""
    orchestrator = Orchestrator(
        settings=settings,
        gateway=gateway,
        max_output_tokens=256,
        temperature=0.0,
        call_params=CallParams(top_p=0.9, seed=7),
    )

    await orchestrator.execute("Hello")

    params = gateway.calls[0]["params"]
    assert params.max_output_tokens == 256
    assert params.temperature == 0.0
    assert params.top_p == 0.9
    assert params.seed == 7


def test_defaults(settings):
    """Test the orchestration defaults."""
    orchestrator = Orchestrator(settings=settings)

    assert orchestrator.target_tokens == 10_000
    assert orchestrator.max_output_tokens == 1024
    assert orchestrator.temperature == 0.7
    assert orchestrator.state == TurnState.IDLE


@pytest.mark.asyncio
async def test_dispatch_only_requested_tool(settings, gateway):
    """Test only the tool the model named runs."""
    a, b = EchoTool("A"), EchoTool("B")
    gateway.response = tool_response(("B", {"value": "X"}))
    orchestrator = Orchestrator(settings=settings, gateway=gateway).add_tools([a, b])

    result = await orchestrator.execute("go")

    assert [(t.key, t.args) for t in result.executed_tools] == [("B", {"value": "X"})]
    assert a.calls == []


@pytest.mark.asyncio
async def test_undeclared_tool_fails_turn(settings, gateway):
    """Test a dispatch desync surfaces as an exception."""
    gateway.response = tool_response(("C", {}))
    orchestrator = Orchestrator(settings=settings, gateway=gateway).add_tools(
        [EchoTool("A"), EchoTool("B")]
    )

    with pytest.raises(ToolDispatchError):
        await orchestrator.execute("go")

    assert orchestrator.current_turn is None
    assert orchestrator.state == TurnState.IDLE


@pytest.mark.asyncio
async def test_turn_state_only_set_while_executing(settings, gateway):
    """Test turn-scoped state exists only during execute."""
    orchestrator = Orchestrator(settings=settings, gateway=gateway)
    fragment = InspectingFragment("inspect", orchestrator)
    orchestrator.add_fragment(fragment)

    assert orchestrator.current_turn is None
    await orchestrator.execute("Hello")
    assert orchestrator.current_turn is None

    turn, state = fragment.observed[0]
    assert turn is not None and turn.input == "Hello"
    assert state == TurnState.ASSEMBLING
    assert fragment.seen_turns[0] is turn


@pytest.mark.asyncio
async def test_turn_state_cleared_after_gateway_error(settings):
    """Test turn-scoped state is cleared even when the turn fails."""
    orchestrator = Orchestrator(settings=settings, gateway=ExplodingGateway())

    with pytest.raises(RuntimeError, match="provider down"):
        await orchestrator.execute("Hello")

    assert orchestrator.current_turn is None
    assert orchestrator.state == TurnState.IDLE


@pytest.mark.asyncio
async def test_concurrent_execute_is_rejected(settings, gateway):
    """Test a second turn cannot start while one is in flight."""
    orchestrator = Orchestrator(settings=settings, gateway=gateway)
    errors = []

    class ReentrantFragment(CountingFragment):
        async def gather(self, turn):
            try:
                await orchestrator.execute("nested")
            except ConfigurationError as e:
                errors.append(e)
            return "outer"

    orchestrator.add_fragment(ReentrantFragment("reentrant"))
    await orchestrator.execute("outer")

    assert len(errors) == 1
    assert len(gateway.calls) == 1


@pytest.mark.asyncio
async def test_tool_failure_does_not_abort_turn(settings, gateway):
    """Test a failing tool is annotated and the turn completes."""
    gateway.response = tool_response(("bad", {"value": "1"}), ("good", {"value": "2"}))
    orchestrator = Orchestrator(settings=settings, gateway=gateway).add_tools(
        [EchoTool("bad", fail=True), EchoTool("good")]
    )

    result = await orchestrator.execute("go")

    assert result.executed_tools[0].error == "bad exploded"
    assert result.executed_tools[1].success


@pytest.mark.asyncio
async def test_fragment_ttl_respected_across_turns(settings, gateway, clock):
    """Test cached fragments are reused between turns until expiry."""
    fragment = CountingFragment("cached", "ctx", ttl="10s", clock=clock)
    orchestrator = Orchestrator(settings=settings, gateway=gateway).add_fragment(fragment)

    await orchestrator.execute("one")
    await orchestrator.execute("two")
    assert fragment.gather_count == 1

    clock.advance(10_000)
    await orchestrator.execute("three")
    assert fragment.gather_count == 2

    await orchestrator.execute("four", revalidate=True)
    assert fragment.gather_count == 3


def test_duplicate_registration_replaces(settings):
    """Test re-registering a key replaces the earlier component."""
    first = CountingFragment("same", "first")
    second = CountingFragment("same", "second")
    orchestrator = Orchestrator(settings=settings).add_fragments([first, second])

    assert len(orchestrator.fragments) == 1
    assert orchestrator.fragments.get("same") is second


@pytest.mark.asyncio
async def test_preview_does_not_call_gateway(settings, gateway):
    """Test preview assembles prompts without a model call."""
    orchestrator = Orchestrator(settings=settings, gateway=gateway).add_fragment(
        TurnInputFragment()
    )

    prompt = await orchestrator.preview("Hello")

    assert prompt.user_prompt == "Hello"
    assert gateway.calls == []


def test_load_bundle(settings, gateway):
    """Test a preset bundle registers all its components."""
    bundle = PresetBundle(
        fragments=(TurnInputFragment(),),
        tools=(ReplyTool(),),
        triggers=(DirectTrigger,),
        gateway=gateway,
    )

    orchestrator = Orchestrator(settings=settings).load(bundle)

    assert orchestrator.fragments.keys() == ["turn_input"]
    assert orchestrator.tools.list_tools() == ["reply"]
    assert orchestrator.gateway is gateway
    trigger = orchestrator.triggers.get("direct")
    assert isinstance(trigger, DirectTrigger)
    assert trigger.orchestrator is orchestrator


def test_trigger_for_other_orchestrator_rejected(settings):
    """Test a trigger can only be added to the orchestrator it was built for."""
    first = Orchestrator(name="first", settings=settings)
    second = Orchestrator(name="second", settings=settings)

    with pytest.raises(ConfigurationError):
        second.add_trigger(DirectTrigger(first))


@pytest.mark.asyncio
async def test_explicit_zero_budget_is_kept(settings, gateway):
    """Test an explicit zero target is honored rather than replaced by the default."""
    orchestrator = Orchestrator(
        settings=settings, gateway=gateway, target_tokens=0, max_output_tokens=0
    ).add_fragment(TurnInputFragment())

    assert orchestrator.target_tokens == 0
    assert orchestrator.max_output_tokens == 0

    prompt = await orchestrator.preview("Hello")

    assert prompt.budget == 0
    assert prompt.chunks == []
    assert prompt.omitted == ["turn_input"]
    assert prompt.user_prompt == "Hello"
