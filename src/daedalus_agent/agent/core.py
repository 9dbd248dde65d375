"""
Core orchestrator implementation.

This is the brain of the system. For one turn it:
1. Gathers context fragments and packs them into a token budget
2. Declares the registered tools to the model gateway
3. Calls the gateway once with the assembled prompts
4. Dispatches the tool calls the model asked for, in order
5. Returns a TurnResult to whoever triggered the turn
"""

import asyncio
from typing import TYPE_CHECKING, Any, Iterable

import structlog

from ..config import Settings, get_settings
from ..errors import ConfigurationError
from ..fragments.base import ContextFragment
from ..gateways.base import CallParams, ModelGateway
from ..registry import Registry
from ..tools.base import Tool
from ..tools.registry import ToolRegistry
from ..turn import TurnContext, TurnResult, TurnState
from .bundle import PresetBundle
from .prompt import AssembledPrompt, PromptAssembler

if TYPE_CHECKING:
    from ..triggers.base import Trigger

logger = structlog.get_logger()


class Orchestrator:
    """Owns fragments, tools and a gateway, and drives one turn at a time.

    An instance is not safe for concurrent ``execute`` calls; a second
    call while a turn is in flight raises ConfigurationError. Triggers
    queue on ``turn_lock`` instead, so turns they start never overlap.
    """

    def __init__(
        self,
        name: str = "Agent",
        gateway: ModelGateway | None = None,
        settings: Settings | None = None,
        target_tokens: int | None = None,
        max_output_tokens: int | None = None,
        temperature: float | None = None,
        call_params: CallParams | None = None,
    ):
        self.name = name
        self.settings = settings or get_settings()
        self.logger = logger.bind(agent=name)

        self.fragments: Registry[ContextFragment] = Registry()
        self.tools = ToolRegistry()
        self.triggers: Registry["Trigger"] = Registry()
        self.gateway = gateway

        self.target_tokens = (
            target_tokens if target_tokens is not None else self.settings.target_tokens
        )
        self.max_output_tokens = (
            max_output_tokens
            if max_output_tokens is not None
            else self.settings.max_output_tokens
        )
        self.temperature = (
            temperature if temperature is not None else self.settings.temperature
        )
        # Extra sampling controls; max_output_tokens/temperature above win
        self.call_params = call_params or CallParams()

        self.state = TurnState.IDLE
        self._current_turn: TurnContext | None = None
        self.turn_lock = asyncio.Lock()

    # Registration

    def add_fragment(self, fragment: ContextFragment) -> "Orchestrator":
        """Register a fragment, replacing any fragment with the same key."""
        if self.fragments.put(fragment):
            self.logger.warning("Fragment key already registered, replacing it", key=fragment.key)
        else:
            self.logger.debug("Fragment registered", key=fragment.key)
        return self

    def add_fragments(self, fragments: Iterable[ContextFragment]) -> "Orchestrator":
        for fragment in fragments:
            self.add_fragment(fragment)
        return self

    def remove_fragment(self, key: str) -> ContextFragment | None:
        return self.fragments.remove(key)

    def add_tool(self, tool: Tool) -> "Orchestrator":
        """Register a tool, replacing any tool with the same key."""
        if self.tools.register(tool):
            self.logger.warning("Tool key already registered, replacing it", key=tool.key)
        return self

    def add_tools(self, tools: Iterable[Tool]) -> "Orchestrator":
        for tool in tools:
            self.add_tool(tool)
        return self

    def add_trigger(self, trigger: "Trigger") -> "Orchestrator":
        if trigger.orchestrator is not self:
            raise ConfigurationError(
                f"Trigger '{trigger.key}' was built for a different orchestrator"
            )
        if self.triggers.put(trigger):
            self.logger.warning("Trigger key already registered, replacing it", key=trigger.key)
        return self

    def set_gateway(self, gateway: ModelGateway) -> "Orchestrator":
        if self.gateway is not None and self.gateway is not gateway:
            self.logger.info(
                "Replacing gateway", previous=self.gateway.key, gateway=gateway.key
            )
        self.gateway = gateway
        return self

    def load(self, bundle: PresetBundle) -> "Orchestrator":
        """Register everything a preset bundle carries."""
        self.add_fragments(bundle.fragments)
        self.add_tools(bundle.tools)
        for factory in bundle.triggers:
            self.add_trigger(factory(self))
        if bundle.gateway is not None:
            self.set_gateway(bundle.gateway)
        return self

    # Turn execution

    @property
    def current_turn(self) -> TurnContext | None:
        """The in-flight turn, or None when idle."""
        return self._current_turn

    def build_assembler(self) -> PromptAssembler:
        return PromptAssembler(
            target_tokens=self.target_tokens,
            max_output_tokens=self.max_output_tokens,
            tool_block_budget=self.settings.tool_block_budget,
            include_turn_input=self.settings.include_turn_input,
            turn_input_label=self.settings.turn_input_label,
        )

    def build_call_params(self) -> CallParams:
        params = self.call_params
        return CallParams(
            max_output_tokens=self.max_output_tokens,
            temperature=self.temperature,
            top_p=params.top_p,
            top_k=params.top_k,
            candidate_count=params.candidate_count,
            stop_sequences=params.stop_sequences,
            presence_penalty=params.presence_penalty,
            frequency_penalty=params.frequency_penalty,
            seed=params.seed,
        )

    def _require_gateway(self) -> ModelGateway:
        if self.gateway is None:
            raise ConfigurationError(f"Orchestrator '{self.name}' has no gateway set")
        return self.gateway

    def _warn_if_empty(self) -> None:
        if not len(self.fragments):
            self.logger.warning("No fragments registered")
        if not len(self.tools):
            self.logger.info("No tools registered")

    async def preview(self, turn_input: Any = None) -> AssembledPrompt:
        """Assemble the prompts for ``turn_input`` without calling the model."""
        gateway = self._require_gateway()
        turn = TurnContext(input=turn_input)
        return await self.build_assembler().assemble(
            self.fragments, self.tools.get_declarations(), gateway, turn
        )

    async def execute(self, turn_input: Any = None, revalidate: bool = False) -> TurnResult:
        """Run one turn: assemble prompts, call the gateway, dispatch tools.

        Raises:
            ConfigurationError: no gateway, a turn already in flight, or an
                empty prompt with no turn input.
            ToolDispatchError: the model named a tool that was never declared.
        """
        gateway = self._require_gateway()
        if self._current_turn is not None:
            raise ConfigurationError(
                f"Orchestrator '{self.name}' is already executing turn "
                f"{self._current_turn.turn_id}"
            )

        turn = TurnContext(input=turn_input)
        self._current_turn = turn

        try:
            with structlog.contextvars.bound_contextvars(agent=self.name, turn_id=turn.turn_id):
                self.state = TurnState.ASSEMBLING
                self._warn_if_empty()

                declarations = self.tools.get_declarations()
                prompt = await self.build_assembler().assemble(
                    self.fragments, declarations, gateway, turn, revalidate=revalidate
                )
                params = self.build_call_params()

                self.state = TurnState.AWAITING_GATEWAY
                logger.info(
                    "Calling gateway",
                    gateway=gateway.key,
                    prompt_tokens=prompt.total_tokens,
                    budget=prompt.budget,
                    tools=len(declarations),
                )
                response = await gateway.process(
                    prompt.system_prompt, prompt.user_prompt, declarations, params
                )

                self.state = TurnState.DISPATCHING
                executed = await self.tools.dispatch(response.tool_calls)

                result = TurnResult(
                    final_text_response=response.content or None,
                    executed_tools=executed,
                    usage=response.usage,
                    raw_response=response.raw_response,
                )
                logger.info(
                    "Turn complete",
                    executed_tools=[t.key for t in executed],
                    failed_tools=[t.key for t in executed if not t.success],
                )
                return result
        finally:
            self._current_turn = None
            self.state = TurnState.IDLE
