"""
Token-budgeted prompt assembly.

Fragments are packed greedily in ascending ``order``. Packing stops at the
first fragment that does not fit: later fragments are never considered,
even if they are smaller. Nothing is ever truncated; each fragment, the
tool block and the turn input are included whole or not at all.
"""

import json
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Iterable

import structlog

from ..errors import ConfigurationError
from ..fragments.base import ContextFragment, FragmentSnapshot, Section
from ..gateways.base import ModelGateway
from ..tools.base import ToolDeclaration
from ..turn import TurnContext

logger = structlog.get_logger()

PART_SEPARATOR = "\n\n"
TOOL_BLOCK_HEADER = "## Available Tools"


class ToolBlockBudget(str, Enum):
    """How the tool declaration block is charged against the budget."""

    SYSTEM = "system"  # counts toward the budget, included only if it fits
    UNBUDGETED = "unbudgeted"  # always appended, never counted


@dataclass
class AssembledPrompt:
    """The prompts for one model call, plus how they were put together."""

    system_prompt: str
    user_prompt: str
    budget: int
    chunks: list[FragmentSnapshot] = field(default_factory=list)
    system_tokens: int = 0
    user_tokens: int = 0
    tool_block_included: bool = False
    turn_input_included: bool = False
    omitted: list[str] = field(default_factory=list)

    @property
    def total_tokens(self) -> int:
        return self.system_tokens + self.user_tokens


def render_tool_block(declarations: Iterable[ToolDeclaration]) -> str:
    """Describe the declared tools as prompt text. Empty if there are none."""
    lines = []
    for decl in declarations:
        lines.append(f"- {decl.name}: {decl.description}")
        if decl.parameters:
            lines.append(f"  Arguments: {json.dumps(decl.parameters)}")
    if not lines:
        return ""
    return TOOL_BLOCK_HEADER + "\n" + "\n".join(lines)


def order_fragments(fragments: Iterable[ContextFragment]) -> list[ContextFragment]:
    """Sort by ``order``; ``sorted`` is stable so ties keep registration order."""
    return sorted(fragments, key=lambda f: f.order)


class PromptAssembler:
    """Builds the (system, user) prompt pair for a turn within a token budget."""

    def __init__(
        self,
        target_tokens: int = 10_000,
        max_output_tokens: int = 1024,
        tool_block_budget: ToolBlockBudget | str = ToolBlockBudget.SYSTEM,
        include_turn_input: bool = False,
        turn_input_label: str = "Human input:",
    ):
        self.target_tokens = target_tokens
        self.max_output_tokens = max_output_tokens
        self.tool_block_budget = ToolBlockBudget(tool_block_budget)
        self.include_turn_input = include_turn_input
        self.turn_input_label = turn_input_label

    def effective_budget(self, gateway: ModelGateway) -> int:
        """Input token ceiling, leaving room for the model's output."""
        return min(
            self.target_tokens,
            gateway.context_window_tokens - self.max_output_tokens,
        )

    async def assemble(
        self,
        fragments: Iterable[ContextFragment],
        tools: list[ToolDeclaration],
        gateway: ModelGateway,
        turn: TurnContext,
        revalidate: bool = False,
    ) -> AssembledPrompt:
        """Gather fragments, pack them into the budget, and add the tool block.

        Raises:
            ConfigurationError: if nothing ends up in either prompt and the
                turn has no input to fall back on.
        """
        budget = self.effective_budget(gateway)
        if budget <= 0:
            logger.warning(
                "Effective prompt budget is not positive",
                target_tokens=self.target_tokens,
                context_window=gateway.context_window_tokens,
                max_output_tokens=self.max_output_tokens,
            )

        system_parts: list[str] = []
        user_parts: list[str] = []
        system_tokens = 0
        user_tokens = 0
        chunks: list[FragmentSnapshot] = []
        omitted: list[str] = []

        ordered = order_fragments(fragments)
        for index, fragment in enumerate(ordered):
            snapshot = await fragment.get_data(revalidate=revalidate, turn=turn)
            tokens = await gateway.tokenize(snapshot.content)

            if system_tokens + user_tokens + tokens > budget:
                omitted.extend(f.key for f in ordered[index:])
                logger.warning(
                    "Fragment exceeds remaining budget, stopping",
                    fragment=fragment.key,
                    fragment_tokens=tokens,
                    used_tokens=system_tokens + user_tokens,
                    budget=budget,
                    omitted=len(ordered) - index,
                )
                break

            if not snapshot.content:
                continue

            chunks.append(replace(snapshot, token_count=tokens))
            if snapshot.section == Section.PREAMBLE:
                system_parts.append(snapshot.content)
                system_tokens += tokens
            else:
                user_parts.append(snapshot.content)
                user_tokens += tokens

        tool_block_included = False
        tool_block = render_tool_block(tools)
        if tool_block:
            if self.tool_block_budget == ToolBlockBudget.UNBUDGETED:
                system_parts.append(tool_block)
                tool_block_included = True
            else:
                tool_tokens = await gateway.tokenize(tool_block)
                if system_tokens + user_tokens + tool_tokens <= budget:
                    system_parts.append(tool_block)
                    system_tokens += tool_tokens
                    tool_block_included = True
                else:
                    omitted.append("tool_block")
                    logger.warning(
                        "Tool block exceeds remaining budget, omitting it",
                        tool_tokens=tool_tokens,
                        used_tokens=system_tokens + user_tokens,
                        budget=budget,
                    )

        turn_input_included = False
        if self.include_turn_input and turn.text:
            labelled = f"{self.turn_input_label}\n{turn.text}"
            input_tokens = await gateway.tokenize(labelled)
            if system_tokens + user_tokens + input_tokens <= budget:
                user_parts.append(labelled)
                user_tokens += input_tokens
                turn_input_included = True
            else:
                omitted.append("turn_input")
                logger.warning(
                    "Turn input exceeds remaining budget, omitting it",
                    input_tokens=input_tokens,
                    used_tokens=system_tokens + user_tokens,
                    budget=budget,
                )

        system_prompt = PART_SEPARATOR.join(system_parts)
        user_prompt = PART_SEPARATOR.join(user_parts)

        if not system_prompt and not user_prompt:
            if turn.input is None:
                raise ConfigurationError(
                    "Assembled prompt is empty and the turn has no input to fall back on"
                )
            logger.info("No fragment content assembled, using raw turn input as the prompt")
            user_prompt = str(turn.input)

        logger.debug(
            "Prompt assembled",
            budget=budget,
            system_tokens=system_tokens,
            user_tokens=user_tokens,
            fragments=len(chunks),
            tool_block=tool_block_included,
        )

        return AssembledPrompt(
            system_prompt=system_prompt,
            user_prompt=user_prompt,
            budget=budget,
            chunks=chunks,
            system_tokens=system_tokens,
            user_tokens=user_tokens,
            tool_block_included=tool_block_included,
            turn_input_included=turn_input_included,
            omitted=omitted,
        )
