"""
Preset bundles: reusable sets of components loaded into an orchestrator.
"""

from dataclasses import dataclass
from typing import TYPE_CHECKING, Callable

from ..fragments.base import ContextFragment
from ..gateways.base import ModelGateway
from ..tools.base import Tool

if TYPE_CHECKING:
    from ..triggers.base import Trigger
    from .core import Orchestrator

    TriggerFactory = Callable[[Orchestrator], Trigger]


@dataclass(frozen=True)
class PresetBundle:
    """An inert collection of fragments, tools, trigger factories and a gateway.

    Triggers need their orchestrator at construction, so a bundle carries
    factories for them rather than instances.
    """

    fragments: tuple[ContextFragment, ...] = ()
    tools: tuple[Tool, ...] = ()
    triggers: tuple["TriggerFactory", ...] = ()
    gateway: ModelGateway | None = None
