"""
Webhook trigger - FastAPI application that starts a turn per request.

Manages the lifecycle of:
- The other triggers registered on the orchestrator (e.g. schedules)
- Turn execution, queued behind the orchestrator turn lock
"""

from contextlib import asynccontextmanager
from typing import TYPE_CHECKING, Any, AsyncGenerator

from fastapi import FastAPI, HTTPException
from fastapi.encoders import jsonable_encoder
from pydantic import BaseModel

from ..errors import ConfigurationError, ToolDispatchError
from .base import Trigger

if TYPE_CHECKING:
    from ..agent.core import Orchestrator


class TurnRequest(BaseModel):
    input: Any = None


class ExecutedToolModel(BaseModel):
    key: str
    args: dict[str, Any]
    result: Any = None
    error: str | None = None


class UsageModel(BaseModel):
    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_tokens: int = 0


class TurnResponse(BaseModel):
    final_text_response: str | None = None
    executed_tools: list[ExecutedToolModel] = []
    usage: UsageModel | None = None


class WebhookTrigger(Trigger):
    """Starts a turn per HTTP request.

    Requests that arrive during a turn wait for it, whichever trigger
    started it.
    """

    def __init__(self, orchestrator: "Orchestrator", key: str = "webhook"):
        super().__init__(key, orchestrator)


def create_webhook_app(orchestrator: "Orchestrator") -> FastAPI:
    """Create the FastAPI application exposing ``orchestrator`` over HTTP."""
    trigger = WebhookTrigger(orchestrator)
    orchestrator.add_trigger(trigger)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        for other in orchestrator.triggers:
            await other.start()
        yield
        for other in orchestrator.triggers:
            await other.stop()

    app = FastAPI(
        title=orchestrator.settings.app_name,
        description="Single-turn LLM agent orchestration",
        version="0.1.0",
        lifespan=lifespan,
    )

    @app.get("/health")
    async def health() -> dict[str, Any]:
        gateway = orchestrator.gateway
        return {
            "status": "ok",
            "agent": orchestrator.name,
            "gateway": gateway.key if gateway else None,
            "fragments": orchestrator.fragments.keys(),
            "tools": orchestrator.tools.list_tools(),
        }

    @app.post("/turn", response_model=TurnResponse)
    async def run_turn(request: TurnRequest) -> TurnResponse:
        try:
            result = await trigger.fire(request.input)
        except ConfigurationError as e:
            raise HTTPException(status_code=500, detail=str(e))
        except ToolDispatchError as e:
            raise HTTPException(status_code=502, detail=str(e))
        return TurnResponse(**jsonable_encoder(result.to_dict()))

    return app
