"""
Command-line interface for Daedalus-Agent.
"""

import argparse
import asyncio
import logging
import sys

import structlog

from .agent import Orchestrator, PresetBundle
from .config import PROVIDERS, Settings, get_settings
from .errors import ConfigurationError
from .fragments import SystemPrefix, TurnInputFragment
from .gateways import create_gateway
from .tools import ReplyTool
from .triggers import DirectTrigger, ScheduleTrigger

logger = structlog.get_logger()

EXIT_WORDS = {"exit", "quit"}


def configure_logging(level: str = "INFO") -> None:
    """Route structlog through stdlib logging with a console renderer."""
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stderr,
        level=getattr(logging, level.upper(), logging.INFO),
    )
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty()),
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def build_cli_bundle(settings: Settings, provider: str | None = None) -> PresetBundle:
    """The preset used by the chat REPL and the webhook server."""
    return PresetBundle(
        fragments=(
            TurnInputFragment(),
            SystemPrefix(settings.system_prefix),
        ),
        tools=(ReplyTool(),),
        triggers=(DirectTrigger,),
        gateway=create_gateway(settings.get_gateway_config(provider)),
    )


def build_orchestrator(settings: Settings, provider: str | None = None) -> Orchestrator:
    return Orchestrator(name="CLI Agent", settings=settings).load(
        build_cli_bundle(settings, provider)
    )


def main() -> None:
    """Main entry point for the CLI."""
    parser = argparse.ArgumentParser(
        prog="daedalus",
        description="Daedalus-Agent - single-turn LLM agent orchestration",
    )
    parser.add_argument("--provider", choices=PROVIDERS, help="Model provider")
    parser.add_argument("--log-level", help="Override the configured log level")

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    subparsers.add_parser("chat", help="Start an interactive chat session")

    preview_parser = subparsers.add_parser("preview", help="Show the prompts a turn would send")
    preview_parser.add_argument("text", help="Turn input")

    serve_parser = subparsers.add_parser("serve", help="Start the webhook server")
    serve_parser.add_argument("--host", help="Host to bind to")
    serve_parser.add_argument("--port", type=int, help="Port to bind to")
    serve_parser.add_argument("--cron", help="Also run a turn on this cron expression")
    serve_parser.add_argument("--cron-input", default="", help="Turn input for scheduled turns")

    config_parser = subparsers.add_parser("config", help="Show configuration")
    config_parser.add_argument("--check", action="store_true", help="Check configuration validity")

    args = parser.parse_args()

    settings = get_settings()
    configure_logging(args.log_level or settings.log_level)

    if args.command is None:
        parser.print_help()
        sys.exit(0)

    try:
        if args.command == "chat":
            asyncio.run(run_chat(build_orchestrator(settings, args.provider)))
        elif args.command == "preview":
            asyncio.run(run_preview(build_orchestrator(settings, args.provider), args.text))
        elif args.command == "serve":
            run_server(settings, args)
        elif args.command == "config":
            show_config(settings, args.check)
        else:
            parser.print_help()
    except ConfigurationError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        sys.exit(1)


async def run_chat(orchestrator: Orchestrator) -> None:
    """Read lines from stdin and run one turn per line.

    Replies are printed by the reply tool; errors are reported and the
    session continues.
    """
    trigger = orchestrator.triggers.get("direct")
    if not isinstance(trigger, DirectTrigger):
        raise ConfigurationError("The chat command needs a direct trigger")

    print("Daedalus CLI agent started. Type 'exit' or 'quit' to end.\n")

    while True:
        try:
            user_input = await asyncio.to_thread(input, "You: ")
        except EOFError:
            break

        if user_input.strip().lower() in EXIT_WORDS:
            break
        if not user_input.strip():
            continue

        result = await trigger.execute(user_input)
        if result and result.final_text_response and not result.executed_tools:
            print(result.final_text_response)

    print("CLI agent stopped.")


async def run_preview(orchestrator: Orchestrator, text: str) -> None:
    prompt = await orchestrator.preview(text)
    print(f"# Budget: {prompt.total_tokens}/{prompt.budget} tokens")
    if prompt.omitted:
        print(f"# Omitted: {', '.join(prompt.omitted)}")
    print("\n## System prompt\n")
    print(prompt.system_prompt)
    print("\n## User prompt\n")
    print(prompt.user_prompt)


def run_server(settings: Settings, args: argparse.Namespace) -> None:
    """Run the webhook server."""
    import uvicorn

    from .triggers.webhook import create_webhook_app

    orchestrator = build_orchestrator(settings, args.provider)
    if args.cron:
        orchestrator.add_trigger(ScheduleTrigger(orchestrator, args.cron, payload=args.cron_input))

    host = args.host or settings.host
    port = args.port or settings.port
    logger.info("Starting webhook server", host=host, port=port)

    uvicorn.run(create_webhook_app(orchestrator), host=host, port=port, log_level="info")


def show_config(settings: Settings, check: bool) -> None:
    """Show current configuration."""
    gateway_config = settings.get_gateway_config()

    print("\n=== Daedalus-Agent Configuration ===\n")
    print(f"App Name: {settings.app_name}")
    print(f"Log Level: {settings.log_level}")
    print(f"Provider: {gateway_config.provider}")
    print(f"Model: {gateway_config.model}")
    print(f"Context Window: {gateway_config.context_window_tokens}")
    print(f"Target Tokens: {settings.target_tokens}")
    print(f"Max Output Tokens: {settings.max_output_tokens}")
    print(f"Temperature: {settings.temperature}")
    print(f"Tool Block Budget: {settings.tool_block_budget}")
    print(f"Include Turn Input: {settings.include_turn_input}")

    if check:
        print("\n=== Configuration Check ===\n")
        issues = []
        if not gateway_config.api_key:
            issues.append(f"No API key set for provider '{gateway_config.provider}'")
        if gateway_config.context_window_tokens <= settings.max_output_tokens:
            issues.append("max_output_tokens leaves no room in the context window")

        if issues:
            for issue in issues:
                print(f"  - {issue}")
            sys.exit(1)
        print("Configuration looks good.")


if __name__ == "__main__":
    main()
