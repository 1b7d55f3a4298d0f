"""
Command-line entry point.

Usage:
    llm-conversation TOPIC [TURNS]      Run a conversation
    llm-conversation --examples         Show example topics
    llm-conversation --random [TURNS]   Run a conversation on a random topic
    llm-conversation --list-models      Show supported models per provider
    llm-conversation --upload FILE      Upload a saved transcript to the viewer

Exit codes: 0 on success, 1 on configuration errors or a failed session.
"""

from __future__ import annotations

import argparse
import asyncio
import random
import sys
from typing import Sequence

import httpx
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from llm_conversation.config.models import get_supported_models
from llm_conversation.conversation.models import ConversationTranscript, Provider
from llm_conversation.conversation.orchestrator import ConversationOrchestrator
from llm_conversation.core.config import Settings, load_settings, validate_max_turns
from llm_conversation.core.exceptions import ConfigurationError, ConversationError
from llm_conversation.core.logging import configure_logging
from llm_conversation.upload.service import UploadService


console = Console()

EXAMPLE_TOPICS: dict[str, tuple[str, ...]] = {
    "Philosophy & Ethics": (
        "Explore the nature of consciousness and free will",
        "Debate the trolley problem and ethical decision making",
        "Discuss the meaning of life and human purpose",
    ),
    "Technology & Future": (
        "Analyze the potential impact of quantum computing",
        "Discuss the future of human-AI collaboration",
        "Explore the possibilities of space colonization",
    ),
    "Society & Culture": (
        "Examine the role of art in society",
        "Discuss the evolution of human communication",
        "Analyze the impact of globalization on local cultures",
    ),
    "Science & Discovery": (
        "Explore the mysteries of dark matter and dark energy",
        "Discuss breakthrough treatments in modern medicine",
        "Analyze the role of AI in scientific discovery",
    ),
    "Business & Economics": (
        "Evaluate the future of cryptocurrency and digital finance",
        "Discuss sustainable business practices and climate change",
        "Analyze the gig economy and future of work",
    ),
    "Creative & Personal": (
        "Explore the relationship between creativity and technology",
        "Discuss the importance of storytelling in human culture",
        "Analyze the psychology of motivation and goal setting",
    ),
}

RANDOM_TOPICS: tuple[str, ...] = (
    "Explore the potential of gene editing technology",
    "Discuss the impact of virtual reality on education",
    "Analyze the future of sustainable energy",
    "Debate the role of government in regulating AI",
    "Examine the psychology of decision making",
    "Discuss the evolution of human language",
    "Explore the possibilities of time travel",
    "Analyze the impact of automation on employment",
    "Debate the ethics of genetic enhancement",
    "Discuss the future of human longevity",
    "Explore the role of emotions in artificial intelligence",
    "Analyze the impact of climate change on civilization",
    "Discuss the potential of brain-computer interfaces",
    "Examine the philosophy of personal identity",
    "Explore the future of interstellar travel",
)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="llm-conversation",
        description="Run a turn-based conversation between two LLM providers",
    )
    parser.add_argument("topic", nargs="?", help="Conversation topic")
    parser.add_argument("turns", nargs="?", help="Number of turns (2-50, defaults to config)")
    parser.add_argument("--examples", "-e", action="store_true", help="Show example topics")
    parser.add_argument("--random", "-r", nargs="?", const="", metavar="TURNS",
                        help="Start with a random topic")
    parser.add_argument("--list-models", action="store_true",
                        help="Show supported models per provider")
    parser.add_argument("--upload", metavar="FILE", help="Upload a saved transcript to the viewer")
    parser.add_argument("--log-level", help="Override the configured log level")
    return parser


def show_examples() -> None:
    console.print("[bold]Example Conversation Topics[/bold]\n")
    for category, topics in EXAMPLE_TOPICS.items():
        console.print(f"[cyan]{category}:[/cyan]")
        for topic in topics:
            console.print(f'  "{topic}"')
        console.print()


def show_models() -> None:
    table = Table(title="Supported Models")
    table.add_column("Provider", style="cyan")
    table.add_column("Model")
    for provider in Provider:
        for model in get_supported_models(provider.value):
            table.add_row(provider.value, model)
    console.print(table)


def pick_random_topic(rng: random.Random | None = None) -> str:
    return (rng or random).choice(RANDOM_TOPICS)


def print_summary(transcript: ConversationTranscript, location: str | None = None) -> None:
    stats = transcript.statistics
    table = Table(title=f"Session {transcript.session_id}")
    table.add_column("Metric", style="cyan")
    table.add_column("Value", justify="right")
    table.add_row("Turns", f"{transcript.actual_turns}/{transcript.max_turns}")
    table.add_row("Duration (s)", str(transcript.duration_seconds))
    table.add_row("Total tokens", str(stats.total_tokens))
    table.add_row("OpenAI tokens", str(stats.openai_tokens))
    table.add_row("Anthropic tokens", str(stats.anthropic_tokens))
    table.add_row("Avg response (ms)", f"{stats.average_response_time_ms:.0f}")
    console.print(table)
    if location:
        console.print(f"Transcript saved to [green]{location}[/green]")


async def run_session(settings: Settings, topic: str, turns: int | None) -> int:
    """Run one conversation, print its summary and auto-upload if enabled."""
    orchestrator = ConversationOrchestrator(settings)
    participants = orchestrator.resolve_participants()
    console.print(Panel(
        f"Topic: {topic}\n"
        f"Turns: {turns or settings.max_turns}\n"
        + "\n".join(
            f"{slot.value}: {p.provider.value} ({p.model})" for slot, p in participants.items()
        ),
        title="LLM Conversation",
        border_style="cyan",
    ))

    transcript = await orchestrator.run(topic=topic, max_turns=turns)
    print_summary(transcript, orchestrator.transcript_location)

    if settings.auto_upload and settings.upload_enabled:
        result = await UploadService(settings).upload_conversation(
            transcript.to_dict(), filename=transcript.session_id
        )
        if result.success:
            console.print(f"[green]Uploaded:[/green] {result.viewer_url}")
        else:
            console.print(f"[yellow]Upload failed:[/yellow] {result.error}")
    return 0


async def upload_existing(settings: Settings, path: str) -> int:
    """Upload a saved transcript file."""
    service = UploadService(settings)
    if not service.enabled:
        console.print("[red]Upload is disabled in configuration[/red]")
        return 1

    console.print("Testing upload connection...")
    if not await service.test_connection():
        console.print("[red]Cannot connect to upload API[/red]")
        return 1

    result = await service.upload_file(path)
    if not result.success:
        console.print(f"[red]Failed:[/red] {result.error}")
        return 1
    console.print(f"[green]Success:[/green] {result.viewer_url}")
    return 0


def main(argv: Sequence[str] | None = None) -> int:
    """CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.examples:
        show_examples()
        return 0
    if args.list_models:
        show_models()
        return 0
    if args.upload is None and args.random is None and not args.topic:
        parser.print_help()
        return 0

    try:
        settings = load_settings()
        configure_logging(args.log_level)

        if args.upload is not None:
            return asyncio.run(upload_existing(settings, args.upload))

        if args.random is not None:
            topic = pick_random_topic()
            raw_turns = args.random or args.topic
            console.print(f"Random topic selected: [bold]{topic}[/bold]")
        else:
            topic = args.topic
            raw_turns = args.turns

        turns = validate_max_turns(raw_turns) if raw_turns else None
        return asyncio.run(run_session(settings, topic, turns))
    except ConfigurationError as e:
        console.print(f"[red]Configuration error:[/red] {e}")
        return 1
    except (ConversationError, httpx.HTTPError) as e:
        console.print(f"[red]Conversation failed:[/red] {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
