"""Command-line interface for Dreamloom.

Each subcommand maps to one creative task; results are written to the
output directory as ``<command>_<n>.<ext>``.
"""

from __future__ import annotations

import argparse
import asyncio
from collections.abc import Sequence
import logging
import mimetypes
from pathlib import Path
import sys

from rich.console import Console

from dreamloom.core.capability.errors import GenerationError
from dreamloom.core.capability.models import Artifact, SourceImage
from dreamloom.core.config.loader import configure_logging, load_app_config
from dreamloom.core.orchestration.narrative import ProgressSnapshot
from dreamloom.core.prompts import (
    CommercialBrief,
    build_art_style_prompt,
    build_icon_prompt,
    build_identity_prompt,
)
from dreamloom.core.services.generation import (
    ArtStyle,
    CommercialStyle,
    DreamRequest,
    DreamStyle,
    GenerationService,
    resolve_style,
)
from dreamloom.core.session import DreamloomSession

console = Console()
logger = logging.getLogger(__name__)


def _choices(enum_cls: type[DreamStyle] | type[ArtStyle] | type[CommercialStyle]) -> list[str]:
    return [member.name.lower() for member in enum_cls]


def load_source_image(path: Path | str) -> SourceImage:
    """Read an image file from disk.

    Raises:
        FileNotFoundError: If the file doesn't exist
        ValueError: If the file is not a recognizable image type
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Image not found: {path}")

    mime_type, _ = mimetypes.guess_type(path.name)
    if mime_type is None or not mime_type.startswith("image/"):
        raise ValueError(f"Not an image file: {path}")
    return SourceImage(data=path.read_bytes(), mime_type=mime_type)


def save_artifacts(artifacts: Sequence[Artifact], output_dir: Path, name: str) -> list[Path]:
    """Write artifacts as ``<name>_<n>.<ext>`` (n starts at 1)."""
    output_dir.mkdir(parents=True, exist_ok=True)
    paths = []
    for index, artifact in enumerate(artifacts, start=1):
        path = output_dir / f"{name}_{index}.{artifact.extension}"
        path.write_bytes(artifact.data)
        paths.append(path)
    return paths


def print_progress(snapshot: ProgressSnapshot) -> None:
    console.print(f"[cyan]📖 Generated {snapshot.status}[/cyan]")


async def _dispatch(
    args: argparse.Namespace,
    service: GenerationService,
    cancel_token: asyncio.Event,
) -> list[Artifact]:
    if args.cmd == "dream":
        request = DreamRequest(
            description=args.description,
            style=DreamStyle[args.style.upper()],
            quantity=args.count,
            source_image=load_source_image(args.image) if args.image else None,
        )
        return await service.visualize_dream(
            request, on_progress=print_progress, cancel_token=cancel_token
        )

    if args.cmd == "manga":
        return await service.generate_manga(
            args.theme, args.pages, on_progress=print_progress, cancel_token=cancel_token
        )

    if args.cmd == "style":
        if args.art_style:
            style = resolve_style(ArtStyle[args.art_style.upper()], args.custom_style)
            prompt = build_art_style_prompt(style)
        elif args.persona:
            prompt = build_identity_prompt(args.persona, args.setting or "")
        elif args.icon:
            prompt = build_icon_prompt(args.icon, args.action or "")
        else:
            prompt = args.prompt
        return await service.style_image(
            load_source_image(args.image), prompt, args.count, cancel_token=cancel_token
        )

    if args.cmd == "fuse":
        return await service.fuse_images(
            load_source_image(args.first),
            load_source_image(args.second),
            args.prompt,
            args.count,
            cancel_token=cancel_token,
        )

    if args.cmd == "commercial":
        brief = CommercialBrief(
            product_name=args.product,
            product_description=args.description or "",
            target_audience=args.audience or "",
            style=resolve_style(CommercialStyle[args.style.upper()], args.custom_style),
        )
        return await service.create_commercial(
            brief,
            args.count,
            product_image=load_source_image(args.product_image) if args.product_image else None,
            model_image=load_source_image(args.model_image) if args.model_image else None,
            cancel_token=cancel_token,
        )

    raise ValueError(f"Unknown command: {args.cmd}")


async def run_command_async(args: argparse.Namespace, session: DreamloomSession) -> int:
    """Run one subcommand against a session.

    Returns:
        Exit code (0 for success, 1 for failure)
    """
    cancel_token = session.begin_request()

    try:
        artifacts = await _dispatch(args, session.service, cancel_token)
    except (GenerationError, FileNotFoundError, ValueError) as e:
        console.print(f"[red]ERROR: {e}[/red]")
        return 1

    if not artifacts:
        console.print("[yellow]No images requested.[/yellow]")
        return 0

    paths = save_artifacts(artifacts, session.output_dir, args.cmd)
    console.print(f"[green]✅ Generated {len(paths)} image(s)[/green]")
    for path in paths:
        console.print(f"   {path}")
    return 0


def run_cli(args: argparse.Namespace) -> int:
    """Load configuration, build the session and run the command."""
    try:
        app_config = load_app_config(args.app_config)
    except Exception as e:
        console.print(f"[red]ERROR: Could not load config: {e}[/red]")
        return 1

    if args.out:
        app_config = app_config.model_copy(update={"output_dir": args.out})
    if args.verbose:
        logging_config = app_config.logging.model_copy(update={"level": "DEBUG"})
        app_config = app_config.model_copy(update={"logging": logging_config})
    configure_logging(app_config)

    try:
        session = DreamloomSession(app_config=app_config)
        # Build the client up front so a missing key fails before any work
        _ = session.service
    except ValueError as e:
        console.print(f"[red]ERROR: {e}[/red]")
        return 1

    try:
        return asyncio.run(run_command_async(args, session))
    except KeyboardInterrupt:
        console.print("[yellow]Cancelled.[/yellow]")
        return 130


def build_arg_parser() -> argparse.ArgumentParser:
    """Build argument parser for CLI."""
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument(
        "--app-config",
        default=None,
        help="Path to app config (.json/.yaml; default: config.json if present)",
    )
    common.add_argument("--out", default=None, help="Output directory (overrides config)")
    common.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")

    p = argparse.ArgumentParser(
        prog="dreamloom",
        description="Dreamloom - generative image studio",
    )
    sub = p.add_subparsers(dest="cmd", required=True)

    dream = sub.add_parser("dream", parents=[common], help="Visualize a dream")
    dream.add_argument("description", help="Dream or story text")
    dream.add_argument("--style", choices=_choices(DreamStyle), default="cinematic")
    dream.add_argument("--image", help="Optional photo to redraw")
    dream.add_argument("-n", "--count", type=int, default=1, help="Number of images")

    manga = sub.add_parser("manga", parents=[common], help="Plan and render a manga")
    manga.add_argument("theme", help="Story theme")
    manga.add_argument("--pages", type=int, default=4, help="Number of pages (default: 4)")

    style = sub.add_parser("style", parents=[common], help="Restyle a photo")
    style.add_argument("image", help="Photo to restyle")
    mode = style.add_mutually_exclusive_group(required=True)
    mode.add_argument("--art-style", choices=_choices(ArtStyle))
    mode.add_argument("--persona", help="Identity to transform the person into")
    mode.add_argument("--icon", help="Famous person to place alongside the person")
    mode.add_argument("--prompt", help="Free-form edit instruction")
    style.add_argument("--custom-style", help="Style description for --art-style custom")
    style.add_argument("--setting", help="Time/place for --persona")
    style.add_argument("--action", help="What the person and --icon are doing")
    style.add_argument("-n", "--count", type=int, default=1, help="Number of images")

    fuse = sub.add_parser("fuse", parents=[common], help="Fuse two photos")
    fuse.add_argument("first", help="First photo")
    fuse.add_argument("second", help="Second photo")
    fuse.add_argument("--prompt", required=True, help="How to combine the photos")
    fuse.add_argument("-n", "--count", type=int, default=1, help="Number of images")

    commercial = sub.add_parser("commercial", parents=[common], help="Create an advertisement")
    commercial.add_argument("--product", required=True, help="Product name")
    commercial.add_argument("--description", help="Product description")
    commercial.add_argument("--audience", help="Target audience")
    commercial.add_argument(
        "--style", choices=_choices(CommercialStyle), default="photorealistic"
    )
    commercial.add_argument("--custom-style", help="Style description for --style custom")
    commercial.add_argument("--product-image", help="Product reference photo")
    commercial.add_argument("--model-image", help="Endorser reference photo")
    commercial.add_argument("-n", "--count", type=int, default=1, help="Number of variants")

    return p


def main(argv: Sequence[str] | None = None) -> None:
    """Main entry point for CLI."""
    p = build_arg_parser()
    args = p.parse_args(argv)
    sys.exit(run_cli(args))
