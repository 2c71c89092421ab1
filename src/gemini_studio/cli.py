"""Command-line interface for Gemini Studio."""

from __future__ import annotations

import argparse
import asyncio
import getpass
import sys
from pathlib import Path

from pydantic import ValidationError

from gemini_studio.exceptions import StudioError
from gemini_studio.models import MAX_IMAGES, MIN_IMAGES, MODELS, CallMode, SlotKind
from gemini_studio.settings import StudioSettings, get_studio_settings
from gemini_studio.studio import Studio
from gemini_studio.utils.images import save_results
from gemini_studio.utils.logging import setup_logging


def list_models(settings: StudioSettings) -> None:
    """Print the configured fallback order and known models."""
    print("Fallback order:\n")
    for position, model_id in enumerate(settings.fallback_models, 1):
        config = MODELS.get(model_id)
        name = config["name"] if config else "(custom model)"
        print(f"  {position}. {model_id}  {name}")
    print()


def prompt_for_credential(studio: Studio) -> bool:
    """Ask for an API key on the terminal and save it.

    Returns:
        True if a key was saved.
    """
    if not sys.stdin.isatty():
        return False
    print("\nNo Gemini API key configured.")
    print("Create one at https://aistudio.google.com/app/apikey")
    key = getpass.getpass("Paste your Gemini API key and press Enter: ").strip()
    if not key:
        return False
    studio.set_credential(key)
    print(f"Saved API key to {studio.store.path}.")
    return True


def _load_references(studio: Studio, kind: SlotKind, paths: list[Path] | None) -> None:
    for path in paths or []:
        slot_id = studio.board.next_free_slot(kind)
        if slot_id is None:
            print(f"Warning: no free {kind.name.lower()} slot for {path}, skipping")
            continue
        studio.board.load_file(slot_id, path)


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser."""
    parser = argparse.ArgumentParser(
        description="Generate images from a prompt and reference images using Google Gemini",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Save an API key once
  %(prog)s --set-key YOUR_API_KEY

  # Text-only generation
  %(prog)s "A cat sitting on a windowsill" -n 2

  # Character and product references with a background
  %(prog)s "The model holding the bottle" --character model.png --product bottle.png --background beach.jpg

  # Restrict or reorder models
  %(prog)s "A logo" -m gemini-2.5-flash-image -m gemini-2.0-flash-exp
        """,
    )

    parser.add_argument("prompt", nargs="?", default=None, help="Text prompt")
    parser.add_argument(
        "--character",
        type=Path,
        action="append",
        help="Character reference image (up to 4, repeatable)",
    )
    parser.add_argument(
        "--product",
        type=Path,
        action="append",
        help="Product reference image (up to 2, repeatable)",
    )
    parser.add_argument("--background", type=Path, help="Background reference image")
    parser.add_argument(
        "-n",
        "--count",
        type=int,
        choices=range(MIN_IMAGES, MAX_IMAGES + 1),
        default=1,
        help="Number of images to generate (1-4, default: 1)",
    )
    parser.add_argument(
        "-d",
        "--output-dir",
        type=Path,
        default=Path.cwd(),
        help="Output directory (default: current directory)",
    )
    parser.add_argument(
        "-m",
        "--model",
        action="append",
        dest="models",
        help="Model id to try, in order (repeatable; default: configured fallback list)",
    )
    parser.add_argument(
        "--call-mode",
        choices=[mode.value for mode in CallMode],
        help="Issue calls sequentially (with delay) or concurrently",
    )
    parser.add_argument("--delay", type=float, help="Seconds between sequential calls")
    parser.add_argument(
        "--transport",
        choices=["genai", "rest", "relay"],
        help="How calls reach the API",
    )
    parser.add_argument("--relay-url", help="Relay endpoint URL (with --transport relay)")
    parser.add_argument("--set-key", metavar="KEY", help="Save an API key and exit")
    parser.add_argument("--clear-key", action="store_true", help="Remove the saved API key")
    parser.add_argument("--list-models", action="store_true", help="List models and exit")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    return parser


def _settings_from_args(args: argparse.Namespace) -> StudioSettings:
    settings = get_studio_settings()
    overrides: dict[str, object] = {}
    if args.call_mode:
        overrides["call_mode"] = CallMode(args.call_mode)
    if args.delay is not None:
        overrides["call_delay"] = args.delay
    if args.transport:
        overrides["transport"] = args.transport
    if args.relay_url:
        overrides["relay_url"] = args.relay_url
    return settings.model_copy(update=overrides) if overrides else settings


def main(argv: list[str] | None = None) -> None:
    """Main entry point for CLI."""
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        settings = _settings_from_args(args)
    except ValidationError as e:
        print(f"Error: invalid configuration: {e}")
        sys.exit(1)
    setup_logging("DEBUG" if args.verbose else settings.log_level)

    if args.list_models:
        list_models(settings)
        return

    studio = Studio(settings)

    if args.clear_key:
        studio.store.clear()
        print("Removed saved API key.")
        return

    if args.set_key is not None:
        try:
            studio.set_credential(args.set_key)
        except ValueError as e:
            print(f"Error: {e}")
            sys.exit(1)
        print(f"Saved API key to {studio.store.path}.")
        return

    if studio.needs_setup and not prompt_for_credential(studio):
        print("Error: no API key configured. Run with --set-key YOUR_API_KEY first.")
        sys.exit(1)

    try:
        _load_references(studio, SlotKind.CHARACTER, args.character)
        _load_references(studio, SlotKind.PRODUCT, args.product)
        _load_references(studio, SlotKind.BACKGROUND, [args.background] if args.background else None)

        result = asyncio.run(studio.generate(args.prompt or "", args.count, args.models))
    except FileNotFoundError as e:
        print(f"Error: {e}")
        sys.exit(1)
    except StudioError as e:
        print(f"Error: {e.message}")
        sys.exit(1)

    try:
        paths = save_results(result, args.output_dir)
    except (OSError, ValueError) as e:
        print(f"Error: Could not save images: {e}")
        sys.exit(1)

    print(f"Model {result.model} produced {len(paths)}/{result.requested} image(s):")
    for path in paths:
        print(f"  {path}")
    sys.exit(0 if paths else 1)


def relay_main(argv: list[str] | None = None) -> None:
    """Serve the relay endpoint with uvicorn."""
    import uvicorn  # noqa: PLC0415

    from gemini_studio.relay import create_relay_app  # noqa: PLC0415

    settings = get_studio_settings()
    parser = argparse.ArgumentParser(description="Run the Gemini Studio relay server")
    parser.add_argument("--host", default=settings.relay_host, help="Bind address")
    parser.add_argument("--port", type=int, default=settings.relay_port, help="Bind port")
    args = parser.parse_args(argv)

    setup_logging(settings.log_level)
    uvicorn.run(create_relay_app(settings), host=args.host, port=args.port)


if __name__ == "__main__":
    main()
