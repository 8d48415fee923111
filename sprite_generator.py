#!/usr/bin/env python3
"""
Sprite Generator - command line front end for spritechain
Generates a base character with Google Gemini, chains animation frames off it
and writes frames, a sprite sheet, preview GIFs and metadata to disk.
"""

import argparse
import json
import logging
import os
import sys
from typing import List, Tuple

from spritechain import (
    AnimationState,
    GenerationClient,
    Settings,
    SpriteCategory,
    SpriteChainError,
    SpriteConfig,
    SpriteOrchestrator,
    SpriteStyle,
    SpriteWeapon,
)
from spritechain.logging_config import setup_logging
from spritechain.orchestrator import (
    DEFAULT_FPS,
    DEFAULT_SHEET_COLUMNS,
    MAX_FPS,
    MAX_SEQUENCE_FRAMES,
    MAX_SHEET_COLUMNS,
    SHEET_FILENAME,
)

DEFAULT_FRAMES = 4


def enum_arg(enum_cls):
    """argparse type that accepts an enum member name or label"""
    def parse(text):
        try:
            return enum_cls.parse(text)
        except ValueError as e:
            raise argparse.ArgumentTypeError(str(e))
    parse.__name__ = enum_cls.__name__
    return parse


def bounded_int(low: int, high: int):
    def parse(text):
        try:
            value = int(text)
        except ValueError:
            raise argparse.ArgumentTypeError(f"expected an integer, got '{text}'")
        if not low <= value <= high:
            raise argparse.ArgumentTypeError(f"must be between {low} and {high}, got {value}")
        return value
    return parse


def parse_animation(text: str) -> Tuple[AnimationState, int]:
    """Parse 'walk' or 'walk:6' into (state, frame count); count 0 means --frames.

    'idle:N' adds N Idle frames chained after the base pose.
    """
    name, _, count = text.partition(":")
    try:
        state = AnimationState.parse(name)
    except ValueError as e:
        raise argparse.ArgumentTypeError(str(e))
    if not count:
        return state, 0
    return state, bounded_int(1, MAX_SEQUENCE_FRAMES)(count)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Generate consistent game sprite sets using AI")
    parser.add_argument("--api-key", help="Google Gemini API key (default: GEMINI_API_KEY from env/.env)")
    parser.add_argument("--name", default="sprite", help="Output name for the sprite set")
    parser.add_argument("--output", default=None, help="Output directory (default: ./output)")

    # Character identity
    parser.add_argument("--category", type=enum_arg(SpriteCategory), default=SpriteCategory.HUMAN,
                        help="Character kind: " + ", ".join(m.value for m in SpriteCategory))
    parser.add_argument("--style", type=enum_arg(SpriteStyle), default=SpriteStyle.PIXEL_ART_16BIT,
                        help="Art style: " + ", ".join(m.value for m in SpriteStyle))
    parser.add_argument("--weapon", type=enum_arg(SpriteWeapon), default=SpriteWeapon.NONE,
                        help="Weapon/item: " + ", ".join(m.value for m in SpriteWeapon))
    parser.add_argument("--description", default=SpriteConfig().description,
                        help="Free-text character description")

    # Animations
    parser.add_argument("--animation", dest="animations", action="append", type=parse_animation,
                        default=None, metavar="STATE[:N]",
                        help="Animation to generate after the base, repeatable (e.g. walk:4 attack:3)")
    parser.add_argument("--frames", type=bounded_int(1, MAX_SEQUENCE_FRAMES), default=DEFAULT_FRAMES,
                        help="Frames per animation when STATE has no :N suffix")

    # Output options
    parser.add_argument("--columns", type=bounded_int(1, MAX_SHEET_COLUMNS), default=DEFAULT_SHEET_COLUMNS,
                        help="Sprite sheet columns")
    parser.add_argument("--fps", type=bounded_int(1, MAX_FPS), default=DEFAULT_FPS,
                        help="Preview GIF frame rate")

    # Backend
    parser.add_argument("--model", default=None, help="Image model identifier")
    parser.add_argument("--timeout", type=float, default=None, help="Request timeout in seconds")
    parser.add_argument("--yes", action="store_true", help="Answer yes to confirmation prompts")
    parser.add_argument("--verbose", action="store_true", help="Debug logging")
    return parser


def ask_user(message: str) -> bool:
    answer = input(f"{message} [y/N] ")
    return answer.strip().lower() in ("y", "yes")


def save_outputs(orchestrator: SpriteOrchestrator, name: str, output_dir: str,
                 columns: int, fps: int) -> dict:
    """Save frames, sheet and previews and return the metadata written alongside them"""
    output_path = os.path.join(output_dir, name)
    os.makedirs(output_path, exist_ok=True)

    sheet_path = orchestrator.export_sheet(os.path.join(output_path, SHEET_FILENAME), columns)

    frames = orchestrator.store.frames()
    frame_entries = []
    for i, frame in enumerate(frames):
        sprite_path = orchestrator.export_frame(frame.id, output_path)
        entry = frame.to_dict()
        entry.update({
            "index": i,
            "path": str(sprite_path),
            "column": i % columns,
            "row": i // columns,
        })
        frame_entries.append(entry)

    previews = {}
    for state in AnimationState:
        gif_path = orchestrator.export_animation(state, os.path.join(output_path, f"{state.slug}.gif"), fps)
        if gif_path:
            previews[state.value] = str(gif_path)

    metadata = {
        "name": name,
        "config": orchestrator.config.to_dict(),
        "sprite_sheet": str(sheet_path) if sheet_path else None,
        "columns": columns,
        "frames": frame_entries,
        "previews": previews,
    }

    meta_path = os.path.join(output_path, f"{name}_meta.json")
    with open(meta_path, 'w') as f:
        json.dump(metadata, f, indent=2)

    return metadata


def run(args: argparse.Namespace) -> int:
    try:
        settings = Settings.from_env(api_key=args.api_key, model=args.model,
                                     timeout=args.timeout, output_dir=args.output)
        client = GenerationClient.from_settings(settings)
    except SpriteChainError as e:
        print(f"Error: {e.message}", file=sys.stderr)
        return 2

    config = SpriteConfig(category=args.category, style=args.style,
                          weapon=args.weapon, description=args.description)
    confirm = (lambda _message: True) if args.yes else ask_user
    orchestrator = SpriteOrchestrator(client, config, confirm=confirm)

    animations: List[Tuple[AnimationState, int]] = args.animations or [(AnimationState.WALK, 0)]

    print(f"\n{'='*50}")
    print(f"GENERATING CHARACTER: {args.name}")
    print(f"  {config.category.value} / {config.style.value} / {config.weapon.value}")
    print(f"  {config.description}")
    print(f"{'='*50}")

    print("\n=== Generating base sprite ===")
    if orchestrator.generate_base() is None:
        print(f"  Failed: {orchestrator.error}", file=sys.stderr)
        return 1

    failed = False
    for state, count in animations:
        count = count or args.frames
        print(f"\n=== Generating {state.value} ({count} frames) ===")
        created = orchestrator.generate_sequence(state, count)
        print(f"  {len(created)}/{count} frames generated")
        if orchestrator.error:
            print(f"  Failed: {orchestrator.error}", file=sys.stderr)
            failed = True
            break

    metadata = save_outputs(orchestrator, args.name, settings.output_dir, args.columns, args.fps)

    print(f"\n{'='*50}")
    print(f"{'PARTIAL' if failed else 'COMPLETE'}: {len(metadata['frames'])} frames")
    print(f"Output: {os.path.join(settings.output_dir, args.name)}/")
    print(f"{'='*50}")
    return 1 if failed else 0


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(logging.DEBUG if args.verbose else logging.INFO, verbose=args.verbose)
    return run(args)


if __name__ == "__main__":
    sys.exit(main())
