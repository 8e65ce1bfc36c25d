import argparse
import json
import os
import sys
from pathlib import Path

import sentry_sdk

from _version import __version__
from diagnostics import init_diagnostics
from engine import snapshot
from engine.config import DEFAULT_SEED, PARAMS, GenerationConfig
from engine.determinism import make_angle_rng
from engine.export import ExportManager, ExportStatus, default_output_name
from engine.generator import generate
from presets import schema as preset_schema
from render.preview import render_still, save_png
from security import (
    ALLOWED_CSV_EXTENSIONS,
    ALLOWED_IMAGE_EXTENSIONS,
    ALLOWED_SNAPSHOT_EXTENSIONS,
    strip_pii,
    validate_frame_count,
    validate_frame_size,
    validate_output_path,
    validate_seed_text,
)

_CONSENT_PATH = os.path.expanduser("~/.seedform/telemetry_consent")


def _init_sentry():
    """Consent-gated Sentry init. Without consent the DSN stays empty (no-op)."""
    dsn = ""
    if os.path.exists(_CONSENT_PATH) and Path(_CONSENT_PATH).read_text().strip() == "yes":
        dsn = os.environ.get("SENTRY_DSN", "")

    sentry_sdk.init(
        dsn=dsn,
        release=f"seedform@{__version__}",
        environment=os.environ.get("SENTRY_ENV", "development"),
        traces_sample_rate=0.1,
        before_send=strip_pii,
        max_breadcrumbs=50,
    )


def _add_config_args(parser: argparse.ArgumentParser):
    parser.add_argument("seed", nargs="?", default=None, help="Seed text (1-32 chars)")
    parser.add_argument("--preset", help="Load seed and config from a preset file")
    parser.add_argument("--count", type=int, dest="particle_count")
    parser.add_argument("--radius", type=float)
    parser.add_argument("--noise", type=float, dest="noise_strength")
    parser.add_argument("--morph-speed", type=float, dest="morph_speed")
    parser.add_argument("--size", type=float, dest="particle_size")
    parser.add_argument("--rotation", type=float, dest="rotation_speed")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="seedform", description="Seeded procedural particle shapes"
    )
    parser.add_argument("--version", action="version", version=__version__)
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("dna", help="Print the shape/color DNA for a seed")
    _add_config_args(p)

    p = sub.add_parser("generate", help="Generate a target buffer and dump it")
    _add_config_args(p)
    p.add_argument("--json", dest="json_path", help="Write a JSON snapshot")
    p.add_argument("--csv", dest="csv_path", help="Write x,y,z,r,g,b rows")
    p.add_argument(
        "--angle-seed", type=int, help="Pin per-particle placement (default: random)"
    )

    p = sub.add_parser("preview", help="Render a PNG still")
    _add_config_args(p)
    p.add_argument("--out", required=True)
    p.add_argument("--width", type=int, default=640)
    p.add_argument("--height", type=int, default=480)
    p.add_argument("--settle", type=int, default=0, help="Animator ticks before capture")

    p = sub.add_parser("export", help="Render a video")
    _add_config_args(p)
    p.add_argument("--out", help="Output video path (default: <seed>-<ms>.mp4)")
    p.add_argument("--seconds", type=float, default=10.0)
    p.add_argument("--fps", type=int, default=30)
    p.add_argument("--width", type=int, default=1280)
    p.add_argument("--height", type=int, default=720)

    sub.add_parser("params", help="Print config parameter metadata")
    return parser


def _resolve_inputs(args) -> tuple[str, GenerationConfig]:
    seed = DEFAULT_SEED
    base: dict = {}
    if args.preset:
        preset = preset_schema.deserialize(Path(args.preset).read_text())
        seed = preset["seed"]
        base = preset["config"]
    if args.seed is not None:
        seed = args.seed

    overrides = {
        name: getattr(args, name)
        for name in PARAMS
        if getattr(args, name, None) is not None
    }
    config = GenerationConfig.from_dict({**GenerationConfig().to_dict(), **base, **overrides})
    return seed, config


def _fail(errors: list[str]) -> int:
    for e in errors:
        print(f"error: {e}", file=sys.stderr)
    return 2


def _cmd_dna(args) -> int:
    seed, config = _resolve_inputs(args)
    # DNA does not depend on particle count; keep the cycle cheap
    generation = generate(seed, config.replace(particle_count=1))
    print(json.dumps(generation.dna_dict(), indent=2))
    return 0


def _cmd_generate(args) -> int:
    seed, config = _resolve_inputs(args)
    outputs = [
        (args.json_path, ALLOWED_SNAPSHOT_EXTENSIONS),
        (args.csv_path, ALLOWED_CSV_EXTENSIONS),
    ]
    errors = [
        e
        for path, allowed in outputs
        if path
        for e in validate_output_path(os.path.abspath(path), allowed)
    ]
    if errors:
        return _fail(errors)
    angle_rng = make_angle_rng(args.angle_seed)
    generation = generate(seed, config, angle_rng)
    if args.json_path:
        Path(args.json_path).write_text(snapshot.to_json(generation))
    if args.csv_path:
        snapshot.write_csv(args.csv_path, generation.positions, generation.colors)
    if not args.json_path and not args.csv_path:
        print(snapshot.to_json(generation, include_buffers=False))
    return 0


def _cmd_preview(args) -> int:
    seed, config = _resolve_inputs(args)
    out = os.path.abspath(args.out)
    errors = validate_output_path(out, ALLOWED_IMAGE_EXTENSIONS)
    errors += validate_frame_size(args.width, args.height)
    if errors:
        return _fail(errors)
    generation = generate(seed, config)
    save_png(render_still(generation, args.width, args.height, args.settle), out)
    print(out)
    return 0


def _cmd_export(args) -> int:
    seed, config = _resolve_inputs(args)
    out = os.path.abspath(args.out or default_output_name(seed))
    errors = validate_output_path(out)
    errors += validate_frame_size(args.width, args.height)
    errors += validate_frame_count(round(args.seconds * args.fps))
    if errors:
        return _fail(errors)

    manager = ExportManager()
    job = manager.start(
        seed,
        config,
        out,
        duration_s=args.seconds,
        fps=args.fps,
        size=(args.width, args.height),
    )
    try:
        while not job.wait(timeout=0.5):
            status = manager.get_status()
            print(f"\rRecording {status['progress'] * 100:.0f}%", end="", file=sys.stderr)
    except KeyboardInterrupt:
        manager.cancel()
        job.wait()
    print(file=sys.stderr)

    if job.status != ExportStatus.COMPLETE:
        return _fail([job.error or f"export {job.status.value}"])
    print(out)
    return 0


def _cmd_params(args) -> int:
    print(json.dumps(PARAMS, indent=2))
    return 0


_COMMANDS = {
    "dna": _cmd_dna,
    "generate": _cmd_generate,
    "preview": _cmd_preview,
    "export": _cmd_export,
    "params": _cmd_params,
}


def run(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    if getattr(args, "seed", None):
        errors = validate_seed_text(args.seed)
        if errors:
            return _fail(errors)
    try:
        return _COMMANDS[args.command](args)
    except ValueError as e:
        return _fail([str(e)])


def main():
    init_diagnostics()
    _init_sentry()
    sys.exit(run())


if __name__ == "__main__":
    main()
