"""Thin CLI entry point — builds a Manifest and calls the engine."""

import argparse
import json
import logging
import sys
from dataclasses import asdict
from pathlib import Path

from vidtrim.editors import build_args
from vidtrim.engine import probe, process
from vidtrim.ffutil import FFmpegNotFoundError, check_ffmpeg
from vidtrim.manifest import PROFILES, EngineConfig, Manifest, TrimConfig, load_manifest
from vidtrim.timecode import trim_bounds


def _add_trim_args(p: argparse.ArgumentParser) -> None:
    p.add_argument("--start", type=int, default=0, help="Trim start (seconds)")
    p.add_argument("--duration", type=int, default=10, help="Trim duration (seconds)")


def _print_description(description, as_json: bool) -> None:
    if as_json:
        print(json.dumps(asdict(description), indent=2))
        return
    print(f"Duration:  {description.duration or 'unknown'}")
    print(f"Container: {description.container or 'unknown'}")
    for i, v in enumerate(description.video_streams, 1):
        print(f"  Video stream {i}: {v.codec} {v.width}x{v.height} "
              f"aspect={v.aspect_ratio} {v.framerate} fps {v.bitrate} kb/s")
    for i, a in enumerate(description.audio_streams, 1):
        print(f"  Audio stream {i}: {a.codec} {a.sample_rate} Hz "
              f"channels={a.channels} layout={a.channel_layout}")


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(
        prog="vidtrim",
        description="VidTrim — trim a video into a GIF preview or a DASH package.",
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Debug logging")
    parser.add_argument("--ffmpeg", type=str, default=None, help="ffmpeg binary to run")
    sub = parser.add_subparsers(dest="command")

    prb = sub.add_parser("probe", help="Describe a video file's container and streams")
    prb.add_argument("video", type=Path, help="Input video file")
    prb.add_argument("--json", action="store_true", help="Print as JSON")
    prb.add_argument("--work-dir", type=Path, default=None, help="Scratch directory")

    for name, help_text in (("gif", "Extract an animated GIF"), ("dash", "Package as fragmented DASH")):
        p = sub.add_parser(name, help=help_text)
        p.add_argument("video", type=Path, help="Input video file")
        p.add_argument("--output-dir", "-o", type=Path, help="Directory for outputs")
        _add_trim_args(p)

    proc = sub.add_parser("process", help="Run a JSON manifest")
    proc.add_argument("--manifest", "-m", type=Path, required=True, help="Path to a JSON manifest file")

    dry = sub.add_parser("args", help="Print the ffmpeg arguments without running them")
    dry.add_argument("profile", choices=sorted(PROFILES))
    dry.add_argument("source", type=str, help="Input filename as ffmpeg will see it")
    _add_trim_args(dry)

    serve = sub.add_parser("serve", help="Launch the web API")
    serve.add_argument("--port", type=int, default=8321, help="Port to listen on")
    serve.add_argument("--host", type=str, default="127.0.0.1", help="Host to bind to")

    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        sys.exit(0)

    engine = EngineConfig(log_level="DEBUG" if args.verbose else "INFO")
    if args.ffmpeg:
        engine.ffmpeg_bin = args.ffmpeg

    if args.command == "process":
        m = load_manifest(args.manifest)
        if args.verbose:
            m.engine.log_level = "DEBUG"
        if args.ffmpeg:
            m.engine.ffmpeg_bin = args.ffmpeg
        engine = m.engine

    logging.basicConfig(
        level=getattr(logging, engine.log_level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if args.command == "serve":
        from vidtrim.web import create_app
        app = create_app()
        app.config["FFMPEG_BIN"] = engine.ffmpeg_bin
        print(f"VidTrim web API: http://{args.host}:{args.port}")
        app.run(host=args.host, port=args.port, debug=False)
        return

    if args.command == "args":
        profile = PROFILES[args.profile](
            source=args.source,
            trim=TrimConfig(start=args.start, duration=args.duration).to_window(),
        )
        print(" ".join(build_args(profile)))
        return

    if args.command == "probe":
        work_dir = args.work_dir or args.video.parent
        try:
            check_ffmpeg(engine.ffmpeg_bin)
        except FFmpegNotFoundError as e:
            print(f"Error: {e}", file=sys.stderr)
            sys.exit(1)
        description = probe(args.video, work_dir, ffmpeg_bin=engine.ffmpeg_bin)
        _print_description(description, args.json)
        if not args.json:
            print(f"Trim bound: {trim_bounds(description)}s")
        return

    if args.command in PROFILES:
        trim = TrimConfig(start=args.start, duration=args.duration)
        try:
            trim.validate()
        except ValueError as e:
            print(f"Error: {e}", file=sys.stderr)
            sys.exit(1)
        m = Manifest(
            input=args.video,
            output_dir=args.output_dir or args.video.parent / f"{args.video.stem}_{args.command}",
            profile=args.command,
            trim=trim,
            engine=engine,
        )

    def on_progress(stage: str, frac: float) -> None:
        print(f"  [{frac:3.0%}] {stage}")

    try:
        result = process(m, on_progress=on_progress)
    except FFmpegNotFoundError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    print()
    print(f"Done! Outputs in: {result.work_dir}")
    for path in result.artifact_paths():
        print(f"  {path.name}")
