from __future__ import annotations

import argparse
import logging
import shlex
import subprocess
import sys
from typing import Dict

from dotenv import load_dotenv

from . import sources
from .config import load_config, resolve_settings
from .pipelines.sync import apply, merge_and_apply
from .state import load_state
from .utils.logging import setup_logging
from .utils.markers import env_marker_content, marker_exists

log = logging.getLogger(__name__)


def _build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="envfile", description="Share environment variables between processes"
    )
    p.add_argument("--config", help="Path to YAML config")
    p.add_argument("--path", help="Override the envfile location")
    p.add_argument("--log-level", help="DEBUG, INFO, WARNING, ...")
    sub = p.add_subparsers(dest="cmd", required=True)

    show = sub.add_parser("show", help="Print the persisted variables")
    show.add_argument("--format", choices=("json", "export"), default="json")

    merge = sub.add_parser("merge", help="Remember variables for later processes")
    merge.add_argument("pairs", nargs="*", metavar="KEY=VALUE")
    merge.add_argument("--dotenv", help="Read variables from a dotenv file")
    merge.add_argument("--image-config", help="Read config.Env from an OCI image config")
    merge.add_argument("--marker", help="Skip when this marker already holds the same variables")

    run = sub.add_parser("exec", help="Run a command with the persisted variables applied")
    run.add_argument("command", nargs=argparse.REMAINDER)
    return p


def _collect_incoming(args: argparse.Namespace) -> Dict[str, str]:
    incoming: Dict[str, str] = {}
    if args.image_config:
        incoming.update(sources.env_from_image_config(args.image_config))
    if args.dotenv:
        incoming.update(sources.env_from_dotenv(args.dotenv))
    incoming.update(sources.list_to_object(args.pairs))
    return incoming


def main(argv: list[str] | None = None) -> int:
    load_dotenv()  # loads .env if present
    args = _build_parser().parse_args(argv)

    try:
        cfg = load_config(args.config) if args.config else {}
        settings = resolve_settings(cfg)
    except (OSError, ValueError) as e:
        print(f"envfile: {e}", file=sys.stderr)
        return 1
    if args.path:
        settings.path = args.path
    setup_logging(args.log_level or settings.log_level)

    if args.cmd == "show":
        record = load_state(settings.path).record
        if args.format == "export":
            for key in sorted(record.env):
                print(f"export {key}={shlex.quote(record.env[key])}")
        else:
            print(record.to_json())
        return 0

    if args.cmd == "merge":
        try:
            incoming = _collect_incoming(args)
            if args.marker and marker_exists(
                args.marker, env_marker_content(incoming), settings.marker_dir
            ):
                log.info("Marker %s unchanged, nothing to merge", args.marker)
                return 0
        except (OSError, ValueError) as e:
            log.error("%s", e)
            return 1
        report = merge_and_apply(
            incoming, path=settings.path, lock_timeout=settings.lock_timeout
        )
        log.info(
            "Merged %d vars into %s (persist=%s)",
            len(incoming),
            settings.path,
            report.persist.value if report.persist else "skipped",
        )
        return 0

    if args.cmd == "exec":
        command = list(args.command)
        if command and command[0] == "--":
            command = command[1:]
        if not command:
            log.error("exec needs a command to run")
            return 2
        apply(path=settings.path)
        try:
            return subprocess.run(command, check=False).returncode
        except OSError as e:
            log.error("Cannot run %s: %s", command[0], e)
            return 127

    return 0


if __name__ == "__main__":
    sys.exit(main())
