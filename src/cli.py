"""Command-line interface for ivypublish."""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

import orjson

from contract.coordinates import parse_module, parse_module_location
from contract.errors import PublishError
from contract.layout import ArtifactDestinations
from contract.repository import setup_ivy_repository
from descriptor.ivy import render_ivy_module
from publish.install import check_installed, install_to_ivy_repo
from settings.config import PublishConfig, load_config, resolve_repository_dir

_LOG_FORMAT = "%(levelname)s %(name)s: %(message)s"


def _add_verbosity(parser: argparse.ArgumentParser) -> None:
    group = parser.add_mutually_exclusive_group()
    group.add_argument("-v", "--verbose", action="store_true", help="Log debug output")
    group.add_argument("-q", "--quiet", action="store_true", help="Only log errors")


def _add_dependencies(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "coordinates",
        help="Module coordinates (group:name:version)",
    )
    parser.add_argument(
        "-d",
        "--dependency",
        action="append",
        default=[],
        dest="dependencies",
        metavar="COORDINATES",
        help="Direct dependency coordinates; repeat to keep order",
    )


def _add_publish_arguments(parser: argparse.ArgumentParser) -> None:
    _add_dependencies(parser)
    parser.add_argument("--binary", required=True, help="Binary archive to publish")
    parser.add_argument("--sources", default=None, help="Sources archive to publish")
    parser.add_argument(
        "--repo",
        default=None,
        help="Repository root (default: repository from ivypublish.toml)",
    )
    parser.add_argument(
        "--project",
        default=".",
        help="Project directory holding ivypublish.toml (default: .)",
    )
    parser.add_argument("--json", action="store_true", help="Print a JSON report")
    _add_verbosity(parser)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="ivypublish")
    subparsers = parser.add_subparsers(dest="command", required=True)

    install_parser = subparsers.add_parser(
        "install", help="Install artifacts into an Ivy repository"
    )
    _add_publish_arguments(install_parser)

    check_parser = subparsers.add_parser(
        "check", help="Report whether install would change anything"
    )
    _add_publish_arguments(check_parser)

    descriptor_parser = subparsers.add_parser(
        "descriptor", help="Print the Ivy descriptor for a module"
    )
    _add_dependencies(descriptor_parser)

    repository_parser = subparsers.add_parser(
        "repository", help="Print the resolver configuration for a repository URL"
    )
    repository_parser.add_argument("url", help="Repository URL")

    return parser


def _configure_logging(args: argparse.Namespace, config: PublishConfig) -> None:
    level = config.log_level
    if getattr(args, "verbose", False):
        level = "DEBUG"
    elif getattr(args, "quiet", False):
        level = "ERROR"
    logging.basicConfig(level=level, format=_LOG_FORMAT, stream=sys.stderr)


def _resolve_repo(project: Path, repo: str | None, config: PublishConfig) -> Path:
    if repo is not None:
        return Path(repo).expanduser().resolve()
    if config.repository is None:
        msg = "No repository given: pass --repo or set repository in ivypublish.toml"
        raise PublishError(msg)
    return resolve_repository_dir(project, config.repository)


def _optional_path(value: str | None) -> Path | None:
    if value is None:
        return None
    return Path(value).expanduser().resolve()


def _write_json(payload: dict[str, object]) -> None:
    opts = orjson.OPT_SORT_KEYS | orjson.OPT_INDENT_2
    sys.stdout.write(orjson.dumps(payload, option=opts).decode("utf-8"))
    sys.stdout.write("\n")


def _handle_install(args: argparse.Namespace, config: PublishConfig) -> int:
    project = Path(args.project).expanduser().resolve()
    repo = _resolve_repo(project, args.repo, config)
    changed = install_to_ivy_repo(
        repo,
        args.coordinates,
        args.dependencies,
        Path(args.binary).expanduser().resolve(),
        _optional_path(args.sources),
        metadata_prefix=config.metadata_prefix,
    )
    if args.json:
        location = parse_module_location(args.coordinates, repo)
        destinations = ArtifactDestinations.for_location(location)
        _write_json(
            {
                "changed": changed,
                "module": location.module.coordinates,
                "destinations": destinations.to_dict(),
            }
        )
    else:
        sys.stdout.write("changed\n" if changed else "up-to-date\n")
    return 0


def _handle_check(args: argparse.Namespace, config: PublishConfig) -> int:
    project = Path(args.project).expanduser().resolve()
    repo = _resolve_repo(project, args.repo, config)
    result = check_installed(
        repo,
        args.coordinates,
        args.dependencies,
        Path(args.binary).expanduser().resolve(),
        _optional_path(args.sources),
        metadata_prefix=config.metadata_prefix,
    )
    if args.json:
        _write_json({"fresh": result.fresh, "stale": list(result.stale)})
    elif result.fresh:
        sys.stdout.write("up-to-date\n")
    for name in result.stale:
        sys.stderr.write(f"stale: {name}\n")
    return 0 if result.fresh else 1


def _handle_descriptor(args: argparse.Namespace) -> int:
    module = parse_module(args.coordinates)
    dependencies = [parse_module(dependency) for dependency in args.dependencies]
    sys.stdout.write(render_ivy_module(module, dependencies))
    sys.stdout.write("\n")
    return 0


def _handle_repository(args: argparse.Namespace) -> int:
    _write_json(setup_ivy_repository(args.url).model_dump())
    return 0


def main(argv: list[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)

    try:
        if args.command == "descriptor":
            return _handle_descriptor(args)

        if args.command == "repository":
            return _handle_repository(args)

        config = load_config(Path(args.project).expanduser())
        _configure_logging(args, config)

        if args.command == "install":
            return _handle_install(args, config)

        if args.command == "check":
            return _handle_check(args, config)
    except PublishError as exc:
        sys.stderr.write(f"error: {exc}\n")
        return 2

    raise AssertionError


if __name__ == "__main__":
    raise SystemExit(main())
