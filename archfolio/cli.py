#!/usr/bin/env python3
"""
Command line tools for site configuration files.

    archfolio validate config/archfolio.json
    archfolio generate config/archfolio.json --no-examples
    archfolio preview config/archfolio.json config/archfolio.local.json
    archfolio merge config/merged.json config/base.json config/local.json
    archfolio backup config/archfolio.json
"""

import argparse
import json
import sys
from pathlib import Path

from archfolio.config.core.manager import ConfigurationManager, ManagerOptions
from archfolio.config.core.provider import ConfigSource, SourceLoader
from archfolio.config.defaults import generate_starter_config
from archfolio.config.environment import EnvironmentAdapter
from archfolio.config.files import DEFAULT_BACKUP_DIR, backup_config, merge_config_files, write_document
from archfolio.config.presets import list_available_presets
from archfolio.config.template import extract_variables
from archfolio.core.exceptions import ConfigurationError, SourceLoadError
from archfolio.core.enums import SourceType
from archfolio.logger import get_archfolio_logger, setup_logging


def _print_errors(errors):
    for error in errors:
        print(f"  - {error}")


def cmd_validate(args) -> int:
    """Resolve templates in one configuration document and validate it."""
    environment = EnvironmentAdapter()
    source = ConfigSource.file(args.path, 10)
    loader = SourceLoader(environment)

    try:
        loader.load_from_source(source)
    except SourceLoadError as e:
        print(f"Failed to read configuration: {e}")
        return 1

    sources = [ConfigSource.default(0), source] if args.with_defaults else [source]
    manager = ConfigurationManager(
        ManagerOptions(sources=sources, apply_tier_defaults=False),
        loader=loader,
    )
    loaded = manager.initialize()

    if loaded.errors:
        print(f"invalid: {len(loaded.errors)} error(s)")
        _print_errors(loaded.errors)
        return 1

    print("valid")
    if loaded.warnings:
        print("warnings:")
        _print_errors(loaded.warnings)
    return 0


def cmd_generate(args) -> int:
    """Write the starter document."""
    path = Path(args.path)
    if path.exists() and not args.force:
        print(f"Refusing to overwrite existing file: {path} (use --force)")
        return 1

    try:
        write_document(path, generate_starter_config(include_examples=not args.no_examples))
    except OSError as e:
        print(f"Failed to write {path}: {e}")
        return 1

    print(f"Configuration template generated: {path}")
    print("Next steps:")
    print("1. Edit the generated file with your information")
    print("2. Set ARCHFOLIO_PUBLIC_SITE_URL and the other environment variables")
    print(f"3. Run `archfolio validate {path}` to check your configuration")
    return 0


def cmd_preview(args) -> int:
    """Print template expressions and the resolved tree."""
    if args.sources:
        sources = [ConfigSource.default(0)] + [
            ConfigSource.file(locator, 10 + index) for index, locator in enumerate(args.sources)
        ]
        options = ManagerOptions(sources=sources, environment=args.env, enable_templates=True,
                                 enable_validation=False)
    else:
        options = ManagerOptions(environment=args.env, enable_templates=True, enable_validation=False)

    manager = ConfigurationManager(options)
    loaded = manager.initialize()

    if args.sources and not any(source.type is SourceType.FILE for source in loaded.sources):
        print("No configuration source could be read:")
        _print_errors(loaded.warnings)
        return 1

    print("Template variables found:")
    for expression in extract_variables(manager.raw_config):
        print(f"  - {expression}")
    print()
    print("Resolved configuration:")
    print(json.dumps(loaded.config, indent=2, default=str))
    return 0


def cmd_merge(args) -> int:
    """Deep-merge several files into one, later files winning."""
    try:
        _, warnings = merge_config_files(args.inputs, args.output)
    except (ConfigurationError, OSError) as e:
        print(f"Merge failed: {e}")
        return 1

    for warning in warnings:
        print(f"warning: {warning}")
    print(f"Merged {len(args.inputs) - len(warnings)} file(s) into {args.output}")
    return 0


def cmd_backup(args) -> int:
    """Copy a configuration file into the backup directory."""
    try:
        target = backup_config(args.path, backup_dir=args.dir)
    except (SourceLoadError, OSError) as e:
        print(f"Backup failed: {e}")
        return 1

    print(f"Configuration backed up to {target}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="archfolio", description="Portfolio site configuration tools")
    parser.add_argument("--log-level", default="WARNING",
                        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
                        help="Log level (default: WARNING)")
    parser.add_argument("--json-logs", action="store_true", help="Render logs as JSON lines")

    subparsers = parser.add_subparsers(dest="command", required=True)

    validate = subparsers.add_parser("validate", help="Validate a configuration file")
    validate.add_argument("path", help="JSON, YAML or Python configuration file")
    validate.add_argument("--with-defaults", action="store_true",
                          help="Layer the document over the built-in defaults before validating")
    validate.set_defaults(handler=cmd_validate)

    generate = subparsers.add_parser("generate", help="Write a starter configuration file")
    generate.add_argument("path", help="Output file; .yaml/.yml writes YAML, anything else JSON")
    generate.add_argument("--no-examples", action="store_true", help="Omit the example project and job")
    generate.add_argument("--force", action="store_true", help="Overwrite an existing file")
    generate.set_defaults(handler=cmd_generate)

    preview = subparsers.add_parser("preview", help="Show template variables and the resolved configuration")
    preview.add_argument("sources", nargs="*", help="Configuration files, lowest priority first")
    preview.add_argument("--env", choices=list_available_presets(), default=None,
                         help="Environment preset (default: ARCHFOLIO_ENV)")
    preview.set_defaults(handler=cmd_preview)

    merge = subparsers.add_parser("merge", help="Deep-merge configuration files into one")
    merge.add_argument("output", help="Merged file; .yaml/.yml writes YAML, anything else JSON")
    merge.add_argument("inputs", nargs="+", help="Files to merge, lowest priority first")
    merge.set_defaults(handler=cmd_merge)

    backup = subparsers.add_parser("backup", help="Copy a configuration file to a timestamped backup")
    backup.add_argument("path", help="Configuration file to back up")
    backup.add_argument("--dir", default=DEFAULT_BACKUP_DIR,
                        help=f"Backup directory (default: {DEFAULT_BACKUP_DIR})")
    backup.set_defaults(handler=cmd_backup)

    return parser


def main(argv=None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    setup_logging(json_logs=args.json_logs, log_level=args.log_level)
    logger = get_archfolio_logger().bind(component="cli")
    logger.debug("Running command", command=args.command)

    return args.handler(args)


if __name__ == "__main__":
    sys.exit(main())
