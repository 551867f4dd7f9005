"""
Maintenance helpers for configuration files on disk: writing documents,
merging several files into one and taking timestamped backups.
"""

import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

import yaml

from archfolio.core.exceptions import ConfigurationError, SourceLoadError
from archfolio.logger import get_archfolio_logger

from .core.provider import ConfigSource, SourceLoader
from .core.tree import deep_merge

YAML_SUFFIXES = ('.yaml', '.yml')
DEFAULT_BACKUP_DIR = "config/backups"

logger = get_archfolio_logger().bind(component="config_files")


def write_document(path, document: Dict[str, Any]) -> Path:
    """
    Write `document` to `path`, creating parent directories.

    `.yaml`/`.yml` paths get YAML, anything else pretty-printed JSON.

    Raises:
        OSError: The file or its directory could not be written
    """
    path = Path(path)
    if path.suffix.lower() in YAML_SUFFIXES:
        text = yaml.safe_dump(document, default_flow_style=False, sort_keys=False, indent=2)
    else:
        text = json.dumps(document, indent=2) + "\n"

    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding='utf-8')
    return path


def merge_config_files(input_paths: Sequence[str], output_path: str,
                       loader: Optional[SourceLoader] = None) -> Tuple[Dict[str, Any], List[str]]:
    """
    Deep-merge configuration files in order and write the result.

    Later files win. Files that cannot be read are skipped with a warning.

    Returns:
        The merged document and the warnings for skipped inputs

    Raises:
        ConfigurationError: None of the inputs could be read; nothing is written
        OSError: The output could not be written
    """
    loader = loader or SourceLoader()
    documents, warnings = [], []

    for index, locator in enumerate(input_paths):
        try:
            documents.append(loader.load_from_source(ConfigSource.file(locator, index)))
        except SourceLoadError as e:
            warning = f"Skipping '{locator}': {e}"
            logger.warning("Skipping unreadable config file", path=locator, error=str(e))
            warnings.append(warning)

    if not documents:
        raise ConfigurationError(config_key=str(output_path), reason="no input file could be read")

    merged = deep_merge(*documents)
    write_document(output_path, merged)
    logger.info("Configuration files merged", inputs=len(documents), skipped=len(warnings),
                output=str(output_path))
    return merged, warnings


def backup_timestamp(moment: datetime) -> str:
    """ISO-8601 UTC timestamp with ':' and '.' swapped for '-', safe in file names."""
    moment = moment.astimezone(timezone.utc)
    return moment.strftime('%Y-%m-%dT%H-%M-%S-') + f"{moment.microsecond // 1000:03d}Z"


def backup_config(config_path: str, backup_dir: str = DEFAULT_BACKUP_DIR,
                  loader: Optional[SourceLoader] = None,
                  clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc)) -> Path:
    """
    Copy a configuration file to `<backup_dir>/<name>-<timestamp>.json`.

    Raises:
        SourceLoadError: The configuration file could not be read
        OSError: The backup could not be written
    """
    loader = loader or SourceLoader()
    document = loader.load_from_source(ConfigSource.file(config_path))

    target = Path(backup_dir) / f"{Path(config_path).stem}-{backup_timestamp(clock())}.json"
    write_document(target, document)
    logger.info("Configuration backed up", source=str(config_path), backup=str(target))
    return target
