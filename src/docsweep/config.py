"""Optional per-docset configuration.

Looked up from `--config` or `.docsweep.yml` beside `docfx.json`; every key
falls back to the defaults below.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

from .core.errors import ScriptError
from .core.exit_codes import ERR_CONFIG
from .core.markers import find_project_root
from .core.scan import EXCLUDED_PARTS
from .core.schema import validate_payload

CONFIG_FILENAME = ".docsweep.yml"

DEFAULT_IMAGE_EXTENSIONS = (".png",)
DEFAULT_INCLUDE_DIR_NAMES = ("includes", "_shared")
DEFAULT_STRUCTURAL_TOPIC_NAMES = ("toc.md", "index.md")


@dataclass(frozen=True)
class SweepConfig:
    image_extensions: tuple[str, ...] = DEFAULT_IMAGE_EXTENSIONS
    include_dir_names: tuple[str, ...] = DEFAULT_INCLUDE_DIR_NAMES
    structural_topic_names: tuple[str, ...] = DEFAULT_STRUCTURAL_TOPIC_NAMES
    excluded_dirs: tuple[str, ...] = tuple(sorted(EXCLUDED_PARTS))
    source: Path | None = None

    def is_include_dir(self, name: str) -> bool:
        folded = name.casefold()
        return any(folded == candidate.casefold() for candidate in self.include_dir_names)

    def is_structural_topic(self, name: str) -> bool:
        folded = name.casefold()
        return any(folded == candidate.casefold() for candidate in self.structural_topic_names)

    def is_image(self, path: Path) -> bool:
        suffix = path.suffix.casefold()
        return any(suffix == ext.casefold() for ext in self.image_extensions)


def load_yaml(path: Path) -> Any:
    with path.open("r", encoding="utf-8") as handle:
        return yaml.safe_load(handle)


def _tuple(data: dict[str, Any], key: str, default: tuple[str, ...]) -> tuple[str, ...]:
    value = data.get(key)
    if value is None:
        return default
    return tuple(str(item) for item in value)


def load_config(path: Path) -> SweepConfig:
    try:
        data = load_yaml(path)
    except yaml.YAMLError as exc:
        raise ScriptError(f"{path}: invalid YAML: {exc}", ERR_CONFIG, kind="invalid_config") from exc
    except OSError as exc:
        raise ScriptError(f"{path}: unable to read config: {exc}", ERR_CONFIG, kind="invalid_config") from exc
    if data is None:
        data = {}
    validate_payload(data, "config.schema.json", ERR_CONFIG, source=path, kind="invalid_config")
    return SweepConfig(
        image_extensions=_tuple(data, "image_extensions", DEFAULT_IMAGE_EXTENSIONS),
        include_dir_names=_tuple(data, "include_dir_names", DEFAULT_INCLUDE_DIR_NAMES),
        structural_topic_names=_tuple(data, "structural_topic_names", DEFAULT_STRUCTURAL_TOPIC_NAMES),
        excluded_dirs=_tuple(data, "excluded_dirs", tuple(sorted(EXCLUDED_PARTS))),
        source=path,
    )


def resolve_config(input_dir: Path, explicit: Path | None = None) -> SweepConfig:
    if explicit is not None:
        if not explicit.is_file():
            raise ScriptError(f"config file not found: {explicit}", ERR_CONFIG, kind="missing_config")
        return load_config(explicit)
    root = find_project_root(input_dir)
    if root is not None and (root / CONFIG_FILENAME).is_file():
        return load_config(root / CONFIG_FILENAME)
    return SweepConfig()
