"""Declared selection record I/O.

The record holds the profile ids the user last confirmed together with
the current configuration. It is read tolerantly: a missing file means
a fresh system, and a damaged file degrades to "selection unknown" so
that reconciliation can fall back to the configuration-key heuristic.
The ``profiles`` and ``configuration`` sections are validated on their
own, so a damaged selection never discards a readable configuration.
"""

import json
import logging
import os
from pathlib import Path
from tempfile import NamedTemporaryFile
from typing import Annotated, Any

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, TypeAdapter, ValidationError

from profilectl.core.paths import get_record_path
from profilectl.models.state import DeclaredRecord

logger = logging.getLogger(__name__)


class RecordError(Exception):
    """Raised when the declared record cannot be written."""


class SelectedProfiles(BaseModel):
    """The ``profiles`` section of the record."""

    model_config = ConfigDict(extra="ignore")

    selected: Annotated[list[str], Field(description="Confirmed profile ids")] = []


def _stringify_values(value: object) -> object:
    """Coerce scalar configuration values to strings, dropping nulls."""
    if not isinstance(value, dict):
        return value
    result: dict[Any, Any] = {}
    for key, item in value.items():
        if item is None:
            continue
        if isinstance(item, bool):
            result[key] = "true" if item else "false"
        elif isinstance(item, int | float):
            result[key] = str(item)
        else:
            result[key] = item
    return result


# ``profiles`` is either {"selected": [...]} or, in records written by
# older versions, a bare list of ids.
_PROFILES = TypeAdapter(SelectedProfiles | list[str] | None)
_CONFIGURATION = TypeAdapter(Annotated[dict[str, str], BeforeValidator(_stringify_values)])


def _selected(profiles: SelectedProfiles | list[str] | None) -> tuple[str, ...] | None:
    if profiles is None:
        return None
    if isinstance(profiles, SelectedProfiles):
        return tuple(profiles.selected)
    return tuple(profiles)


def load_record(path: Path | None = None) -> DeclaredRecord | None:
    """Load the declared selection record.

    Args:
        path: Path to the record file. If None, uses the default record path.

    Returns:
        DeclaredRecord, or None if the file does not exist. A corrupt file
        yields a record whose selection is unavailable. A malformed section
        is dropped on its own while the other section is kept.
    """
    record_path = path or get_record_path()

    if not record_path.exists():
        logger.debug("No declared record at %s", record_path)
        return None

    try:
        with record_path.open(encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, json.JSONDecodeError, UnicodeDecodeError) as e:
        logger.warning("Ignoring unreadable declared record %s: %s", record_path, e)
        return DeclaredRecord(selected=None)

    if not isinstance(data, dict):
        logger.warning(
            "Ignoring malformed declared record %s: expected an object, got %s",
            record_path,
            type(data).__name__,
        )
        return DeclaredRecord(selected=None)

    selected: tuple[str, ...] | None = None
    try:
        selected = _selected(_PROFILES.validate_python(data.get("profiles")))
    except ValidationError as e:
        logger.warning("Ignoring malformed profiles in declared record %s: %s", record_path, e)

    configuration: dict[str, str] = {}
    try:
        configuration = _CONFIGURATION.validate_python(data.get("configuration", {}))
    except ValidationError as e:
        logger.warning(
            "Ignoring malformed configuration in declared record %s: %s", record_path, e
        )

    return DeclaredRecord(selected=selected, configuration=configuration)


def save_record(record: DeclaredRecord, path: Path | None = None) -> Path:
    """Save the declared selection record as JSON.

    The file is written atomically by first writing to a temporary file
    in the same directory and then using os.replace() for atomic rename.

    Args:
        record: Record to save.
        path: Path to save to. If None, uses the default record path.

    Returns:
        Path where the record was saved.

    Raises:
        RecordError: If the file cannot be written.
    """
    record_path = path or get_record_path()
    record_path.parent.mkdir(parents=True, exist_ok=True)

    data = {
        "profiles": {"selected": list(record.selected or ())},
        "configuration": dict(record.configuration),
    }

    tmp_path: Path | None = None
    try:
        with NamedTemporaryFile(
            mode="w",
            encoding="utf-8",
            dir=record_path.parent,
            delete=False,
            suffix=".tmp",
        ) as f:
            tmp_path = Path(f.name)
            json.dump(data, f, indent=2, sort_keys=True)
            f.write("\n")
        os.replace(str(tmp_path), str(record_path))
    except OSError as e:
        if tmp_path is not None and tmp_path.exists():
            tmp_path.unlink()
        raise RecordError(f"Failed to write declared record: {e}") from e

    return record_path
