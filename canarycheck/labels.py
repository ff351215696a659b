"""Label filtering and loading of mounted label files."""

from __future__ import annotations

import logging
import os
from typing import Mapping

log = logging.getLogger(__name__)

IGNORE_LABELS = (
    "pod-template-hash",
    "kustomize.toolkit.fluxcd.io",
)


def filter_labels(labels: Mapping[str, str]) -> dict[str, str]:
    """Drop labels whose key starts with any of :data:`IGNORE_LABELS`."""
    return {k: v for k, v in labels.items() if not k.startswith(IGNORE_LABELS)}


def load_from_file(path: str | os.PathLike) -> dict[str, str]:
    """Read ``key=value`` lines; a missing or unreadable file gives an empty mapping."""
    result: dict[str, str] = {}
    if not os.path.exists(path):
        log.info("No label file mounted at %s", path)
        return result
    try:
        with open(path, encoding="utf-8") as handle:
            lines = handle.read().splitlines()
    except OSError as exc:
        log.error("Failed to read label file (%s): %s", path, exc)
        return result
    for line in lines:
        parts = line.split("=")
        if len(parts) < 2:
            raise ValueError(f"malformed label line in {path}: {line!r}")
        result[parts[0]] = parts[1]
    return result