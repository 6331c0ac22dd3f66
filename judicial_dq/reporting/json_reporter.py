"""JSON report writer — persists plans, snapshots and run summaries to disk."""

from __future__ import annotations

import json
from pathlib import Path

from pydantic import BaseModel

from judicial_dq.logger import get_logger

logger = get_logger(__name__)


def save_json_report(
    model: BaseModel,
    output_dir: str | Path,
    prefix: str,
    identifier: str,
) -> Path:
    """Serialize ``model`` to ``<output_dir>/<prefix>_<identifier>.json``.

    Returns the path to the saved file.
    """
    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)

    path = output_dir / f"{prefix}_{identifier}.json"

    data = model.model_dump(mode="json")
    with open(path, "w", encoding="utf-8") as f:
        json.dump(data, f, indent=2, default=str)

    logger.info("JSON report saved", path=str(path), kind=prefix)
    return path


def list_json_reports(output_dir: str | Path, prefix: str) -> list[Path]:
    """Saved reports of one kind, newest first by name."""
    output_dir = Path(output_dir)
    if not output_dir.exists():
        return []
    return sorted(output_dir.glob(f"{prefix}_*.json"), reverse=True)
