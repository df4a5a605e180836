"""Exporters for writing the wrapped summary to disk."""

import json
from pathlib import Path

from .models import WrappedStats


def to_json(stats: WrappedStats) -> str:
    """Serialize statistics to a JSON string."""
    return json.dumps(stats.to_dict(), indent=2)


def export_json(stats: WrappedStats, output_path: Path) -> Path:
    """Export statistics to stats.json in the output directory."""
    output_path = Path(output_path)
    output_path.mkdir(parents=True, exist_ok=True)

    json_file = output_path / "stats.json"
    with open(json_file, "w", encoding="utf-8") as f:
        f.write(to_json(stats))

    return json_file
