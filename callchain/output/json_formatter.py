"""JSON output formatter."""

import json
from typing import Any


def to_json(data: Any) -> str:
    """Serialize report data with stable, human-readable formatting."""
    return json.dumps(data, indent=2, ensure_ascii=False)


def print_json(data: Any):
    """Print data as formatted JSON to stdout."""
    print(to_json(data))
