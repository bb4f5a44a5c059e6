import json
import os
from dataclasses import asdict
from datetime import datetime

from ring_traffic.metrics.types import SimulationResult


def _ensure_dir(path: str):
    os.makedirs(path, exist_ok=True)


def save_result_as_json(result: SimulationResult, output_dir: str) -> str:
    _ensure_dir(output_dir)
    ts = datetime.now().strftime("%Y%m%d_%H%M%S")
    label = result.config.get("label")
    prefix = f"{result.backend}_{label}" if label else result.backend
    path = os.path.join(output_dir, f"{prefix}_{ts}.json")

    with open(path, "w", encoding="utf-8") as f:
        json.dump(asdict(result), f, indent=2, ensure_ascii=False)

    return path
