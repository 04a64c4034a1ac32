"""
JSON importer for offline replay of complaint payloads.
"""

import json
from pathlib import Path
from typing import Any, Dict, List, Union
import logging

from ..sources.nearby import parse_nearby_response

logger = logging.getLogger(__name__)


class JSONImporter:
    """Load raw complaint payloads from JSON files."""

    def import_file(self, file_path: Union[str, Path]) -> List[Dict[str, Any]]:
        file_path = Path(file_path)
        if not file_path.exists():
            raise FileNotFoundError(f"JSON file not found: {file_path}")

        with open(file_path, 'r', encoding='utf-8') as f:
            data = json.load(f)

        return self.import_data(data)

    def import_data(self, data: Any) -> List[Dict[str, Any]]:
        """Accept an array, a wrapped array, a nearby response or a single complaint."""
        if isinstance(data, dict):
            if "results" in data:
                data = data["results"]
            elif "complaints" not in data and "data" not in data:
                # Single complaint
                data = [data]

        payloads = parse_nearby_response(data)
        logger.info(f"Imported {len(payloads)} complaints")
        return payloads
