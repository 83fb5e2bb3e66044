from __future__ import annotations

from typing import Any, Dict, List

from pmt_export.utils.errors import ConfigurationError

USAGE = """Usage:

python main.py \\
\t\t-pmt=exports/pmt.json \\
\t\t-target=data/pmt_metadata.duckdb \\
\t\t-json=pmt_metadata.json
"""

# config key -> command line flag
REQUIRED_SETTINGS = {
    "source_path": "-pmt",
    "target_path": "-target",
    "json_path": "-json",
}


def run_pre_flight_checks(config: Dict[str, Any]) -> None:
    """
    Verify that the export is fully configured before any store is touched.

    Args:
        config: The application configuration dictionary.

    Raises:
        ConfigurationError: If any required setting is missing or blank.
    """
    settings = config.get("pmt", {})
    missing: List[str] = []
    for key, flag in REQUIRED_SETTINGS.items():
        value = settings.get(key)
        if not isinstance(value, str) or not value.strip():
            missing.append(f"{key} ({flag}=)")

    if missing:
        raise ConfigurationError("Missing required settings: " + ", ".join(missing))
