"""
Entry point for the PMT metadata export.

Arguments follow the legacy tool and are case-insensitive::

    python main.py -pmt=exports/pmt.json -target=data/pmt_metadata.duckdb -json=pmt_metadata.json

Values not given on the command line are read from
``config/migration_config.json`` and then from the environment.
"""

import logging
import sys
from typing import Dict, List, Optional

from pmt_export.export_tool import PmtExportTool
from pmt_export.utils.errors import ConfigurationError, PmtExportError
from pmt_export.utils.pre_flight_checks import REQUIRED_SETTINGS, USAGE, run_pre_flight_checks

CONFIG_FILE = "config/migration_config.json"


def parse_args(args: List[str]) -> Dict[str, str]:
    """Read ``-pmt=``, ``-target=`` and ``-json=`` arguments."""
    settings: Dict[str, str] = {}
    for arg in args:
        lowered = arg.lower()
        for key, flag in REQUIRED_SETTINGS.items():
            prefix = flag + "="
            if lowered.startswith(prefix):
                settings[key] = arg[len(prefix):]
    return settings


def main(argv: Optional[List[str]] = None) -> int:
    """
    Main function to run the PMT metadata export.

    Returns the process exit status: ``0`` when every record was exported,
    ``1`` when a record failed or the run aborted, ``2`` on incomplete
    configuration.
    """
    logging.basicConfig(level=logging.INFO, format="[%(levelname)s] %(name)s: %(message)s")

    overrides = parse_args(sys.argv[1:] if argv is None else argv)
    tool = PmtExportTool({"pmt": overrides}, config_file=CONFIG_FILE)

    # Nothing is written, not even the run log, until the settings are complete
    try:
        run_pre_flight_checks(tool.config)
    except ConfigurationError as e:
        print(f"[ERROR] {e}")
        print(USAGE)
        return 2

    tool.log_message("Starting PMT metadata export.")
    try:
        result = tool.export_all()
    except PmtExportError as e:
        tool.log_message(f"Export aborted: {e}", level="ERROR")
        return 1

    tool.log_message(
        f"Export process finished: {result.exported} records exported, {result.failed} failed."
    )
    return 0 if result.ok else 1


if __name__ == "__main__":
    sys.exit(main())
