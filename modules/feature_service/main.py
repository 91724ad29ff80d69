"""Feature Service Module Entry Point

Command-line interface for the simulated FeatureServer: runs a where-clause
or free-text query, lists changed features, or refreshes the feature cache,
and prints the JSON response.
"""

import argparse
import json
import logging
import sys
from typing import Any, Dict, Optional

from geoapi.config import ConfigLoader
from geoapi.exceptions import GeoAPIBaseException
from geoapi.utils import setup_logging
from .processor import FeatureServiceModule

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Smart GeoAPI - Simulated FeatureServer over spreadsheet snapshots"
    )
    parser.add_argument(
        "--environment",
        choices=["development", "production"],
        default="development",
        help="Environment to run against (default: development)"
    )
    parser.add_argument(
        "--config-dir",
        default=None,
        help="Directory holding environment_config.json and field_mapping.json"
    )
    action = parser.add_mutually_exclusive_group()
    action.add_argument("--where", help="Where-clause to query with (default: every feature)")
    action.add_argument("--ask", metavar="TEXT", help="Free-text request to interpret and query with")
    action.add_argument(
        "--detect-changes",
        action="store_true",
        help="List features whose geometry changed against the previous snapshot"
    )
    action.add_argument(
        "--refresh",
        action="store_true",
        help="Rebuild the feature set from the spreadsheet and report refresh counts"
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="With --refresh, compute the feature set without caching it"
    )
    parser.add_argument(
        "--format",
        choices=["esri", "geojson"],
        default=None,
        help="Response format (default: esri for queries, geojson for --detect-changes)"
    )
    return parser


def run(module: FeatureServiceModule, parsed_args: argparse.Namespace) -> Dict[str, Any]:
    """Execute the requested action and return its JSON-ready response."""
    if parsed_args.refresh:
        result = module.process(dry_run=parsed_args.dry_run)
        return {
            "success": result.success,
            "records_processed": result.records_processed,
            "errors": result.errors,
            "metadata": result.metadata,
            "execution_time": result.execution_time,
        }
    if parsed_args.detect_changes:
        return module.detect_changes(response_format=parsed_args.format or "geojson")
    if parsed_args.ask:
        return module.query_natural_language(parsed_args.ask, response_format=parsed_args.format or "esri")
    return module.query(parsed_args.where or "", response_format=parsed_args.format or "esri")


def main(args: Optional[list] = None) -> int:
    """Main entry point for the feature service module.
    
    Args:
        args: Command line arguments (defaults to sys.argv)
        
    Returns:
        Exit code (0 for success, non-zero for error)
    """
    parsed_args = build_parser().parse_args(args)
    
    config_loader = ConfigLoader(parsed_args.config_dir)
    module = FeatureServiceModule(config_loader, parsed_args.environment)
    
    try:
        settings = module.settings
        setup_logging(settings.environment, settings.log_level, log_format=settings.log_format)
        response = run(module, parsed_args)
    except GeoAPIBaseException as e:
        logger.error(f"Feature service request failed: {e}")
        print(json.dumps({"error": {"message": e.message, "details": e.context}}, default=str))
        return 1
    
    print(json.dumps(response, indent=2, default=str))
    if parsed_args.refresh and not response["success"]:
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
