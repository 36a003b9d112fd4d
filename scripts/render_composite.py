#!/usr/bin/env python3
"""Render a composite catalog template.

Usage:
    # Local configuration files
    python scripts/render_composite.py \
        --catalog-config catalogs.yaml \
        --composite-config contributions.yaml

    # Remote catalog configuration, JSON output, validate each component
    python scripts/render_composite.py \
        --catalog-config https://example.com/catalogs.yaml \
        --composite-config contributions.yaml \
        --output json --validate
"""

import argparse
import logging
import os
import sys
from pathlib import Path

# Add project root to path for imports
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from catalog_composer.composite import CompositeTemplate, fetch_catalog_config  # noqa: E402
from catalog_composer.composite.template import DEFAULT_OUTPUT_TYPE  # noqa: E402
from catalog_composer.errors import CompositeTemplateError  # noqa: E402

LOG_LEVEL = os.environ.get("CATALOG_COMPOSER_LOG_LEVEL", "INFO")


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(
        description="Render catalog content from a composite template",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument("--catalog-config", required=True, help="Catalog configuration file path or URL")
    parser.add_argument("--composite-config", required=True, help="Composite configuration file path or URL")
    parser.add_argument("--output", "-o", choices=["yaml", "json"], default=DEFAULT_OUTPUT_TYPE, help="Output format")
    parser.add_argument("--validate", action="store_true", help="Validate each component after building it")
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=LOG_LEVEL.upper(),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    try:
        with fetch_catalog_config(args.catalog_config) as catalog_file, \
                fetch_catalog_config(args.composite_config) as contribution_file:
            template = CompositeTemplate(
                catalog_file=catalog_file,
                contribution_file=contribution_file,
                output_type=args.output,
            )
            template.render(validate=args.validate)
    except CompositeTemplateError as e:
        print(f"Error: {e}", file=sys.stderr)
        cause = e.__cause__
        while cause is not None:
            print(f"  caused by: {cause}", file=sys.stderr)
            cause = cause.__cause__
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
