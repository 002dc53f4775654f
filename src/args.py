"""Argument parsing functionality for the retailer CLI."""

import argparse


def _add_common_output(parser):
    parser.add_argument("-o", "--output",
                        dest="OUTPUT",
                        help="Path to output file (JSON). Prints to stdout when omitted.",
                        action="store",
                        type=str)


def parse_args(argv=None):
    """Parses the arguments passed to the program."""
    parser = argparse.ArgumentParser(
        prog="retailer",
        description=(
            "Retailer - solution dependency resolution and composition assembly"
        ),
        add_help=True,
    )

    parser.add_argument("--loglevel",
                        dest="LOG_LEVEL",
                        help="Set the logging level",
                        action="store",
                        type=str,
                        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'],
                        default='INFO')
    parser.add_argument("--logfile",
                        dest="LOG_FILE",
                        help="Log output file",
                        action="store",
                        type=str)
    parser.add_argument("-c", "--config",
                        dest="CONFIG",
                        help="Path to configuration file (YAML)",
                        action="store",
                        type=str)
    parser.add_argument("--vendor",
                        dest="VENDOR",
                        help="Vendor prefix for solution package names",
                        action="store",
                        type=str)
    parser.add_argument("--parts-url",
                        dest="PARTS_REPO_URL",
                        help="Parts repository URL",
                        action="store",
                        type=str)
    parser.add_argument("--parts-api-key",
                        dest="PARTS_API_KEY",
                        help="Parts repository API key",
                        action="store",
                        type=str)
    parser.add_argument("--resolver-url",
                        dest="RESOLVER_URL",
                        help="Dependency resolver endpoint used for dry runs",
                        action="store",
                        type=str)

    subparsers = parser.add_subparsers(dest="ACTION", required=True)

    resolve = subparsers.add_parser("resolve",
                                    help="Resolve solutions (flatten and apply exclusions)")
    resolve.add_argument("-s", "--store",
                         dest="STORE",
                         help="Post Store file (YAML)",
                         action="store",
                         type=str,
                         required=True)
    resolve.add_argument("--slug",
                         dest="SLUGS",
                         help="Solution slug to resolve (can be used multiple times)",
                         action="append",
                         type=str,
                         default=[])
    resolve.add_argument("--id",
                         dest="IDS",
                         help="Solution record id to resolve (can be used multiple times)",
                         action="append",
                         type=int,
                         default=[])
    resolve.add_argument("--context",
                         dest="CONTEXT",
                         help="Priority context file (YAML or JSON mapping package name to context)",
                         action="store",
                         type=str)
    _add_common_output(resolve)

    compose = subparsers.add_parser("compose",
                                    help="Build the manifest of a composition")
    compose.add_argument("-s", "--store",
                         dest="STORE",
                         help="Post Store file (YAML)",
                         action="store",
                         type=str,
                         required=True)
    compose.add_argument("--composition",
                         dest="COMPOSITION",
                         help="Composition id",
                         action="store",
                         type=int,
                         required=True)
    compose.add_argument("--dry-run",
                         dest="DRY_RUN",
                         help="Validate the manifest against the dependency resolver",
                         action="store_true")
    compose.add_argument("--error-on-warnings",
                         dest="ERROR_ON_WARNINGS",
                         help="Exit with a non-zero status code if the composition needs review.",
                         action="store_true")
    _add_common_output(compose)

    parts = subparsers.add_parser("parts",
                                  help="Show the parts catalogue")
    parts.add_argument("--refresh",
                       dest="REFRESH",
                       help="Ignore the cache and fetch the catalogue",
                       action="store_true")
    _add_common_output(parts)

    return parser.parse_args(argv)
