"""Argument parsing functionality for sharedlib."""

import argparse
from constants import Constants


def parse_args(argv=None):
    """Parses the arguments passed to the program."""
    parser = argparse.ArgumentParser(
        prog="sharedlib",
        description=(
            "Apply the Jenkins shared library build conventions and inspect, "
            "resolve or run the resulting build"
        ),
        add_help=True,
    )

    parser.add_argument("command",
                        help="What to do: list configurations, resolve configurations, list tasks or run tasks",
                        action="store", type=str,
                        choices=Constants.COMMANDS)
    parser.add_argument("targets",
                        help="Configuration names (resolve) or task names (run)",
                        nargs="*",
                        default=[])

    parser.add_argument("--project-dir",
                        dest="PROJECT_DIR",
                        help="Shared library project directory (default: current directory)",
                        action="store",
                        type=str,
                        default=".")
    parser.add_argument("--build-dir",
                        dest="BUILD_DIR",
                        help="Build output directory (default: <project-dir>/build)",
                        action="store",
                        type=str)
    parser.add_argument("--catalog",
                        dest="CATALOG",
                        help="Resolve offline against a YAML/JSON module catalog instead of Maven repositories",
                        action="store",
                        type=str)
    parser.add_argument("--cache-dir",
                        dest="CACHE_DIR",
                        help="Directory for downloaded artifacts",
                        action="store",
                        type=str,
                        default=Constants.DEFAULT_CACHE_DIR)
    parser.add_argument("--download",
                        dest="DOWNLOAD",
                        help="Download resolved artifacts into the cache directory",
                        action="store_true")

    parser.add_argument("-o", "--output",
                        dest="OUTPUT",
                        help="Path to output file for resolved artifacts (JSON or CSV)",
                        action="store",
                        type=str)
    parser.add_argument("-f", "--format",
                        dest="OUTPUT_FORMAT",
                        help="Output format (json or csv). If not specified, inferred from --output extension; defaults to json.",
                        action="store",
                        type=str.lower,
                        choices=Constants.OUTPUT_FORMATS)

    parser.add_argument("--loglevel",
                        dest="LOG_LEVEL",
                        help="Set the logging level",
                        action="store",
                        type=str,
                        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'])
    parser.add_argument("--logfile",
                        dest="LOG_FILE",
                        help="Log output file",
                        action="store",
                        type=str)
    parser.add_argument("-q", "--quiet",
                        dest="QUIET",
                        help="Do not output to console.",
                        action="store_true")

    # Config file (general)
    parser.add_argument("-c", "--config",
                        dest="CONFIG",
                        help="Path to configuration file (YAML, YML, or JSON)",
                        action="store",
                        type=str)
    parser.add_argument("--set",
                        dest="OVERRIDES",
                        help="Override a sharedLibrary setting (KEY=VALUE format, can be used multiple times)",
                        action="append",
                        type=str,
                        default=[])

    return parser.parse_args(argv)
