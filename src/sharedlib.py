"""sharedlib - Jenkins shared library build conventions

    Returns:
        int: Exit code
"""
import csv
import json
import logging
import sys

from args import parse_args
from buildmodel.errors import BuildError, ConfigurationError, ResolutionError
from buildmodel.memory import InMemoryBuild
from cli_config import build_extension
from common.logging_utils import configure_logging, extra_context, is_debug_enabled
from constants import ExitCodes
from convention.plugin import SharedLibraryPlugin
from resolution.catalog import CatalogResolver
from resolution.maven import MavenRepositoryResolver

CSV_HEADERS = ["Configuration", "Group", "Artifact", "Version", "Classifier", "Extension", "File"]


def create_resolver(args):
    """Pick the artifact resolver from the CLI arguments.

    Args:
        args: Parsed CLI arguments.

    Returns:
        CatalogResolver when ``--catalog`` is given, otherwise MavenRepositoryResolver.
    """
    if getattr(args, "CATALOG", None):
        return CatalogResolver.from_file(args.CATALOG)
    return MavenRepositoryResolver(cache_dir=args.CACHE_DIR, download=args.DOWNLOAD)


def create_build(args):
    """Create the build model with the shared library conventions applied."""
    extension = build_extension(args.CONFIG, args.OVERRIDES)
    build = InMemoryBuild(
        project_dir=args.PROJECT_DIR,
        resolver=create_resolver(args),
        build_dir=args.BUILD_DIR,
    )
    SharedLibraryPlugin().apply(build, extension)
    return build


def export_json(results, path):
    """Exports resolved artifacts to a JSON file.

    Args:
        results (dict): Configuration name to list of resolved artifacts.
        path (str): File path to export the JSON.
    """
    data = {name: [artifact.to_dict() for artifact in artifacts] for name, artifacts in results.items()}
    try:
        with open(path, "w", encoding="utf-8") as file:
            json.dump(data, file, ensure_ascii=False, indent=4)
        logging.info("JSON file saved successfully.")
    except OSError as e:
        logging.error("JSON file couldn't be written to disk: %s", e)
        sys.exit(ExitCodes.FILE_ERROR.value)


def export_csv(results, path):
    """Exports resolved artifacts to a CSV file.

    Args:
        results (dict): Configuration name to list of resolved artifacts.
        path (str): File path to export the CSV.
    """
    rows = [CSV_HEADERS]
    for name, artifacts in results.items():
        for artifact in artifacts:
            row = artifact.to_dict()
            rows.append([
                name, row["group"], row["artifact"], row["version"],
                row["classifier"] or "", row["extension"], row["file"],
            ])
    try:
        with open(path, "w", newline="", encoding="utf-8") as file:
            writer = csv.writer(file)
            writer.writerows(rows)
        logging.info("CSV file saved successfully.")
    except OSError as e:
        logging.error("CSV file couldn't be written to disk: %s", e)
        sys.exit(ExitCodes.FILE_ERROR.value)


def output_format(args):
    """Explicit --format, else inferred from the --output extension, else json."""
    if getattr(args, "OUTPUT_FORMAT", None):
        return args.OUTPUT_FORMAT
    if args.OUTPUT and args.OUTPUT.lower().endswith(".csv"):
        return "csv"
    return "json"


def _echo(args, line=""):
    if not args.QUIET:
        print(line)


def list_configurations(build, args):
    for name in build.configuration_names():
        config = build.configuration(name)
        flags = []
        if config.can_be_resolved:
            flags.append("resolvable")
        if config.can_be_consumed:
            flags.append("consumable")
        if not config.visible:
            flags.append("hidden")
        parents = [parent.name for parent in config.extends]
        line = f"{name} [{', '.join(flags) or 'declarable'}]"
        if parents:
            line += f" extends {', '.join(parents)}"
        _echo(args, line)
        if config.description:
            _echo(args, f"    {config.description}")


def resolve_configurations(build, args):
    """Resolve every requested configuration and print or export the artifacts."""
    if not args.targets:
        raise ConfigurationError("resolve needs at least one configuration name")
    results = {}
    for name in args.targets:
        results[name] = build.resolve(name)
    for name, artifacts in results.items():
        _echo(args, f"{name}:")
        for artifact in artifacts:
            _echo(args, f"    {artifact.coordinate.module_version}@{artifact.extension} -> {artifact.file}")
    if args.OUTPUT:
        if output_format(args) == "csv":
            export_csv(results, args.OUTPUT)
        else:
            export_json(results, args.OUTPUT)
    return results


def list_tasks(build, args):
    by_group = {}
    for task in build.tasks:
        by_group.setdefault(task.group or "other", []).append(task)
    for group in sorted(by_group):
        _echo(args, f"{group.capitalize()} tasks")
        for task in by_group[group]:
            line = f"    {task.name}"
            if task.description:
                line += f" - {task.description}"
            _echo(args, line)


def run_tasks(build, args):
    if not args.targets:
        raise ConfigurationError("run needs at least one task name")
    plan = build.tasks.run(args.targets)
    for task in plan:
        _echo(args, f"> Task :{task.name} {task.outcome}")
    return plan


COMMANDS = {
    "configurations": list_configurations,
    "resolve": resolve_configurations,
    "tasks": list_tasks,
    "run": run_tasks,
}


def main(argv=None):
    """Main function of the program."""
    logger = logging.getLogger(__name__)

    args = parse_args(argv)
    configure_logging(args.LOG_LEVEL, args.LOG_FILE)

    if is_debug_enabled(logger):
        logger.debug(
            "CLI start",
            extra=extra_context(event="function_entry", component="cli", action=args.command)
        )

    try:
        build = create_build(args)
        COMMANDS[args.command](build, args)
    except FileNotFoundError as e:
        logging.error("File not found: %s, aborting", e)
        sys.exit(ExitCodes.FILE_ERROR.value)
    except ResolutionError as e:
        logging.error("%s", e)
        sys.exit(ExitCodes.RESOLUTION_ERROR.value)
    except BuildError as e:
        logging.error("%s", e)
        sys.exit(ExitCodes.CONFIGURATION_ERROR.value)

    if is_debug_enabled(logger):
        logger.debug(
            "CLI finished",
            extra=extra_context(event="function_exit", component="cli", action=args.command, outcome="success")
        )
    sys.exit(ExitCodes.SUCCESS.value)


if __name__ == "__main__":
    main()
