"""Retailer - solution dependency resolution and composition assembly.

    Returns:
        int: Exit code
"""
import json
import logging
import sys

from constants import Constants, ExitCodes, _load_yaml_config
from common.logging_utils import configure_logging, extra_context, is_debug_enabled
from args import parse_args
from cli_config import apply_overrides
from composition.dry_run import HttpDependencyResolver
from composition.manager import CompositionManager
from parts.catalogue import PartsCatalogue
from repository.multi import MultiRepository
from repository.processed import ProcessedRepository
from repository.store import StoreRepository
from solutions.errors import InvalidPackageError, InvalidVendorError
from solutions.factory import SolutionFactory
from store.post_store import InMemoryPostStore


def load_store(file_name):
    """Loads the Post Store from a YAML file.

    Args:
        file_name (str): Store file path.

    Returns:
        InMemoryPostStore: The loaded store.
    """
    try:
        return InMemoryPostStore.from_yaml(file_name)
    except FileNotFoundError as e:
        logging.error("File not found: %s, aborting", e)
        sys.exit(ExitCodes.FILE_ERROR.value)
    except (OSError, ValueError) as e:
        logging.error("Store file couldn't be loaded: %s, aborting", e)
        sys.exit(ExitCodes.FILE_ERROR.value)


def load_context(file_name):
    """Loads a priority context file (YAML or JSON) mapping package names to context."""
    import yaml  # pylint: disable=import-outside-toplevel

    try:
        with open(file_name, encoding="utf-8") as file:
            data = yaml.safe_load(file) or {}
    except OSError as e:
        logging.error("Context file couldn't be read: %s, aborting", e)
        sys.exit(ExitCodes.FILE_ERROR.value)
    except yaml.YAMLError as e:
        logging.error("Context file is not valid YAML/JSON: %s, aborting", e)
        sys.exit(ExitCodes.FILE_ERROR.value)
    if not isinstance(data, dict):
        logging.error("Context file must contain a mapping of package names, aborting")
        sys.exit(ExitCodes.FILE_ERROR.value)
    return data


def create_factory(store):
    """Creates the solution factory, exiting on an invalid vendor."""
    try:
        return SolutionFactory(store, Constants.VENDOR)
    except InvalidVendorError as e:
        logging.error("%s", e)
        sys.exit(ExitCodes.CONFIG_ERROR.value)


def write_output(data, path=None):
    """Writes JSON output to a file, or to stdout when no path is given."""
    if not path:
        print(json.dumps(data, ensure_ascii=False, indent=2))
        return
    try:
        with open(path, 'w', encoding='utf-8') as file:
            json.dump(data, file, ensure_ascii=False, indent=4)
        logging.info("JSON file has been successfully exported at: %s", path)
    except OSError as e:
        logging.error("JSON file couldn't be written to disk: %s", e)
        sys.exit(ExitCodes.FILE_ERROR.value)


def run_resolve(args):
    """Resolves the selected solutions and prints them.

    Solutions selected by id and by slug are merged; with neither, every
    solution in the store is resolved.
    """
    store = load_store(args.STORE)
    factory = create_factory(store)

    sources = []
    if args.IDS:
        sources.append(StoreRepository(factory, {"post_ids": args.IDS}))
    if args.SLUGS:
        sources.append(StoreRepository(factory, {"slug": args.SLUGS}))
    if not sources:
        sources.append(StoreRepository(factory))
    context = load_context(args.CONTEXT) if args.CONTEXT else {}

    solutions = ProcessedRepository(MultiRepository(sources), factory, context).all()
    logging.info("Resolved %d solutions.", len(solutions))
    write_output([s.to_dict() for s in solutions.values()], args.OUTPUT)
    return ExitCodes.SUCCESS


def run_compose(args):
    """Builds a composition manifest, optionally validating it with a dry run."""
    store = load_store(args.STORE)
    factory = create_factory(store)
    resolver = HttpDependencyResolver(Constants.RESOLVER_URL) if Constants.RESOLVER_URL else None
    catalogue = PartsCatalogue() if Constants.PARTS_REPO_URL else None
    manager = CompositionManager(store, factory, resolver=resolver, parts_catalogue=catalogue)

    composition = manager.get_composition(args.COMPOSITION)
    if composition is None:
        logging.error("Composition #%s not found in %s", args.COMPOSITION, args.STORE)
        return ExitCodes.FILE_ERROR

    if not args.DRY_RUN:
        write_output(manager.build_manifest(composition).to_dict(), args.OUTPUT)
        return ExitCodes.SUCCESS

    report = manager.validate(composition)
    for warning in report.warnings:
        logging.warning(warning)
    write_output(report.to_dict(), args.OUTPUT)
    if report.needs_review and args.ERROR_ON_WARNINGS:
        return ExitCodes.EXIT_WARNINGS
    return ExitCodes.SUCCESS


def run_parts(args):
    """Prints the parts catalogue."""
    if not Constants.PARTS_REPO_URL:
        logging.error("No parts repository URL configured (parts.repo_url or --parts-url)")
        return ExitCodes.CONFIG_ERROR
    catalogue = PartsCatalogue()
    parts = catalogue.get_parts(force=args.REFRESH)
    write_output(parts, args.OUTPUT)
    if catalogue.last_refresh_ok is False and not parts:
        return ExitCodes.CONNECTION_ERROR
    return ExitCodes.SUCCESS


ACTIONS = {
    "resolve": run_resolve,
    "compose": run_compose,
    "parts": run_parts,
}


def main(argv=None):
    """Main function of the program."""
    logger = logging.getLogger(__name__)

    args = parse_args(argv)
    configure_logging(args.LOG_LEVEL)
    if getattr(args, "LOG_FILE", None):
        handler = logging.FileHandler(args.LOG_FILE, encoding="utf-8")
        handler.setFormatter(logging.Formatter(Constants.LOG_FORMAT))
        logging.getLogger().addHandler(handler)

    _load_yaml_config(args.CONFIG)
    apply_overrides(args)

    if is_debug_enabled(logger):
        logger.debug(
            "CLI start",
            extra=extra_context(event="function_entry", component="cli", action=args.ACTION)
        )

    try:
        code = ACTIONS[args.ACTION](args)
    except (InvalidVendorError, InvalidPackageError) as e:
        logging.error("Configuration error: %s", e)
        code = ExitCodes.CONFIG_ERROR

    if is_debug_enabled(logger):
        logger.debug(
            "CLI finished",
            extra=extra_context(event="function_exit", component="cli", action=args.ACTION, outcome=code.name)
        )
    sys.exit(code.value)


if __name__ == "__main__":
    main()
