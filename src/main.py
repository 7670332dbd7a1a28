#!/usr/bin/env python3
"""Smart Set Engine - batch runner.

Imports scrape sessions, previews recipes against a session and generates
smart sets into the local database.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path

# Add project root directory to path
project_root = Path(__file__).parent.parent
if str(project_root) not in sys.path:
    sys.path.insert(0, str(project_root))

# Local imports
from src.config import config
from src.core.database import Database
from src.core.logging import logger, setup_logging
from src.core.property_store import ScrapeSession, session_from_dict
from src.integrations.host_api import HostApiClient
from src.integrations.set_output import SqliteSetOutput
from src.services.smart_sets.errors import HostError, SmartSetInputError
from src.services.smart_sets.inference import suggest_rules
from src.services.smart_sets.models import GroupingSpec, SmartSetRecipe
from src.services.smart_sets.packs import get_all_packs
from src.services.smart_sets.smart_set_manager import SmartSetEngine
from src.utils.recipe_store import RecipeStore
from src.version import __app_name__, __version__

__all__ = ["build_parser", "main"]


def build_parser() -> argparse.ArgumentParser:
    """Builds the command line parser."""
    parser = argparse.ArgumentParser(prog="smartsets", description=f"{__app_name__} batch runner")
    parser.add_argument("--version", action="version", version=f"{__app_name__} {__version__}")
    parser.add_argument("--db", type=Path, default=None, help="SQLite database (default: data dir)")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    sub = parser.add_subparsers(dest="command", required=True)

    imp = sub.add_parser("import-session", help="Import a scrape session from a JSON file")
    imp.add_argument("file", type=Path)

    sub.add_parser("sessions", help="List stored scrape sessions")

    for name, help_text in (("preview", "Evaluate a recipe and print a sample"), ("generate", "Generate a recipe")):
        cmd = sub.add_parser(name, help=help_text)
        cmd.add_argument("recipe", help="Recipe file, or a recipe name in the recipes directory")
        cmd.add_argument("--session", default=None, help="Session id (default: latest for the recipe profile)")
        cmd.add_argument("--live", action="store_true", help="Evaluate through the configured host API")

    packs = sub.add_parser("packs", help="List rule packs and their missing properties")
    packs.add_argument("--session", default=None)
    packs.add_argument("--save", action="store_true", help="Save pack recipes into the recipes directory")

    groups = sub.add_parser("groups", help="Smart grouping by one or two properties")
    groups.add_argument("--category", required=True)
    groups.add_argument("--property", required=True)
    groups.add_argument("--then-category", default="")
    groups.add_argument("--then-property", default="")
    groups.add_argument("--min-count", type=int, default=config.GROUPING_MIN_COUNT)
    groups.add_argument("--max-groups", type=int, default=config.GROUPING_MAX_GROUPS)
    groups.add_argument("--include-blanks", action="store_true")
    groups.add_argument("--generate", action="store_true", help="Create one search set per group")
    groups.add_argument("--folder", default=config.DEFAULT_FOLDER_PATH)
    groups.add_argument("--base-name", default="")
    groups.add_argument("--session", default=None)

    suggest = sub.add_parser("suggest", help="Suggest rules shared by a selection of items")
    suggest.add_argument("items", nargs="+", help="Selected item ids")
    suggest.add_argument("--max", type=int, default=10)
    suggest.add_argument("--session", default=None)

    return parser


def _load_session(db: Database, session_id: str | None, profile: str = "") -> ScrapeSession:
    session = db.load_session(session_id) if session_id else db.get_latest_session(profile or None)
    if session is None:
        msg = f"No scrape session found ({session_id or profile or 'latest'}). Import one first."
        raise LookupError(msg)
    logger.info("Using session %s", session.session_label)
    return session


def _load_recipe(store: RecipeStore, ref: str) -> SmartSetRecipe:
    path = Path(ref)
    if not path.exists():
        path = store.recipes_dir / (ref if ref.endswith(".json") else f"{ref}.json")
    return store.load(path)


def _cmd_import_session(db: Database, args: argparse.Namespace) -> int:
    data = json.loads(args.file.read_text(encoding="utf-8"))
    session = session_from_dict(data)
    count = db.save_session(session)
    db.commit()
    print(f"Imported session {session.session_id} ({session.session_label}): {count} entries")
    return 0


def _cmd_sessions(db: Database, _args: argparse.Namespace) -> int:
    for row in db.list_sessions():
        print(f"{row['session_id']}  {row['profile_name'] or '-':20}  items={row['items_scanned']}")
    return 0


def _cmd_recipe(db: Database, args: argparse.Namespace) -> int:
    store = RecipeStore(config.RECIPES_DIR)
    recipe = _load_recipe(store, args.recipe)
    session = _load_session(db, args.session, recipe.profile or config.DEFAULT_PROFILE)
    repository = HostApiClient.from_config(config) if args.live else None
    engine = SmartSetEngine(session, repository=repository, output=SqliteSetOutput(db))

    if args.command == "preview":
        result = engine.evaluate_live(recipe.rules) if args.live else engine.evaluate_fast(recipe.rules)
        if result is None:
            return 1
        print(f"{recipe.name}: {result.count} items" + (" (post-filtered)" if result.used_post_filter else ""))
        for item_id in result.sample(config.PREVIEW_SAMPLE_SIZE):
            print(f"  {item_id}")
        return 0

    handles = engine.generate(recipe)
    if handles is None:
        return 1
    for handle in handles:
        for name in handle.names:
            print(f"Created '{name}' in '{handle.folder_path}' ({handle.item_count} items)")
        for reason in handle.skipped:
            print(f"Skipped output: {reason}")
    return 0


def _cmd_packs(db: Database, args: argparse.Namespace) -> int:
    session = db.load_session(args.session) if args.session else db.get_latest_session()
    store = RecipeStore(config.RECIPES_DIR) if args.save else None
    for pack in get_all_packs():
        missing = pack.check_missing_properties(session)
        status = f"missing: {', '.join(missing)}" if missing else "ok"
        print(f"[{pack.category}] {pack.name}: {status}")
        if store is not None:
            for recipe in pack.build_recipes(config.DEFAULT_PROFILE):
                store.save(recipe)
    return 0


def _cmd_groups(db: Database, args: argparse.Namespace) -> int:
    session = _load_session(db, args.session, config.DEFAULT_PROFILE)
    grouping = GroupingSpec(
        enable_smart_grouping=True,
        group_by_category=args.category,
        group_by_property=args.property,
        use_then_by=bool(args.then_category and args.then_property),
        then_by_category=args.then_category,
        then_by_property=args.then_property,
        max_groups=args.max_groups,
        min_count=args.min_count,
        include_blanks=args.include_blanks,
    )
    engine = SmartSetEngine(session, output=SqliteSetOutput(db))
    rows = engine.build_groups(grouping)
    for row in rows:
        print(f"{row.count:6d}  {row.display_key}")

    if args.generate:
        handle = engine.generate_grouped(grouping, rows, folder_path=args.folder, base_name=args.base_name)
        print(f"Created {handle.created} search sets in '{handle.folder_path}'")
    return 0


def _cmd_suggest(db: Database, args: argparse.Namespace) -> int:
    session = _load_session(db, args.session, config.DEFAULT_PROFILE)
    for suggestion in suggest_rules(session, args.items, args.max):
        print(suggestion.display)
    return 0


_COMMANDS = {
    "import-session": _cmd_import_session,
    "sessions": _cmd_sessions,
    "preview": _cmd_recipe,
    "generate": _cmd_recipe,
    "packs": _cmd_packs,
    "groups": _cmd_groups,
    "suggest": _cmd_suggest,
}


def main(argv: list[str] | None = None) -> int:
    """Main batch runner flow.

    Args:
        argv: Command line arguments (defaults to ``sys.argv[1:]``).

    Returns:
        Process exit code.
    """
    args = build_parser().parse_args(argv)

    setup_logging(level=logging.DEBUG if args.verbose else config.get_log_level(), log_file=config.LOG_FILE)
    config.ensure_dirs()

    with Database(args.db or config.DATABASE_FILE) as db:
        try:
            return _COMMANDS[args.command](db, args)
        except (LookupError, OSError, ValueError, HostError) as e:
            # SmartSetInputError is a ValueError; report its reason code too
            reason = f" [{e.reason}]" if isinstance(e, SmartSetInputError) else ""
            logger.error("%s failed%s: %s", args.command, reason, e)
            return 1


if __name__ == "__main__":
    sys.exit(main())
