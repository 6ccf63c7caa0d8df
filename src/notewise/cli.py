"""Command-line interface for notewise.

Provides subcommands for managing notes, their properties and the enabled
features, and for searching the enriched notes.
"""

import argparse
import asyncio
import json
import sys
from collections.abc import Awaitable, Callable
from typing import Any

from .app import create_manager
from .config import load_config
from .errors import NotewiseError
from .features import (
    FeatureCategory,
    FeatureKind,
    FeatureRegistry,
    RenderAs,
    filterable_features,
)
from .notes.manager import NoteManager
from .notes.models import EnrichedNote

Handler = Callable[[NoteManager, argparse.Namespace], Awaitable[int]]


def _get_manager() -> NoteManager:
    """Create a NoteManager with config loaded from disk."""
    return create_manager(load_config())


def _run(args: argparse.Namespace, handler: Handler) -> int:
    """Run a handler against a freshly loaded manager."""

    async def _main() -> int:
        manager: NoteManager | None = None
        try:
            manager = _get_manager()
            await manager.load_notes()
            return await handler(manager, args)
        except (NotewiseError, ValueError) as e:
            print(f"Error: {e}")
            return 1
        finally:
            if manager is not None:
                await manager.close()

    return asyncio.run(_main())


def _format_note(note: EnrichedNote, roles: list[str]) -> str:
    """Format an enriched note, showing the given attribute roles in order."""
    header = f"{note.id}  {note.title}"
    if note.tags:
        header += "  " + " ".join(f"#{tag}" for tag in note.tags)

    lines = [header]
    attributes = [
        f"{role}: {note.attributes[role]}"
        for role in roles
        if role in note.attributes
    ]
    if attributes:
        lines.append("    " + " · ".join(attributes))
    return "\n".join(lines)


def _parse_filters(raw: list[str]) -> dict[str, str]:
    """Parse feature=value pairs."""
    filters: dict[str, str] = {}
    for item in raw:
        feature_id, sep, value = item.partition("=")
        if not sep or not feature_id:
            raise ValueError(f"Invalid filter '{item}', expected feature=value")
        filters[feature_id.strip()] = value.strip()
    return filters


def _coerce_filters(registry: FeatureRegistry, filters: dict[str, str]) -> dict[str, Any]:
    """Convert filter values of number features to numbers."""
    coerced: dict[str, Any] = {}
    for feature_id, value in filters.items():
        feature = registry.get(feature_id)
        if feature is not None and feature.value_kind is RenderAs.NUMBER:
            try:
                coerced[feature_id] = int(value)
            except ValueError:
                try:
                    coerced[feature_id] = float(value)
                except ValueError:
                    raise ValueError(
                        f"Filter '{feature_id}' expects a number, got '{value}'"
                    ) from None
        else:
            coerced[feature_id] = value
    return coerced


async def _list(manager: NoteManager, args: argparse.Namespace) -> int:
    snapshot = manager.snapshot
    if not snapshot:
        print("No notes found.")
        return 0

    roles = manager.visible_roles()
    for note in snapshot.values():
        print(_format_note(note, roles))
    print(f"\nTotal: {len(snapshot)} note(s)")
    return 0


async def _add(manager: NoteManager, args: argparse.Namespace) -> int:
    note = await manager.create_note(args.title, args.content or "", args.tag or [])
    print(f"Created note: {note.id}")
    return 0


async def _edit(manager: NoteManager, args: argparse.Namespace) -> int:
    updates = {}
    if args.title is not None:
        updates["title"] = args.title
    if args.content is not None:
        updates["content"] = args.content
    if args.tag is not None:
        updates["tags"] = args.tag

    if not updates:
        print("Nothing to update.")
        return 0

    await manager.update_note(args.id, **updates)
    print(f"Updated note: {args.id}")
    return 0


async def _delete(manager: NoteManager, args: argparse.Namespace) -> int:
    await manager.delete_note(args.id)
    print(f"Deleted note: {args.id}")
    return 0


async def _set(manager: NoteManager, args: argparse.Namespace) -> int:
    await manager.set_property(args.id, args.feature, args.value)
    print(f"Set {args.feature} = {args.value} on note {args.id}")
    return 0


async def _clear(manager: NoteManager, args: argparse.Namespace) -> int:
    count = await manager.clear_properties(args.id)
    print(f"Cleared {count} propert{'y' if count == 1 else 'ies'} on note {args.id}")
    return 0


async def _search(manager: NoteManager, args: argparse.Namespace) -> int:
    filters = _coerce_filters(manager.registry, _parse_filters(args.filter or []))
    results = manager.search(args.query or "", filters)

    if not results:
        print("No matching notes.")
        return 0

    roles = manager.visible_roles()
    for note in results:
        print(_format_note(note, roles))
    print(f"\nFound {len(results)} note{'s' if len(results) != 1 else ''}")
    return 0


async def _features_list(manager: NoteManager, args: argparse.Namespace) -> int:
    categories = [FeatureCategory(args.category)] if args.category else list(FeatureCategory)

    for category in categories:
        features = manager.registry.get_by_category(category)
        if not features:
            continue
        print(f"\n{category.value.capitalize()}")
        print("-" * 60)
        for feature in features:
            status = "enabled" if manager.prefs.is_enabled(feature.id) else "disabled"
            print(f"{feature.id:<16} {feature.kind.value:<10} {status:<10} {feature.description}")
    return 0


async def _features_enable(manager: NoteManager, args: argparse.Namespace) -> int:
    if await manager.enable_feature(args.id):
        print(f"Enabled feature: {args.id}")
    else:
        print(f"Feature '{args.id}' is already enabled.")
    return 0


async def _features_disable(manager: NoteManager, args: argparse.Namespace) -> int:
    if manager.registry.get(args.id) is None:
        print(f"Error: Feature '{args.id}' not found.")
        return 1
    if await manager.disable_feature(args.id):
        print(f"Disabled feature: {args.id}")
    else:
        print(f"Feature '{args.id}' is already disabled.")
    return 0


async def _features_info(manager: NoteManager, args: argparse.Namespace) -> int:
    feature = manager.registry.get(args.id)
    if feature is None:
        print(f"Error: Feature '{args.id}' not found.")
        return 1

    print(f"\nFeature: {feature.name} ({feature.id})")
    print("-" * 40)
    print(f"Description: {feature.description}")
    print(f"Kind: {feature.kind.value}")
    print(f"Category: {feature.category.value}")
    print(f"Status: {'enabled' if manager.prefs.is_enabled(feature.id) else 'disabled'}")
    if feature.attribute_role:
        print(f"Attribute: {feature.attribute_role} ({feature.value_kind.value})")
    options = manager.options_for(feature.id)
    if options:
        print(f"Options: {', '.join(map(str, options))}")
    if feature.kind is FeatureKind.PROPERTY:
        filterable = feature in filterable_features(manager.registry, manager.enabled_features)
        print(f"Filterable: {'yes' if filterable else 'no (enable it first)'}")
    return 0


async def _features_reorder(manager: NoteManager, args: argparse.Namespace) -> int:
    order = manager.reorder_features(args.ids)
    print(f"Feature order: {', '.join(order)}")
    return 0


async def _features_config(manager: NoteManager, args: argparse.Namespace) -> int:
    config = json.loads(args.config)
    if not isinstance(config, dict):
        raise ValueError("Feature config must be a JSON object")
    await manager.update_feature_config(args.id, config)
    print(f"Updated config for feature: {args.id}")
    return 0


async def _features_hide(manager: NoteManager, args: argparse.Namespace) -> int:
    if manager.toggle_attribute_visibility(args.role):
        print(f"Hidden attribute: {args.role}")
    else:
        print(f"Showing attribute: {args.role}")
    return 0


def cmd_list(args: argparse.Namespace) -> int:
    """List notes with their enabled feature attributes."""
    return _run(args, _list)


def cmd_add(args: argparse.Namespace) -> int:
    """Create a note."""
    return _run(args, _add)


def cmd_edit(args: argparse.Namespace) -> int:
    """Edit a note."""
    return _run(args, _edit)


def cmd_delete(args: argparse.Namespace) -> int:
    """Delete a note and its properties."""
    return _run(args, _delete)


def cmd_set(args: argparse.Namespace) -> int:
    """Set a property value on a note."""
    return _run(args, _set)


def cmd_clear(args: argparse.Namespace) -> int:
    """Remove all property values of a note."""
    return _run(args, _clear)


def cmd_search(args: argparse.Namespace) -> int:
    """Search notes by text and feature values."""
    return _run(args, _search)


def cmd_features(args: argparse.Namespace) -> int:
    """Dispatch feature subcommands."""
    handlers: dict[str, Handler] = {
        "list": _features_list,
        "enable": _features_enable,
        "disable": _features_disable,
        "info": _features_info,
        "reorder": _features_reorder,
        "config": _features_config,
        "hide": _features_hide,
    }
    if args.features_command is None:
        args.features_command = "list"
        args.category = None
    return _run(args, handlers[args.features_command])


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser for the notewise CLI."""
    parser = argparse.ArgumentParser(
        prog="notewise",
        description="Notes with pluggable computed and stored features",
    )
    subparsers = parser.add_subparsers(dest="command", help="Commands")

    list_parser = subparsers.add_parser("list", help="List notes")
    list_parser.set_defaults(func=cmd_list)

    add_parser = subparsers.add_parser("add", help="Create a note")
    add_parser.add_argument("title", help="Note title")
    add_parser.add_argument("-c", "--content", help="Note content")
    add_parser.add_argument("-t", "--tag", action="append", help="Tag (repeatable)")
    add_parser.set_defaults(func=cmd_add)

    edit_parser = subparsers.add_parser("edit", help="Edit a note")
    edit_parser.add_argument("id", help="Note id")
    edit_parser.add_argument("--title", help="New title")
    edit_parser.add_argument("-c", "--content", help="New content")
    edit_parser.add_argument("-t", "--tag", action="append", help="Replace tags (repeatable)")
    edit_parser.set_defaults(func=cmd_edit)

    delete_parser = subparsers.add_parser("delete", help="Delete a note")
    delete_parser.add_argument("id", help="Note id")
    delete_parser.set_defaults(func=cmd_delete)

    set_parser = subparsers.add_parser("set", help="Set a property on a note")
    set_parser.add_argument("id", help="Note id")
    set_parser.add_argument("feature", help="Property feature id (e.g., priority)")
    set_parser.add_argument("value", help="Property value")
    set_parser.set_defaults(func=cmd_set)

    clear_parser = subparsers.add_parser("clear", help="Remove all properties of a note")
    clear_parser.add_argument("id", help="Note id")
    clear_parser.set_defaults(func=cmd_clear)

    search_parser = subparsers.add_parser("search", help="Search notes")
    search_parser.add_argument("query", nargs="?", default="", help="Text to search for")
    search_parser.add_argument(
        "-f", "--filter", action="append", help="Feature filter as feature=value (repeatable)"
    )
    search_parser.set_defaults(func=cmd_search)

    features_parser = subparsers.add_parser("features", help="Manage features")
    features_sub = features_parser.add_subparsers(dest="features_command")

    features_list = features_sub.add_parser("list", help="List available features")
    features_list.add_argument(
        "--category",
        choices=[c.value for c in FeatureCategory],
        help="Only show one category",
    )

    features_enable = features_sub.add_parser("enable", help="Enable a feature")
    features_enable.add_argument("id", help="Feature id")

    features_disable = features_sub.add_parser("disable", help="Disable a feature")
    features_disable.add_argument("id", help="Feature id")

    features_info = features_sub.add_parser("info", help="Show feature details")
    features_info.add_argument("id", help="Feature id")

    features_reorder = features_sub.add_parser("reorder", help="Set feature display order")
    features_reorder.add_argument("ids", nargs="+", help="Feature ids in display order")

    features_config = features_sub.add_parser("config", help="Replace a feature's config")
    features_config.add_argument("id", help="Feature id")
    features_config.add_argument(
        "config", help='JSON object, e.g. \'{"options": ["Now", "Later"]}\''
    )

    features_hide = features_sub.add_parser("hide", help="Hide or show an attribute")
    features_hide.add_argument("role", help="Attribute role (e.g., word-count)")

    features_parser.set_defaults(func=cmd_features)

    return parser


def run_cli(argv: list[str] | None = None) -> int:
    """Run the notewise CLI.

    Args:
        argv: Command-line arguments (without program name).

    Returns:
        Exit code (0 for success, non-zero for errors).
    """
    parser = create_parser()
    args = parser.parse_args(argv if argv is not None else sys.argv[1:])

    if args.command is None:
        parser.print_help()
        return 0

    return args.func(args)
