#!/usr/bin/env python3
"""
Command-line interface for Socket Smith.

Provides commands for initializing worlds, creating actors and items, and
editing item sockets from the terminal. The CLI acts as a gamemaster unless
--role says otherwise.
"""

import argparse
import json
import sys
from pathlib import Path

from socketsmith.core.config import get_config
from socketsmith.core.logging_config import setup_logging
from socketsmith.core.models import User, UserRole
from socketsmith.core.world import World
from socketsmith.sockets import SocketEngine, SocketSettings, get_item_slots


def _open_world(world_path):
    return World.open(world_path)


def _engine_for(world):
    return SocketEngine(SocketSettings.from_config(get_config()),
                        resolve=world.from_uuid, event_bus=world.event_bus)


def _get_host(world, item_uuid):
    doc = world.from_uuid(item_uuid)
    if getattr(doc, 'document_name', None) != 'Item':
        print(f"✗ Item {item_uuid} not found", file=sys.stderr)
        sys.exit(1)
    return doc


def _cli_user(args):
    return User(id='cli', name='Command Line', role=UserRole.parse(args.role))


def _exit_on_failure(result):
    if result.success:
        return
    print(f"✗ Error: {result.error}", file=sys.stderr)
    sys.exit(1)


def cmd_init(args):
    """Initialize a new world."""
    try:
        world_name = args.name or Path(args.world_path).name
        world = World.initialize_world(args.world_path, world_name)
        world.close()
        print(f"✓ World '{world_name}' initialized at {args.world_path}")
        print(f"  Database: {args.world_path}/{World.DB_FILENAME}")
    except ValueError as e:
        print(f"✗ Error: {e}", file=sys.stderr)
        sys.exit(1)
    except Exception as e:
        print(f"✗ Unexpected error: {e}", file=sys.stderr)
        sys.exit(1)


def cmd_actor_create(args):
    """Create a new actor."""
    try:
        world = _open_world(args.world_path)
        actor = world.create_actor(args.name)
        world.close()
        print(f"✓ Actor created:")
        print(f"  UUID: {actor.uuid}")
        print(f"  Name: {actor.name}")
    except Exception as e:
        print(f"✗ Error: {e}", file=sys.stderr)
        sys.exit(1)


def cmd_item_create(args):
    """Create an item from JSON, optionally owned by an actor."""
    try:
        data = json.loads(args.data)
    except json.JSONDecodeError as e:
        print(f"✗ Invalid JSON: {e}", file=sys.stderr)
        sys.exit(1)

    try:
        world = _open_world(args.world_path)
        actor = None
        if args.actor:
            actor = world.get_actor(args.actor)
            if actor is None:
                print(f"✗ Actor {args.actor} not found", file=sys.stderr)
                sys.exit(1)
        item = world.create_item(data, actor=actor)
        world.close()
        print(f"✓ Item created:")
        print(f"  UUID: {item.uuid}")
        print(f"  Name: {item.name} ({item.type})")
    except Exception as e:
        print(f"✗ Error: {e}", file=sys.stderr)
        sys.exit(1)


def cmd_slots(args):
    """List the sockets of an item."""
    try:
        world = _open_world(args.world_path)
        host = _get_host(world, args.item_uuid)
        slots = get_item_slots(host, include_snapshots=args.snapshots,
                               include_hidden=not args.no_hidden)
        world.close()

        if not slots:
            print(f"{host.name} has no sockets")
            return

        print(f"Sockets of {host.name}:\n")
        for entry in slots:
            slot = entry['slot']
            marker = ' (hidden)' if entry['hidden'] else ''
            if entry['hasGem']:
                gem = slot['gem']
                print(f"  [{entry['slotIndex']}] {gem.get('name')}  ({gem.get('uuid')}){marker}")
            else:
                print(f"  [{entry['slotIndex']}] {slot.get('name', 'Empty')}{marker}")
            if args.snapshots and slot.get('gemSnapshot'):
                print(f"      {json.dumps(slot['gemSnapshot'])}")
    except Exception as e:
        print(f"✗ Error: {e}", file=sys.stderr)
        sys.exit(1)


def cmd_add_slot(args):
    """Append an empty socket to an item."""
    try:
        world = _open_world(args.world_path)
        host = _get_host(world, args.item_uuid)
        result = _engine_for(world).add_slot(host, user=_cli_user(args), hidden=args.hidden)
        world.close()
        _exit_on_failure(result)
        kind = 'Hidden socket' if result.data['hidden'] else 'Socket'
        print(f"✓ {kind} {result.data['slotIndex']} added to {host.name}")
    except ValueError as e:
        print(f"✗ Error: {e}", file=sys.stderr)
        sys.exit(1)


def cmd_remove_slot(args):
    """Remove a socket, unsocketing its gem first."""
    try:
        world = _open_world(args.world_path)
        host = _get_host(world, args.item_uuid)
        result = _engine_for(world).remove_slot(host, args.index, user=_cli_user(args))
        world.close()
        _exit_on_failure(result)
        print(f"✓ Socket {args.index} removed from {host.name}")
        if result.data['unsocketed']:
            print(f"  Gem unsocketed first")
    except ValueError as e:
        print(f"✗ Error: {e}", file=sys.stderr)
        sys.exit(1)


def cmd_toggle_hidden(args):
    """Hide or reveal a socket."""
    try:
        world = _open_world(args.world_path)
        host = _get_host(world, args.item_uuid)
        result = _engine_for(world).toggle_hidden(host, args.index, user=_cli_user(args))
        world.close()
        _exit_on_failure(result)
        state = 'hidden' if result.data['hidden'] else 'visible'
        print(f"✓ Socket {args.index} of {host.name} is now {state}")
    except ValueError as e:
        print(f"✗ Error: {e}", file=sys.stderr)
        sys.exit(1)


def cmd_socket(args):
    """Socket a gem into a slot."""
    try:
        world = _open_world(args.world_path)
        host = _get_host(world, args.item_uuid)
        result = _engine_for(world).add_gem(host, args.index, args.gem_uuid)
        world.close()
        _exit_on_failure(result)
        print(f"✓ {result.data['gem']['name']} socketed into {host.name} slot {args.index}")
        print(f"  Effects added: {len(result.data['effectIds'])}")
        print(f"  Activities added: {len(result.data['activityIds'])}")
    except ValueError as e:
        print(f"✗ Error: {e}", file=sys.stderr)
        sys.exit(1)


def cmd_unsocket(args):
    """Remove the gem from a slot."""
    try:
        world = _open_world(args.world_path)
        host = _get_host(world, args.item_uuid)
        result = _engine_for(world).remove_gem(host, args.index)
        world.close()
        if not result.data['removed']:
            print(f"Slot {args.index} of {host.name} is empty")
            return
        print(f"✓ Gem removed from {host.name} slot {args.index}")
        if result.data['returned']:
            print(f"  Returned to inventory: {result.data['returned']}")
        if result.data['returnError']:
            print(f"  Warning: could not return gem: {result.data['returnError']}")
    except ValueError as e:
        print(f"✗ Error: {e}", file=sys.stderr)
        sys.exit(1)


def cmd_serve(args):
    """Run the web API for a world."""
    from socketsmith.web import create_app

    config = get_config()
    try:
        app = create_app(args.world_path, config)
    except ValueError as e:
        print(f"✗ Error: {e}", file=sys.stderr)
        sys.exit(1)

    host = args.host or config.host
    port = args.port or config.port
    print(f"✓ Serving {args.world_path} on http://{host}:{port}")
    # One SQLite connection per world; socket edits on a host must not interleave
    app.run(host=host, port=port, debug=config.debug, threaded=False, use_reloader=False)


def main():
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        description='Socket Smith - gem sockets for RPG items'
    )
    parser.add_argument('--log-level', help='Logging level (defaults to LOG_LEVEL)')
    subparsers = parser.add_subparsers(dest='command', help='Command to run')

    # ========== init command ==========
    parser_init = subparsers.add_parser('init', help='Initialize a new world')
    parser_init.add_argument('world_path', help='Path to world directory')
    parser_init.add_argument('--name', help='World name (defaults to directory name)')
    parser_init.set_defaults(func=cmd_init)

    # ========== actor commands ==========
    parser_actor = subparsers.add_parser('actor', help='Actor operations')
    actor_subparsers = parser_actor.add_subparsers(dest='actor_command')

    parser_actor_create = actor_subparsers.add_parser('create', help='Create an actor')
    parser_actor_create.add_argument('world_path', help='Path to world directory')
    parser_actor_create.add_argument('name', help='Actor name')
    parser_actor_create.set_defaults(func=cmd_actor_create)

    # ========== item commands ==========
    parser_item = subparsers.add_parser('item', help='Item operations')
    item_subparsers = parser_item.add_subparsers(dest='item_command')

    parser_item_create = item_subparsers.add_parser('create', help='Create an item')
    parser_item_create.add_argument('world_path', help='Path to world directory')
    parser_item_create.add_argument('data', help='Item data as JSON')
    parser_item_create.add_argument('--actor', help='Owning actor ID')
    parser_item_create.set_defaults(func=cmd_item_create)

    # ========== socket commands ==========
    parser_slots = subparsers.add_parser('slots', help='List the sockets of an item')
    parser_slots.add_argument('world_path', help='Path to world directory')
    parser_slots.add_argument('item_uuid', help='Host item UUID')
    parser_slots.add_argument('--snapshots', action='store_true',
                              help='Show gem snapshots')
    parser_slots.add_argument('--no-hidden', action='store_true',
                              help='Leave hidden sockets out')
    parser_slots.set_defaults(func=cmd_slots)

    parser_add_slot = subparsers.add_parser('add-slot', help='Add a socket to an item')
    parser_add_slot.add_argument('world_path', help='Path to world directory')
    parser_add_slot.add_argument('item_uuid', help='Host item UUID')
    parser_add_slot.add_argument('--role', default='GAMEMASTER', help='Acting role')
    parser_add_slot.add_argument('--hidden', action='store_true',
                                 help='Create the socket hidden')
    parser_add_slot.set_defaults(func=cmd_add_slot)

    parser_remove_slot = subparsers.add_parser('remove-slot', help='Remove a socket')
    parser_remove_slot.add_argument('world_path', help='Path to world directory')
    parser_remove_slot.add_argument('item_uuid', help='Host item UUID')
    parser_remove_slot.add_argument('index', type=int, help='Slot index')
    parser_remove_slot.add_argument('--role', default='GAMEMASTER', help='Acting role')
    parser_remove_slot.set_defaults(func=cmd_remove_slot)

    parser_toggle = subparsers.add_parser('toggle-hidden', help='Hide or reveal a socket')
    parser_toggle.add_argument('world_path', help='Path to world directory')
    parser_toggle.add_argument('item_uuid', help='Host item UUID')
    parser_toggle.add_argument('index', type=int, help='Slot index')
    parser_toggle.add_argument('--role', default='GAMEMASTER', help='Acting role')
    parser_toggle.set_defaults(func=cmd_toggle_hidden)

    parser_socket = subparsers.add_parser('socket', help='Socket a gem')
    parser_socket.add_argument('world_path', help='Path to world directory')
    parser_socket.add_argument('item_uuid', help='Host item UUID')
    parser_socket.add_argument('index', type=int, help='Slot index')
    parser_socket.add_argument('gem_uuid', help='Gem item UUID')
    parser_socket.set_defaults(func=cmd_socket)

    parser_unsocket = subparsers.add_parser('unsocket', help='Remove a gem from its socket')
    parser_unsocket.add_argument('world_path', help='Path to world directory')
    parser_unsocket.add_argument('item_uuid', help='Host item UUID')
    parser_unsocket.add_argument('index', type=int, help='Slot index')
    parser_unsocket.set_defaults(func=cmd_unsocket)

    # ========== serve command ==========
    parser_serve = subparsers.add_parser('serve', help='Run the web API')
    parser_serve.add_argument('world_path', help='Path to world directory')
    parser_serve.add_argument('--host', help='Bind address (defaults to HOST)')
    parser_serve.add_argument('--port', type=int, help='Port (defaults to PORT)')
    parser_serve.set_defaults(func=cmd_serve)

    # Parse and execute
    args = parser.parse_args()

    config = get_config()
    setup_logging(level=args.log_level or config.log_level, log_file=config.log_file)

    if not args.command:
        parser.print_help()
        sys.exit(1)

    if hasattr(args, 'func'):
        args.func(args)
    else:
        print(f"No subcommand provided for '{args.command}'", file=sys.stderr)
        sys.exit(1)


if __name__ == '__main__':
    main()
