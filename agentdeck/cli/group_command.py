"""
Group Command

Manages session groups.
"""
from argparse import ArgumentParser, Namespace

from .base_command import BaseCommand


class GroupCommand(BaseCommand):
    """Command with add/rm/rename/toggle/assign/list actions"""

    @property
    def name(self) -> str:
        return "group"

    @property
    def help(self) -> str:
        return "Manage session groups"

    def add_arguments(self, parser: ArgumentParser) -> None:
        actions = parser.add_subparsers(dest="group_action", help="Group actions")
        actions.required = True

        actions.add_parser("list", help="List groups")

        add = actions.add_parser("add", help="Create a group")
        add.add_argument("group_name", help="Group name")

        remove = actions.add_parser("rm", help="Remove a group (its sessions become ungrouped)")
        remove.add_argument("group_id", help="Group id")

        rename = actions.add_parser("rename", help="Rename a group")
        rename.add_argument("group_id", help="Group id")
        rename.add_argument("group_name", help="New name")

        toggle = actions.add_parser("toggle", help="Collapse or expand a group")
        toggle.add_argument("group_id", help="Group id")

        assign = actions.add_parser("assign", help="Move a session into a group")
        assign.add_argument("session", help="Session name or id")
        assign.add_argument("group_id", nargs="?", help="Group id (omit to ungroup)")

    def execute(self, args: Namespace, manager) -> int:
        store = manager.store
        action = args.group_action

        if action == "list":
            groups = store.get_groups()
            if not groups:
                print("No groups found")
            for group in groups:
                state = "collapsed" if group.collapsed else "expanded"
                print(f"{group.id:<26} {group.name:<25} {state}")
        elif action == "add":
            group = store.add_group(args.group_name)
            print(f"Created group '{group.name}' ({group.id})")
        elif action == "rm":
            store.remove_group(args.group_id)
            print(f"Removed group {args.group_id}")
        elif action == "rename":
            store.rename_group(args.group_id, args.group_name)
            print(f"Renamed group {args.group_id} to '{args.group_name}'")
        elif action == "toggle":
            collapsed = store.toggle_group_collapsed(args.group_id)
            print(f"Group {args.group_id} {'collapsed' if collapsed else 'expanded'}")
        elif action == "assign":
            session = manager.get(args.session)
            store.set_instance_group(session.id, args.group_id)
            target = args.group_id or "no group"
            print(f"Moved '{session.name}' to {target}")
        return 0
