#!/usr/bin/env python3
"""
Session Store for tracked agent sessions

Persists every TrackedSession and Group in one JSON file:

    {"instances": [...], "groups": [...]}

Each mutation is a full read-modify-write of the file. Two processes writing
at once are not coordinated; the last writer wins.
"""

import json
import os
import time
import logging
import tempfile
from datetime import datetime
from pathlib import Path
from typing import List, Optional, Tuple, TYPE_CHECKING

from .errors import DuplicateNameError, GroupNotFoundError, PersistenceError, SessionNotFoundError
from .session_models import Group, SessionStatus, TrackedSession

if TYPE_CHECKING:
    from .session_lifecycle import SessionLifecycle


DEFAULT_STATE_FILE = Path.home() / ".config" / "agentdeck" / "sessions.json"


class SessionStore:
    """Loads and saves tracked sessions and groups"""

    def __init__(self, state_file: Optional[str] = None,
                 lifecycle: Optional["SessionLifecycle"] = None):
        """Initialize the store

        Args:
            state_file: Path to the JSON state file.
                        Defaults to ~/.config/agentdeck/sessions.json
            lifecycle: Used to re-derive liveness on load and to stop
                       sessions on removal
        """
        self.logger = logging.getLogger(__name__)
        self.state_file = Path(state_file).expanduser() if state_file else DEFAULT_STATE_FILE
        self.lifecycle = lifecycle

    def load_all(self) -> Tuple[List[TrackedSession], List[Group]]:
        """Load instances and groups; a missing file is an empty state"""
        if not self.state_file.exists():
            return [], []

        try:
            with open(self.state_file, 'r') as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            raise PersistenceError(f"Failed to parse {self.state_file}: {e}")
        except OSError as e:
            raise PersistenceError(f"Failed to read {self.state_file}: {e}")

        if not isinstance(data, dict):
            raise PersistenceError(f"Failed to parse {self.state_file}: expected an object")

        try:
            instances = [TrackedSession.from_dict(item) for item in data.get('instances') or []]
            groups = [Group.from_dict(item) for item in data.get('groups') or []]
        except (TypeError, KeyError, ValueError, AttributeError) as e:
            raise PersistenceError(f"Invalid entry in {self.state_file}: {e}")

        # Stored status is only a hint
        if self.lifecycle:
            for instance in instances:
                self.lifecycle.update_status(instance)
        else:
            unverified = [i.name for i in instances if i.status != SessionStatus.STOPPED]
            if unverified:
                self.logger.warning(f"Cannot check tmux liveness without a lifecycle; "
                                    f"treating {', '.join(unverified)} as stopped")
            for instance in instances:
                instance.status = SessionStatus.STOPPED

        return instances, groups

    def load(self) -> List[TrackedSession]:
        instances, _ = self.load_all()
        return instances

    def save_all(self, instances: List[TrackedSession], groups: List[Group]) -> None:
        """Overwrite the state file with the given instances and groups"""
        data = {
            'instances': [instance.to_dict() for instance in instances],
            'groups': [group.to_dict() for group in groups],
        }

        try:
            self.state_file.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(prefix='.sessions-', suffix='.json',
                                            dir=str(self.state_file.parent))
            try:
                with os.fdopen(fd, 'w') as f:
                    json.dump(data, f, indent=2)
                os.replace(tmp_path, self.state_file)
            except BaseException:
                if os.path.exists(tmp_path):
                    os.unlink(tmp_path)
                raise
        except OSError as e:
            raise PersistenceError(f"Failed to write {self.state_file}: {e}")

        self.logger.debug(f"Saved {len(instances)} sessions and {len(groups)} groups to {self.state_file}")

    def save(self, instances: List[TrackedSession]) -> None:
        """Save instances, keeping the groups currently on disk"""
        _, groups = self.load_all()
        self.save_all(instances, groups)

    def add_instance(self, instance: TrackedSession) -> None:
        instances, groups = self.load_all()

        for existing in instances:
            if existing.name == instance.name:
                raise DuplicateNameError(f"Session with name '{instance.name}' already exists")

        instances.append(instance)
        self.save_all(instances, groups)
        self.logger.info(f"Added session '{instance.name}'")

    def remove_instance(self, instance_id: str) -> TrackedSession:
        """Remove a session, stopping its tmux session first"""
        instances, groups = self.load_all()

        removed = None
        remaining = []
        for instance in instances:
            if instance.id == instance_id:
                removed = instance
                continue
            remaining.append(instance)

        if removed is None:
            raise SessionNotFoundError(f"Session '{instance_id}' not found")

        if self.lifecycle:
            self.lifecycle.stop(removed)

        self.save_all(remaining, groups)
        self.logger.info(f"Removed session '{removed.name}'")
        return removed

    def update_instance(self, instance: TrackedSession) -> None:
        instances, groups = self.load_all()

        for i, existing in enumerate(instances):
            if existing.id == instance.id:
                instance.updated_at = datetime.now().isoformat()
                instances[i] = instance
                self.save_all(instances, groups)
                return

        raise SessionNotFoundError(f"Session '{instance.id}' not found")

    def rename_instance(self, instance_id: str, name: str) -> TrackedSession:
        """Change a session's display name; names stay unique"""
        instances, groups = self.load_all()

        target = None
        for instance in instances:
            if instance.id == instance_id:
                target = instance
            elif instance.name == name:
                raise DuplicateNameError(f"Session with name '{name}' already exists")

        if target is None:
            raise SessionNotFoundError(f"Session '{instance_id}' not found")

        old_name = target.name
        target.name = name
        target.updated_at = datetime.now().isoformat()
        self.save_all(instances, groups)
        self.logger.info(f"Renamed session '{old_name}' to '{name}'")
        return target

    def get_instance(self, instance_id: str) -> TrackedSession:
        for instance in self.load():
            if instance.id == instance_id:
                return instance
        raise SessionNotFoundError(f"Session '{instance_id}' not found")

    def get_instance_by_name(self, name: str) -> TrackedSession:
        for instance in self.load():
            if instance.name == name:
                return instance
        raise SessionNotFoundError(f"Session '{name}' not found")

    def find_instance(self, ref: str) -> TrackedSession:
        """Look a session up by name, then by id"""
        instances = self.load()
        for instance in instances:
            if instance.name == ref:
                return instance
        for instance in instances:
            if instance.id == ref:
                return instance
        raise SessionNotFoundError(f"Session '{ref}' not found")

    def get_groups(self) -> List[Group]:
        _, groups = self.load_all()
        return groups

    def get_group(self, group_id: str) -> Group:
        return self._find_group(self.get_groups(), group_id)

    def add_group(self, name: str) -> Group:
        instances, groups = self.load_all()

        for group in groups:
            if group.name == name:
                raise DuplicateNameError(f"Group with name '{name}' already exists")

        group = Group(id=f"grp_{time.time_ns()}", name=name)
        groups.append(group)
        self.save_all(instances, groups)
        return group

    def remove_group(self, group_id: str) -> None:
        """Remove a group; its sessions become ungrouped"""
        instances, groups = self.load_all()

        remaining = [g for g in groups if g.id != group_id]
        if len(remaining) == len(groups):
            raise GroupNotFoundError(f"Group '{group_id}' not found")

        for instance in instances:
            if instance.group_id == group_id:
                instance.group_id = None

        self.save_all(instances, remaining)

    def rename_group(self, group_id: str, name: str) -> None:
        instances, groups = self.load_all()
        self._find_group(groups, group_id).name = name
        self.save_all(instances, groups)

    def toggle_group_collapsed(self, group_id: str) -> bool:
        instances, groups = self.load_all()
        group = self._find_group(groups, group_id)
        group.collapsed = not group.collapsed
        self.save_all(instances, groups)
        return group.collapsed

    def set_instance_group(self, instance_id: str, group_id: Optional[str]) -> None:
        """Assign a session to a group (None ungroups it)"""
        instances, groups = self.load_all()

        if group_id:
            self._find_group(groups, group_id)

        for instance in instances:
            if instance.id == instance_id:
                instance.group_id = group_id or None
                self.save_all(instances, groups)
                return

        raise SessionNotFoundError(f"Session '{instance_id}' not found")

    @staticmethod
    def _find_group(groups: List[Group], group_id: str) -> Group:
        for group in groups:
            if group.id == group_id:
                return group
        raise GroupNotFoundError(f"Group '{group_id}' not found")
