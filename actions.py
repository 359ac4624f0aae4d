"""
Action catalog and interactive dispatcher.

Actions are ``*.sh`` files in a scripts directory. The catalog is re-read
from disk on every menu render, and a failing action is reported and
contained so the operator can keep using the menu.
"""

import logging
import os
import re
import subprocess
from typing import Callable, Dict, List, Mapping, Optional

from rich.console import Console
from rich.markup import escape

from exceptions import ActionFailed, InvalidInput, NoActionsAvailable, OutOfRange
from models import ActionEntry, Identity

logger = logging.getLogger(__name__)

SCRIPT_SUFFIX = ".sh"
DESCRIPTION_MARKER = "# Description:"
SELECTION_PATTERN = re.compile(r"[+-]?[0-9]+")


def build_action_env(
    license_key: str,
    identity: Identity,
    base_env: Optional[Mapping[str, str]] = None,
) -> Dict[str, str]:
    """Environment for action subprocesses: the inherited one plus the validated identity."""
    env = dict(os.environ if base_env is None else base_env)
    env.update(
        {
            "LICENSE_KEY": license_key,
            "PUBLIC_IP": identity.public_ip,
            "MACHINE_ID": identity.machine_id,
        }
    )
    return env


def _is_action_script(entry: os.DirEntry) -> bool:
    return entry.name.endswith(SCRIPT_SUFFIX) and entry.is_file()


def has_actions(directory: str) -> bool:
    try:
        with os.scandir(directory) as entries:
            return any(_is_action_script(entry) for entry in entries)
    except OSError:
        return False


def get_description(path: str) -> str:
    try:
        with open(path, encoding="utf-8", errors="replace") as f:
            for line in f:
                if line.startswith(DESCRIPTION_MARKER):
                    return line[len(DESCRIPTION_MARKER):].strip()
    except OSError:
        logger.debug("Could not read description from %s", path)
    return ""


def list_actions(directory: str) -> List[ActionEntry]:
    """
    List the action scripts in a directory, sorted by file name.
    Subdirectories and files without the script suffix are skipped.
    """
    try:
        with os.scandir(directory) as entries:
            names = sorted(entry.name for entry in entries if _is_action_script(entry))
    except OSError as e:
        raise NoActionsAvailable(directory, str(e)) from e

    actions = []
    for name in names:
        path = os.path.join(directory, name)
        actions.append(
            ActionEntry(
                path=path,
                name=name[: -len(SCRIPT_SUFFIX)],
                description=get_description(path),
            )
        )
    return actions


def parse_selection(raw: str, count: int) -> int:
    """Menu index for a line of input: 0 means exit, 1..count picks an action."""
    text = raw.strip()
    if not SELECTION_PATTERN.fullmatch(text):
        raise InvalidInput(raw)

    selection = int(text)
    if selection < 0 or selection > count:
        raise OutOfRange(selection, count)
    return selection


def execute_action(
    action: ActionEntry,
    env: Mapping[str, str],
    interpreter: str = "bash",
) -> None:
    """
    Run one action to completion with the operator's terminal attached.
    Raises ActionFailed on a missing script, a spawn error or a non-zero exit.
    """
    if not os.path.isfile(action.path):
        raise ActionFailed(action.name, f"script not found: {action.path}")

    try:
        os.chmod(action.path, 0o755)
    except OSError:
        logger.debug("Could not mark %s executable", action.path)

    command = [interpreter, action.path] if interpreter else [action.path]
    logger.info("Executing %s", " ".join(command))

    try:
        result = subprocess.run(command, env=dict(env))
    except OSError as e:
        raise ActionFailed(action.name, f"could not start: {e}")

    if result.returncode != 0:
        raise ActionFailed(
            action.name, f"exit code {result.returncode}", exit_code=result.returncode
        )


class ActionMenu:
    """Interactive loop: list actions, read a selection, run it, repeat until 0."""

    def __init__(
        self,
        directory: str,
        env: Mapping[str, str],
        console: Optional[Console] = None,
        read_line: Optional[Callable[[str], str]] = None,
        interpreter: str = "bash",
    ):
        self.directory = directory
        self.env = env
        self.console = console or Console()
        self.read_line = read_line or self.console.input
        self.interpreter = interpreter

    def run(self) -> None:
        while True:
            actions = list_actions(self.directory)
            if not actions:
                raise NoActionsAvailable(self.directory)

            self.render(actions)

            try:
                raw = self.read_line(f"Select an action (0-{len(actions)}): ")
            except EOFError:
                self.console.print()
                raw = "0"

            try:
                selection = parse_selection(raw, len(actions))
            except (InvalidInput, OutOfRange) as e:
                self.console.print(f"[red][ERROR][/red] {e}")
                continue

            if selection == 0:
                self.console.print("[INFO] Exiting installer", markup=False)
                return

            self.dispatch(actions[selection - 1])
            self.pause()

    def render(self, actions: List[ActionEntry]) -> None:
        self.console.print()
        self.console.rule("Available Actions")
        self.console.print()
        for index, action in enumerate(actions, start=1):
            self.console.print(
                f"{index:2d}) {action.name:<30} {action.description}".rstrip(),
                markup=False,
                highlight=False,
            )
        self.console.print()
        self.console.print(f"{0:2d}) Exit", markup=False, highlight=False)
        self.console.print()

    def dispatch(self, action: ActionEntry) -> None:
        self.console.print(f"[INFO] Executing: {os.path.basename(action.path)}", markup=False)
        self.console.print()
        try:
            execute_action(action, self.env, self.interpreter)
        except ActionFailed as e:
            logger.warning("Action %s failed: %s", e.name, e.reason)
            self.console.print()
            self.console.print(f"[red][ERROR][/red] Action failed: {escape(e.reason)}")
            return

        self.console.print()
        self.console.print("[green][INFO] ✓ Action completed successfully[/green]")

    def pause(self) -> None:
        self.console.print()
        try:
            self.read_line("Press Enter to continue...")
        except EOFError:
            pass
