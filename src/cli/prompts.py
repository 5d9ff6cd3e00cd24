"""Interactive decisions for the sync engine.

ConsolePrompter implements the SyncPrompter protocol on top of Typer's
prompt helpers. With ``assume`` set, no question is asked and the given
answer is used instead, which keeps commands scriptable.
"""

import logging
from typing import List, Optional

import typer

from src.models.article import Article
from src.sync.models import ConflictChoice, ReconnectChoice

from .output import OutputHandler

logger = logging.getLogger(__name__)

RECONNECT_OPTIONS = {
    "1": ReconnectChoice.PUSH,
    "2": ReconnectChoice.DISCARD,
    "3": ReconnectChoice.SHOW_DIFF,
    "4": ReconnectChoice.CANCEL,
}

CONFLICT_OPTIONS = {
    "1": ConflictChoice.OVERWRITE,
    "2": ConflictChoice.ACCEPT_SERVER,
    "3": ConflictChoice.CANCEL,
}


class ConsolePrompter:
    """Asks the user on the terminal.

    Example:
        >>> prompter = ConsolePrompter(output)
        >>> prompter.choose_conflict_resolution(["Changes for article #3 ..."])
        <ConflictChoice.OVERWRITE: 'overwrite'>
    """

    def __init__(
        self,
        output: OutputHandler,
        reconnect_choice: Optional[ReconnectChoice] = None,
        conflict_choice: Optional[ConflictChoice] = None,
        assume_yes: bool = False,
    ):
        """Initialize the prompter.

        Args:
            output: Output handler used to show context before asking
            reconnect_choice: Preset answer for the reconnect question
            conflict_choice: Preset answer for the conflict question
            assume_yes: Answer yes to confirmations (delete, push after diff)
        """
        self.output = output
        self.reconnect_choice = reconnect_choice
        self.conflict_choice = conflict_choice
        self.assume_yes = assume_yes

    def choose_reconnect_action(self, changed_count: int, pending_count: int) -> ReconnectChoice:
        self.output.warning(
            f"You have {changed_count} changed and {pending_count} new article(s) "
            f"that are not on the server yet."
        )
        if self.reconnect_choice is not None:
            logger.debug(f"Using preset reconnect choice: {self.reconnect_choice.value}")
            return self.reconnect_choice

        self.output.print("  1) Push local changes to the server")
        self.output.print("  2) Discard local changes and load server data")
        self.output.print("  3) Show differences first")
        self.output.print("  4) Cancel and stay offline")
        answer = typer.prompt("Choose", default="4")
        return RECONNECT_OPTIONS.get(answer.strip(), ReconnectChoice.CANCEL)

    def review_differences(self, descriptions: List[str]) -> bool:
        self.output.print_descriptions(descriptions, "Differences to the server:")
        if self.assume_yes:
            return True
        return typer.confirm("Push these changes to the server?", default=False)

    def choose_conflict_resolution(self, descriptions: List[str]) -> ConflictChoice:
        self.output.warning(
            f"{len(descriptions)} article(s) were changed on the server since you loaded them."
        )
        self.output.print_descriptions(descriptions, "Conflicts:")
        if self.conflict_choice is not None:
            logger.debug(f"Using preset conflict choice: {self.conflict_choice.value}")
            return self.conflict_choice

        self.output.print("  1) Overwrite the server with your changes")
        self.output.print("  2) Accept the server versions")
        self.output.print("  3) Cancel")
        answer = typer.prompt("Choose", default="3")
        return CONFLICT_OPTIONS.get(answer.strip(), ConflictChoice.CANCEL)

    def confirm_delete(self, article: Article) -> bool:
        if self.assume_yes:
            return True
        return typer.confirm(f"Delete '{article.name}' (#{article.id})?", default=False)
