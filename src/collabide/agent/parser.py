"""Line-oriented parser that turns agent prose into typed actions.

The agent is prompted to emit blocks such as::

    ACTION: create_file
    TARGET: index.html
    CONTENT: <!DOCTYPE html>
    <html>...</html>
    REASONING: Creating the main page

Everything outside those keys is narration and is ignored. Parsing is a purely
syntactic pass: it never raises and never validates kinds beyond mapping them
onto :class:`ActionKind`.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from collabide.models.action import Action, ActionKind

LOGGER = logging.getLogger(__name__)

ACTION_KEY = "ACTION:"
TARGET_KEY = "TARGET:"
CONTENT_KEY = "CONTENT:"
COMMAND_KEY = "COMMAND:"
REASONING_KEY = "REASONING:"


@dataclass
class _PendingAction:
    raw_kind: str
    target: str | None = None
    content: str | None = None
    command: str | None = None
    reasoning: str = ""

    def is_well_formed(self) -> bool:
        return bool(self.raw_kind) and bool(self.reasoning)

    def build(self) -> Action:
        return Action(
            kind=ActionKind.parse(self.raw_kind),
            raw_kind=self.raw_kind,
            target=self.target,
            content=self.content,
            command=self.command,
            reasoning=self.reasoning,
        )


def _value_after_key(line: str) -> str:
    """Return the text after the first colon, stripped."""
    return line.partition(":")[2].strip()


def parse_actions(text: str | None) -> list[Action]:
    """Parse ``text`` into the ordered list of well-formed actions it contains.

    An action is kept only if it has a kind and a non-empty ``REASONING:`` line
    by the time the next ``ACTION:`` line or the end of input is reached.
    ``CONTENT:`` captures every following line verbatim until a line that
    starts with ``REASONING:``.
    """
    if not text:
        return []

    lines = text.splitlines()
    actions: list[Action] = []
    dropped = 0
    current: _PendingAction | None = None

    def flush() -> None:
        nonlocal dropped
        if current is None:
            return
        if current.is_well_formed():
            actions.append(current.build())
        else:
            dropped += 1

    index = 0
    while index < len(lines):
        line = lines[index].strip()

        if line.startswith(ACTION_KEY):
            flush()
            current = _PendingAction(raw_kind=_value_after_key(line))
        elif current is None:
            pass
        elif line.startswith(TARGET_KEY):
            current.target = _value_after_key(line)
        elif line.startswith(CONTENT_KEY):
            captured = [_value_after_key(line)]
            index += 1
            while index < len(lines) and not lines[index].lstrip().startswith(REASONING_KEY):
                captured.append(lines[index])
                index += 1
            current.content = "\n".join(captured)
            continue
        elif line.startswith(COMMAND_KEY):
            current.command = _value_after_key(line)
        elif line.startswith(REASONING_KEY):
            current.reasoning = _value_after_key(line)

        index += 1

    flush()

    if dropped:
        LOGGER.debug("Dropped %d incomplete action block(s) without reasoning", dropped)
    LOGGER.debug("Parsed %d action(s) from %d line(s)", len(actions), len(lines))
    return actions


__all__ = ["parse_actions"]
