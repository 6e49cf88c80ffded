"""Text rendering of roll results through the shared Jinja2 environment."""

from __future__ import annotations

from decimal import Decimal
from pathlib import Path

from jinja2 import Environment, FileSystemLoader, select_autoescape

from rollwright.results import (
    Critic,
    DieRoll,
    HistoryEntry,
    OperatorEntry,
    ParenEntry,
    RepeatedRollResult,
    RollEntry,
    RollResult,
    RollTotal,
    SuccessTotal,
    ValueEntry,
)

_FUDGE_FACES = {-1: "-", 0: "▢", 1: "+"}


def _bold(text: str, markdown: bool) -> str:
    return f"**{text}**" if markdown else text


def format_value(value: Decimal, markdown: bool = False) -> str:
    return _bold(str(value), markdown)


def format_die(die: DieRoll, *, fudge: bool = False, markdown: bool = False) -> str:
    """Render one die: ``6!`` for an exploding die, ``~~1~~`` when discarded."""
    if fudge:
        text = _FUDGE_FACES[die.value]
    else:
        text = str(die.value)
        if markdown and die.critic is Critic.max:
            text = f"**{text}**"
        elif markdown and die.critic is Critic.min:
            text = f"_{text}_"
    if die.exploded:
        text += "!"
    if not die.live:
        text = f"~~{text}~~"
    return text


def format_history(history: list[HistoryEntry], markdown: bool = False) -> str:
    parts = []
    for entry in history:
        if isinstance(entry, RollEntry):
            fudge = entry.sides is None
            dice = ", ".join(format_die(d, fudge=fudge, markdown=markdown) for d in entry.dice)
            parts.append(f"[{dice}]")
        elif isinstance(entry, ValueEntry):
            parts.append(str(entry.value))
        elif isinstance(entry, OperatorEntry):
            parts.append(f" {entry.operator.value} ")
        elif isinstance(entry, ParenEntry):
            parts.append(entry.symbol)
    return "".join(parts)


def format_total(total: RollTotal, markdown: bool = False) -> str:
    if isinstance(total, SuccessTotal):
        noun = "success" if total.successes == 1 else "successes"
        return f"{_bold(str(total.successes), markdown)} {noun}"
    return format_value(total.value, markdown)


def format_reason(reason: str, markdown: bool = False) -> str:
    return f"`{reason}`" if markdown else reason


_env = Environment(
    loader=FileSystemLoader(Path(__file__).parent / "templates"),
    autoescape=select_autoescape(["html", "xml"]),
    trim_blocks=True,
    lstrip_blocks=True,
)
_env.filters["history"] = format_history
_env.filters["total"] = format_total
_env.filters["value"] = format_value
_env.filters["reason"] = format_reason


def render(result: RollResult, *, markdown: bool = False) -> str:
    """Render a roll result as human-readable text.

    Args:
        result: A single or repeated roll result.
        markdown: Emphasize totals and extreme faces with Markdown markup.

    Returns:
        One line for a single roll, one line per iteration for a repeated
        roll followed by the sum and the reason when present.
    """
    name = "repeated.txt.j2" if isinstance(result, RepeatedRollResult) else "single.txt.j2"
    text = _env.get_template(name).render(result=result, markdown=markdown)
    return text.rstrip("\n")
