from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Any

from .models import (
    BinaryOp,
    Dice,
    DiceRoll,
    DropHighest,
    DropLowest,
    Exploding,
    Expr,
    Function,
    KeepDrop,
    KeepHighest,
    KeepLowest,
    Number,
    ParsedNotation,
)


_KEEP_DROP_PREFIX: dict[type, str] = {
    KeepHighest: "kh",
    KeepLowest: "kl",
    DropHighest: "dh",
    DropLowest: "dl",
}

_EXPLODING_SUFFIX = {
    Exploding.NONE: "",
    Exploding.ONCE: "!",
    Exploding.INDEFINITE: "!!",
}


def _now_utc_iso() -> str:
    return datetime.now(timezone.utc).replace(microsecond=0).isoformat().replace("+00:00", "Z")


def describe_roll(roll: DiceRoll) -> str:
    base = f"{roll.num_dice}d{roll.die_size}" if roll.num_dice != 1 else f"d{roll.die_size}"
    chunks = [base, _EXPLODING_SUFFIX[roll.exploding]]
    if roll.keep_drop is not None:
        chunks.append(f"{_KEEP_DROP_PREFIX[type(roll.keep_drop)]}{roll.keep_drop.count}")
    if roll.reroll is not None:
        chunks.append(f"r{roll.reroll}")
    return "".join(chunks)


def _unchain(expr: BinaryOp) -> tuple[Expr, list[tuple[str, Expr]]]:
    """Split a left-leaning chain into its first operand and ``(operator, operand)`` pairs."""

    rest: list[tuple[str, Expr]] = []
    while isinstance(expr, BinaryOp):
        rest.append((expr.operator, expr.right))
        expr = expr.left
    rest.reverse()
    return expr, rest


def describe_expression(expr: Expr) -> str:
    """Render ``expr`` back into notation that parses to the same tree."""

    if isinstance(expr, Number):
        return str(expr.value)
    if isinstance(expr, Dice):
        return describe_roll(expr.roll)
    if isinstance(expr, Function):
        return f"{expr.name}({describe_expression(expr.argument)})"
    if isinstance(expr, BinaryOp):
        # Chains are flat and left-associative, so the left side never needs grouping.
        first, rest = _unchain(expr)
        chunks = [describe_expression(first)]
        for operator, operand in rest:
            chunks.append(f"{operator} {describe_expression(operand)}")
        return " ".join(chunks)
    raise TypeError(f"Not an expression: {expr!r}")


def _keep_drop_to_dict(keep_drop: KeepDrop | None) -> dict[str, Any] | None:
    if keep_drop is None:
        return None
    return {
        "policy": type(keep_drop).__name__,
        "count": keep_drop.count,
    }


def roll_to_dict(roll: DiceRoll) -> dict[str, Any]:
    return {
        "notation": describe_roll(roll),
        "num_dice": roll.num_dice,
        "die_size": roll.die_size,
        "exploding": roll.exploding.value,
        "keep_drop": _keep_drop_to_dict(roll.keep_drop),
        "reroll": roll.reroll,
    }


def expression_to_dict(expr: Expr) -> dict[str, Any]:
    if isinstance(expr, Number):
        return {"type": "number", "value": expr.value}
    if isinstance(expr, Dice):
        return {"type": "dice", "roll": roll_to_dict(expr.roll)}
    if isinstance(expr, Function):
        return {
            "type": "function",
            "name": expr.name,
            "argument": expression_to_dict(expr.argument),
        }
    if isinstance(expr, BinaryOp):
        # One dict per chain, however many operators it has.
        first, rest = _unchain(expr)
        return {
            "type": "chain",
            "first": expression_to_dict(first),
            "rest": [
                {"operator": operator, "operand": expression_to_dict(operand)}
                for operator, operand in rest
            ],
        }
    raise TypeError(f"Not an expression: {expr!r}")


def to_payload(parsed: ParsedNotation) -> dict[str, Any]:
    """JSON-ready description of a parse, with audit fields."""

    return {
        "request_id": uuid.uuid4().hex,
        "timestamp": _now_utc_iso(),
        "input": parsed.input,
        "normalized_expression": parsed.normalized_expression,
        "expression": expression_to_dict(parsed.expression),
        "rolls": [roll_to_dict(roll) for roll in parsed.rolls],
    }
