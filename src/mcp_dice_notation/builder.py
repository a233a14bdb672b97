from __future__ import annotations

import logging
from typing import Callable

from .errors import InternalInvariantViolation
from .grammar import ParseNode
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
)


logger = logging.getLogger(__name__)

_KEEP_DROP: dict[str, Callable[[int], KeepDrop]] = {
    "k": KeepHighest,
    "kh": KeepHighest,
    "kl": KeepLowest,
    "d": DropHighest,
    "dh": DropHighest,
    "dl": DropLowest,
}

_EXPLODING = {
    "!": Exploding.ONCE,
    "!!": Exploding.INDEFINITE,
}


def _violation(node: ParseNode, reason: str) -> InternalInvariantViolation:
    logger.error("Builder cannot interpret %s node %r: %s", node.rule, node.text, reason)
    return InternalInvariantViolation(node.rule, node.text, reason)


def _only_child(node: ParseNode) -> ParseNode:
    if len(node.children) != 1:
        raise _violation(node, f"expected exactly one child, found {len(node.children)}")
    return node.children[0]


def _parse_unsigned(node: ParseNode) -> int:
    if not (node.text.isascii() and node.text.isdigit()):
        raise _violation(node, "expected an unsigned integer")
    return int(node.text)


def _count(node: ParseNode) -> int:
    count = node.find("count")
    return _parse_unsigned(count) if count is not None else 1


def _selector(node: ParseNode) -> str:
    selector = node.find("selector")
    if selector is None:
        raise _violation(node, "missing modifier selector")
    return selector.text


def _build_dice_roll(node: ParseNode) -> DiceRoll:
    children = list(node.children)

    # The count is optional; only consume it when present so die_size is never skipped.
    num_dice = 1
    if children and children[0].rule == "dice_number":
        num_dice = _parse_unsigned(children.pop(0))

    if not children or children[0].rule != "die_size":
        raise _violation(node, "missing die size")
    size_node = children.pop(0)
    die_size = 100 if size_node.text == "%" else _parse_unsigned(size_node)
    if die_size == 0:
        raise _violation(size_node, "die size must be greater than zero")

    exploding = Exploding.NONE
    keep_drop: KeepDrop | None = None
    reroll: int | None = None

    for modifier in children:
        if modifier.rule == "exploding_modifier":
            if modifier.text not in _EXPLODING:
                raise _violation(modifier, "unknown explosion marker")
            # A lone "!" never downgrades an earlier "!!".
            if not (exploding is Exploding.INDEFINITE and modifier.text == "!"):
                exploding = _EXPLODING[modifier.text]
        elif modifier.rule in ("keep_modifier", "drop_modifier"):
            selector = _selector(modifier)
            if selector not in _KEEP_DROP:
                raise _violation(modifier, "unknown keep/drop selector")
            keep_drop = _KEEP_DROP[selector](_count(modifier))
        elif modifier.rule == "reroll_modifier":
            reroll = _count(modifier)
        else:
            raise _violation(modifier, "unexpected dice modifier")

    return DiceRoll(
        num_dice=num_dice,
        die_size=die_size,
        exploding=exploding,
        keep_drop=keep_drop,
        reroll=reroll,
    )


def build_expression(node: ParseNode, rolls: list[DiceRoll]) -> Expr:
    """Build the ``Expr`` for ``node``, appending every dice term to ``rolls``.

    Dice terms are appended in the order they are visited, which is their
    left-to-right order in the input, function arguments included.
    """

    rule = node.rule

    if rule in ("expression", "term"):
        return build_expression(_only_child(node), rolls)

    if rule == "operation":
        if len(node.children) % 2 != 1:
            raise _violation(node, "operators and terms do not alternate")
        expr = build_expression(node.children[0], rolls)
        for op_node, term_node in zip(node.children[1::2], node.children[2::2]):
            if op_node.rule != "operator":
                raise _violation(op_node, "expected an operator")
            expr = BinaryOp(left=expr, operator=op_node.text, right=build_expression(term_node, rolls))
        return expr

    if rule == "function":
        name = node.find("identifier")
        argument = node.find("expression")
        if name is None or argument is None:
            raise _violation(node, "function needs a name and one argument")
        return Function(name=name.text, argument=build_expression(argument, rolls))

    if rule == "dice_roll":
        roll = _build_dice_roll(node)
        rolls.append(roll)
        return Dice(roll=roll)

    if rule == "number":
        try:
            return Number(value=int(node.text))
        except ValueError:
            raise _violation(node, "expected a signed integer") from None

    raise _violation(node, "unknown rule")


def build(root: ParseNode) -> tuple[Expr, list[DiceRoll]]:
    rolls: list[DiceRoll] = []
    expr = build_expression(root, rolls)
    return expr, rolls
