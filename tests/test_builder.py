import pytest

from mcp_dice_notation.builder import build, build_expression
from mcp_dice_notation.errors import DiceError, InternalInvariantViolation
from mcp_dice_notation.grammar import ParseNode, parse_tree
from mcp_dice_notation.models import Dice, DiceRoll, Number


def _node(rule, text, *children):
    return ParseNode(rule=rule, text=text, start=0, end=len(text), children=tuple(children))


def test_build_returns_tree_and_rolls():
    expr, rolls = build(parse_tree("d6 + d8"))
    assert rolls == [DiceRoll(1, 6), DiceRoll(1, 8)]
    assert expr.left == Dice(rolls[0])
    assert expr.right == Dice(rolls[1])


def test_build_expression_appends_to_given_list():
    rolls = [DiceRoll(1, 4)]
    build_expression(parse_tree("2d6"), rolls)
    assert rolls == [DiceRoll(1, 4), DiceRoll(2, 6)]


def test_number_node():
    assert build_expression(_node("number", "-12"), []) == Number(-12)


def test_missing_count_defaults_to_one():
    node = _node("dice_roll", "d6", _node("die_size", "6"))
    rolls = []
    assert build_expression(node, rolls) == Dice(DiceRoll(1, 6))
    assert rolls == [DiceRoll(1, 6)]


@pytest.mark.parametrize(
    "node",
    [
        _node("dice_roll", "dX", _node("die_size", "X")),
        _node("dice_roll", "d0", _node("die_size", "0")),
        _node("dice_roll", "2", _node("dice_number", "2")),
        _node("dice_roll", "d6?", _node("die_size", "6"), _node("mystery", "?")),
        _node("number", "twelve"),
        _node("term", ""),
        _node("whatever", "1"),
    ],
)
def test_uninterpretable_nodes_raise(node):
    with pytest.raises(InternalInvariantViolation) as exc:
        build_expression(node, [])
    assert exc.value.rule in {node.rule, *(child.rule for child in node.children)}
    assert str(exc.value).startswith("[INTERNAL_INVARIANT]")


def test_invariant_violation_is_structured():
    assert issubclass(InternalInvariantViolation, DiceError)
