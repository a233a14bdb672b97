import json

import pytest

from mcp_dice_notation.models import DiceRoll, DropLowest, Exploding, KeepHighest
from mcp_dice_notation.parser import parse, parse_request
from mcp_dice_notation.render import describe_expression, describe_roll, to_payload


@pytest.mark.parametrize(
    ("roll", "notation"),
    [
        (DiceRoll(1, 20), "d20"),
        (DiceRoll(2, 100), "2d100"),
        (DiceRoll(4, 8, Exploding.INDEFINITE), "4d8!!"),
        (DiceRoll(2, 20, keep_drop=KeepHighest(1)), "2d20kh1"),
        (DiceRoll(4, 6, Exploding.ONCE, DropLowest(1), reroll=1), "4d6!dl1r1"),
    ],
)
def test_describe_roll(roll, notation):
    assert describe_roll(roll) == notation


def test_describe_expression_is_canonical():
    expr, _ = parse("2d20k+3d6!! -floor( 4d10 )*5d8")
    assert describe_expression(expr) == "2d20kh1 + 3d6!! - floor(4d10) * 5d8"


def test_described_expression_parses_back():
    original = parse("d% + max(1d6!!kl2r3 / -2) - 3d12d")
    assert parse(describe_expression(original[0])) == original


def test_payload():
    payload = to_payload(parse_request("1d10kh2+3"))

    assert payload["input"] == "1d10kh2+3"
    assert payload["normalized_expression"] == "d10kh2 + 3"
    assert payload["rolls"] == [
        {
            "notation": "d10kh2",
            "num_dice": 1,
            "die_size": 10,
            "exploding": "none",
            "keep_drop": {"policy": "KeepHighest", "count": 2},
            "reroll": None,
        }
    ]
    assert payload["expression"] == {
        "type": "chain",
        "first": {"type": "dice", "roll": payload["rolls"][0]},
        "rest": [{"operator": "+", "operand": {"type": "number", "value": 3}}],
    }
    assert payload["timestamp"].endswith("Z")
    assert len(payload["request_id"]) == 32


def test_long_chain_renders_flat():
    terms = ["1", "d6"] * 1000
    parsed = parse_request("+".join(terms))

    assert parsed.normalized_expression == " + ".join(terms)
    assert len(parsed.rolls) == 1000

    payload = to_payload(parsed)
    assert payload["expression"]["first"] == {"type": "number", "value": 1}
    assert len(payload["expression"]["rest"]) == 1999
    assert payload["expression"]["rest"][-1]["operand"]["type"] == "dice"
    json.dumps(payload)


def test_chain_inside_function_argument():
    payload = to_payload(parse_request("floor(d6 - 1) * 2"))
    assert payload["expression"]["first"]["argument"] == {
        "type": "chain",
        "first": {"type": "dice", "roll": payload["rolls"][0]},
        "rest": [{"operator": "-", "operand": {"type": "number", "value": 1}}],
    }
