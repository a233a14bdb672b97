from __future__ import annotations

import logging

from .builder import build
from .errors import GrammarError
from .grammar import parse_tree
from .models import DiceRoll, Expr, ParsedNotation
from .render import describe_expression


logger = logging.getLogger(__name__)


def parse(text: str) -> tuple[Expr, list[DiceRoll]]:
    """Parse dice notation into an expression tree and the rolls it needs.

    Rolls are listed in left-to-right order. Raises ``GrammarError`` when the
    text is not valid notation.
    """

    try:
        root = parse_tree(text)
    except GrammarError as exc:
        logger.debug("Rejected %r at position %d: %s", text, exc.position, exc.expected)
        raise

    expr, rolls = build(root)
    logger.debug("Parsed %r into %d dice roll(s)", text, len(rolls))
    return expr, rolls


def parse_request(text: str) -> ParsedNotation:
    expr, rolls = parse(text)
    return ParsedNotation(
        input=text,
        expression=expr,
        rolls=rolls,
        normalized_expression=describe_expression(expr),
    )
