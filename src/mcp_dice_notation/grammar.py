"""pyparsing grammar for dice notation.

    expression := operation
     operation := term (operator term)*
          term := dice_roll | function | number
      operator := "+" | "-" | "*" | "/"
        number := ["-"] digit+
      function := identifier "(" expression ")"
     dice_roll := [dice_number] "d" die_size modifier*
      die_size := digit+ | "%"
      modifier := exploding_modifier | keep_modifier | drop_modifier | reroll_modifier
    exploding_modifier := "!!" | "!"
         keep_modifier := ("kh" | "kl" | "k") [count]
         drop_modifier := ("dh" | "dl" | "d") [count]
       reroll_modifier := "r" [count]

Operators chain flat, left to right: ``1 + 2 * 3`` is ``(1 + 2) * 3``.
Whitespace may separate tokens but not the pieces of a dice term.
"""

from __future__ import annotations

from dataclasses import dataclass

import pyparsing as pp

from .errors import GrammarError


_WHITESPACE = " \t\r\n"


@dataclass(frozen=True)
class ParseNode:
    """A span of input matched by one grammar rule."""

    rule: str
    text: str
    start: int
    end: int
    children: tuple[ParseNode, ...] = ()

    def find(self, rule: str) -> ParseNode | None:
        for child in self.children:
            if child.rule == rule:
                return child
        return None


def _rule(name: str, expr: pp.ParserElement) -> pp.ParserElement:
    located = pp.Located(expr)

    def to_node(s: str, loc: int, toks: pp.ParseResults) -> ParseNode:
        start, inner, end = toks[0], toks[1], toks[2]
        children = tuple(t for t in inner if isinstance(t, ParseNode))
        return ParseNode(rule=name, text=s[start:end], start=start, end=end, children=children)

    located.set_parse_action(to_node)
    # Located inherits whitespace handling from expr; leading whitespace is always skipped.
    located.set_whitespace_chars(_WHITESPACE)
    return located.set_name(name)


def _positive(name: str) -> pp.ParserElement:
    return pp.Word(pp.nums).add_condition(
        lambda toks: int(toks[0]) > 0, message=f"{name} must be greater than zero"
    )


def _build_grammar() -> pp.ParserElement:
    expression = pp.Forward()

    count = _rule("count", _positive("count"))
    exploding_modifier = _rule("exploding_modifier", pp.Literal("!!") | pp.Literal("!"))
    keep_modifier = _rule(
        "keep_modifier",
        _rule("selector", pp.Literal("kh") | pp.Literal("kl") | pp.Literal("k")) + pp.Opt(count),
    )
    drop_modifier = _rule(
        "drop_modifier",
        _rule("selector", pp.Literal("dh") | pp.Literal("dl") | pp.Literal("d")) + pp.Opt(count),
    )
    reroll_modifier = _rule("reroll_modifier", _rule("selector", pp.Literal("r")) + pp.Opt(count))
    modifier = exploding_modifier | keep_modifier | drop_modifier | reroll_modifier

    dice_number = _rule("dice_number", pp.Word(pp.nums))
    die_size = _rule("die_size", _positive("die size") | pp.Literal("%"))
    dice_body = (pp.Opt(dice_number) + pp.Suppress("d") + die_size + pp.ZeroOrMore(modifier)).leave_whitespace()
    dice_roll = _rule("dice_roll", dice_body)

    number = _rule("number", pp.Combine(pp.Opt("-") + pp.Word(pp.nums)))
    identifier = _rule("identifier", pp.Word(pp.alphas + "_", pp.alphanums + "_"))
    function = _rule("function", identifier + pp.Suppress("(") + expression + pp.Suppress(")"))

    term = _rule("term", dice_roll | function | number)
    operator = _rule("operator", pp.one_of("+ - * /"))
    operation = _rule("operation", term + pp.ZeroOrMore(operator + term))
    expression <<= _rule("expression", operation)

    return expression.parse_with_tabs()


GRAMMAR = _build_grammar()

# pyparsing spends a couple dozen stack frames per level of function call.
MAX_NESTING = 20


def _check_nesting(text: str) -> None:
    depth = 0
    for position, char in enumerate(text):
        if char == "(":
            depth += 1
            if depth > MAX_NESTING:
                raise GrammarError(
                    text, position, f"Function calls nested more than {MAX_NESTING} deep"
                )
        elif char == ")":
            depth -= 1


def parse_tree(text: str) -> ParseNode:
    """Match the whole of ``text`` and return the root ``expression`` node."""

    if not text or not text.strip():
        raise GrammarError(text, 0, "Empty input")
    _check_nesting(text)

    try:
        result = GRAMMAR.parse_string(text, parse_all=True)
    except pp.ParseBaseException as exc:
        raise GrammarError(text, exc.loc, exc.msg) from exc
    except RecursionError:
        raise GrammarError(text, 0, "Expression nested too deeply") from None

    return result[0]
