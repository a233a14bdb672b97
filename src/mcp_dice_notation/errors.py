from __future__ import annotations


class DiceError(ValueError):
    """User-facing notation errors (fail-fast, nothing is returned)."""


class GrammarError(DiceError):
    """Input does not match the dice-notation language."""

    def __init__(self, text: str, position: int, expected: str) -> None:
        self.text = text
        self.position = position
        self.expected = expected
        super().__init__(
            f"[UNPARSEABLE_INPUT] {expected} (at column {self.column}). "
            "Example: '2d20kh1 + 3d6!!' or 'floor(4d10) + 2'."
        )

    @property
    def column(self) -> int:
        line_start = self.text.rfind("\n", 0, self.position) + 1
        return self.position - line_start + 1


class InternalInvariantViolation(DiceError):
    """A grammar-accepted node the builder cannot interpret. Always a defect."""

    def __init__(self, rule: str, text: str, reason: str) -> None:
        self.rule = rule
        self.text = text
        super().__init__(f"[INTERNAL_INVARIANT] {reason}: {rule} node {text!r}.")
