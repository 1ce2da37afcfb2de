"""Detection of ``{{#quiz <path>}}`` directives.

A directive is recognized only when it is the entire content of a single
text token. Prose before or after the marker disables expansion.
"""

import re
from dataclasses import dataclass

# Argument is everything between "quiz " and the closing braces.
QUIZ_PATTERN = re.compile(r"\{\{#quiz ([^}]+)\}\}")

_QUOTES = ('"', "'")


@dataclass(frozen=True)
class DirectiveMatch:
    """A matched directive and its raw argument."""

    argument: str

    @property
    def path(self) -> str:
        """The referenced file path, with surrounding quotes removed."""
        arg = self.argument.strip()
        if len(arg) >= 2 and arg[0] in _QUOTES and arg[-1] == arg[0]:
            arg = arg[1:-1].strip()
        return arg


def match_directive(text: str) -> DirectiveMatch | None:
    """Match a text token against the directive pattern.

    Args:
        text: Content of one text token.

    Returns:
        The match if the whole token is a directive, None otherwise.
    """
    m = QUIZ_PATTERN.fullmatch(text)
    if m is None:
        return None
    return DirectiveMatch(m.group(1))
