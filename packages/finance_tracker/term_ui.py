"""Interactive terminal prompts (prompt_toolkit-based).

Kept apart from the import pipeline so the prompts can be tested in isolation
with a pipe input and a dummy output.
"""

from __future__ import annotations

from collections.abc import Iterable

from prompt_toolkit import PromptSession
from prompt_toolkit.completion import WordCompleter
from prompt_toolkit.validation import ValidationError, Validator


class _ChoiceValidator(Validator):
    def __init__(self, choices: dict[str, str]) -> None:
        self._choices = choices

    def validate(self, document) -> None:
        text = document.text.strip()
        if text.lower() not in self._choices:
            raise ValidationError(
                message="Pick one of the listed categories (Tab to complete)",
                cursor_position=len(document.text),
            )


def select_category(
    categories: Iterable[str],
    *,
    message: str = "Category: ",
    default: str = "",
    session: PromptSession | None = None,
) -> str:
    """Prompt until the user enters one of ``categories``.

    Matching is case-insensitive; the canonical spelling is returned.
    ``session`` lets tests supply a ``PromptSession`` wired to a pipe input.
    """

    names = list(categories)
    if not names:
        raise ValueError("no categories to choose from")
    by_lower = {name.lower(): name for name in names}

    completer = WordCompleter(names, ignore_case=True, match_middle=True, sentence=True)
    if session is None:
        sess: PromptSession = PromptSession()
    else:
        sess = PromptSession(
            input=getattr(session, "input", None),
            output=getattr(session, "output", None),
        )
    answer = sess.prompt(
        message,
        default=default,
        completer=completer,
        validator=_ChoiceValidator(by_lower),
        validate_while_typing=False,
    )
    return by_lower[answer.strip().lower()]


__all__ = ["select_category"]
