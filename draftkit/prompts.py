"""Interactive prompts for values the user has not supplied."""

from __future__ import annotations

import sys

_EMPTY_INPUT_MESSAGE = "input must be greater than 0"


def get_input_from_prompt(desired_input: str) -> str:
    """Ask for ``desired_input`` until a non-empty answer is given.

    End of input or an interrupt propagates to the caller.
    """
    label = f"Please enter {desired_input}: "
    while True:
        answer = input(label)
        if answer:
            return answer
        print(_EMPTY_INPUT_MESSAGE, file=sys.stderr)