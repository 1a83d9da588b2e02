"""Token interpolation for emitted text."""

from __future__ import annotations

import re
from dataclasses import dataclass

from exec_tester.configuration.run_parameters import InterpolationMode

_INTEGER_SEED = re.compile(r"[+-]?[0-9]+")


@dataclass(frozen=True)
class InterpolationResult:
    """Interpolated text plus a recoverable warning, if one was raised."""

    text: str
    warning: str | None = None


def interpolate(
    template: str,
    token: str,
    mode: InterpolationMode | str,
    counter: int,
    seed: str,
) -> InterpolationResult:
    """Replace every occurrence of `token` in `template`.

    ``int_counter`` renders ``int(seed) + counter``; a seed that is not an integer
    produces a warning and counts from zero. Only plain ASCII digits with an
    optional sign count as an integer. ``string`` renders `seed` verbatim.
    Any other mode renders the bare counter.
    """
    if not token or token not in template:
        return InterpolationResult(text=template)

    if mode == InterpolationMode.INT_COUNTER:
        warning = None
        start = 0
        if seed:
            if _INTEGER_SEED.fullmatch(seed):
                start = int(seed)
            else:
                warning = (
                    f"'interpolate_val' of '{seed}' cannot be converted to a number! "
                    "Defaulting to '0'"
                )
        return InterpolationResult(
            text=template.replace(token, str(start + counter)), warning=warning
        )
    if mode == InterpolationMode.STRING:
        return InterpolationResult(text=template.replace(token, seed))
    return InterpolationResult(text=template.replace(token, str(counter)))
