from __future__ import annotations

import sys
from typing import Any

from tqdm import tqdm
from tqdm.std import tqdm as TqdmType

"""Round progress display with tqdm (TTY only).

One bar per session, one step per generator round. In non-TTY environments (CI, pipes)
the bar is not created so no control sequences end up in captured output.
"""

__all__ = [
    "RoundProgressTracker",
    "is_tty_enabled",
]


def is_tty_enabled() -> bool:
    """True if stdout is a TTY and progress should be displayed."""
    return sys.stdout.isatty()


class RoundProgressTracker:
    """Progress over the rounds of one analysis session."""

    def __init__(self, max_rounds: int, *, description: str = "Splitting", enabled: bool = True) -> None:
        self.max_rounds = max_rounds
        self.description = description
        self.current_round = 0

        self.enabled = enabled and is_tty_enabled()
        self.pbar: TqdmType[Any] | None
        if self.enabled:
            self.pbar = tqdm(
                total=max_rounds,
                desc=description,
                unit="round",
                disable=False,
                leave=True,
                position=0,
                ncols=80,
                ascii=True,
            )
        else:
            self.pbar = None

    def start_round(self, round_number: int) -> None:
        self.current_round = round_number
        if self.enabled and self.pbar is not None:
            self.pbar.set_description(f"{self.description} (round {round_number})")

    def finish_round(self, *, rows: int, processes: int, target: int) -> None:
        """Advance one step and show dataset size against the target."""
        if self.enabled and self.pbar is not None:
            self.pbar.update(1)
            self.pbar.set_postfix(rows=rows, processes=processes, target=target)
            self.pbar.set_description(self.description)

    def close(self) -> None:
        if self.enabled and self.pbar is not None:
            self.pbar.close()
            self.pbar = None

    def __enter__(self) -> RoundProgressTracker:
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.close()
