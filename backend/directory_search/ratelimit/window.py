from dataclasses import dataclass
from typing import Optional, Tuple


@dataclass
class Decision:
    allowed: bool
    retry_after_s: float
    remaining: int
    limit: int
    reset_epoch_s: float


@dataclass
class WindowState:
    window_start_s: float
    count: int


def fixed_window_decide(
    now_s: float,
    state: Optional[WindowState],
    limit: int,
    window_s: float,
) -> Tuple[WindowState, Decision]:
    """
    Fixed-window counter pure decision function.

    Args:
        now_s: current epoch seconds
        state: counter for the identity, or None when unseen or expired
        limit: requests allowed per window
        window_s: window length in seconds

    Returns:
        (new_state, Decision)
    """
    if state is None or now_s >= state.window_start_s + window_s:
        state = WindowState(window_start_s=now_s, count=0)

    reset_epoch_s = state.window_start_s + window_s
    if limit <= 0:
        return state, Decision(False, retry_after_s=max(reset_epoch_s - now_s, 0.0), remaining=0, limit=0, reset_epoch_s=reset_epoch_s)

    if state.count >= limit:
        return state, Decision(
            allowed=False,
            retry_after_s=max(reset_epoch_s - now_s, 0.0),
            remaining=0,
            limit=limit,
            reset_epoch_s=reset_epoch_s,
        )

    new_state = WindowState(window_start_s=state.window_start_s, count=state.count + 1)
    return new_state, Decision(
        allowed=True,
        retry_after_s=0.0,
        remaining=limit - new_state.count,
        limit=limit,
        reset_epoch_s=reset_epoch_s,
    )
