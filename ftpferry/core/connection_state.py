"""Connection state machine – validates and enforces legal state transitions."""

DISCONNECTED = "disconnected"
CONNECTED = "connected"

# Legal transitions: current_state -> set of allowed next states
TRANSITIONS: dict[str, set[str]] = {
    DISCONNECTED: {CONNECTED},
    CONNECTED:    {DISCONNECTED},
}

ALL_STATES = set(TRANSITIONS.keys())


def is_valid_transition(current: str, target: str) -> bool:
    """Return True if *current -> target* is a legal transition."""
    return target in TRANSITIONS.get(current, set())


def assert_transition(current: str, target: str) -> None:
    """Raise ValueError if the transition is illegal."""
    if not is_valid_transition(current, target):
        raise ValueError(
            f"Illegal connection state transition: {current!r} -> {target!r}. "
            f"Allowed from {current!r}: {TRANSITIONS.get(current, set())}"
        )
