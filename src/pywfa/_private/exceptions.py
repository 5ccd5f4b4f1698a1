class InvalidReferenceException(IndexError):
    """A state index that does not exist in the automaton being built or read."""

    def __init__(self, index, count, what="state"):
        self.index = index
        self.count = count
        super().__init__(f"Invalid {what} index {index}: automaton has {count} states")


class StateCountExceededException(Exception):
    """Raised when an algorithm would create more states than allowed."""

    def __init__(self, max_states):
        self.max_states = max_states
        super().__init__(f"Maximum number of states ({max_states}) exceeded")


class InfiniteSupportException(Exception):
    """Raised when enumerating an automaton that accepts infinitely many sequences."""

    def __init__(self, message="Automaton has infinite support"):
        super().__init__(message)


class DivergentWeightException(Exception):
    """Raised when an algorithm meets a path weight that does not converge."""

    def __init__(self, message="Automaton has a divergent (infinite) path weight"):
        super().__init__(message)
