import math
from typing import Iterable, List, Optional

from pywfa._private.exceptions import InvalidReferenceException


class Transition:
    """An edge to `destination`. A transition with no distribution is an epsilon."""
    __slots__ = ['destination', 'distribution', 'weight']

    def __init__(self, destination: int, distribution=None, weight: float = 0.0):
        self.destination = destination
        self.distribution = distribution
        self.weight = weight

    @property
    def is_epsilon(self) -> bool:
        return self.distribution is None

    def __repr__(self):
        label = 'ε' if self.is_epsilon else repr(self.distribution)
        return f'Transition({label} -> {self.destination}, {self.weight})'


class StateData:
    """The stored part of a state: end weight and outgoing transitions."""
    __slots__ = ['endweight', 'transitions', 'name']

    def __init__(self, endweight: float = -math.inf, transitions: Optional[List[Transition]] = None, name=None):
        self.endweight = endweight
        self.transitions = [] if transitions is None else transitions
        self.name = name

    @property
    def is_accepting(self) -> bool:
        return self.endweight != -math.inf


class State:
    """A read-only view of a state: the owning automaton, an index and the state data."""
    __slots__ = ['owner', 'index', 'data']

    def __init__(self, owner, index: int, data: StateData):
        self.owner = owner
        self.index = index
        self.data = data

    @property
    def endweight(self) -> float:
        return self.data.endweight

    @property
    def transitions(self) -> tuple:
        return tuple(self.data.transitions)

    @property
    def name(self):
        return self.data.name

    @property
    def is_accepting(self) -> bool:
        return self.data.is_accepting

    @property
    def is_start(self) -> bool:
        return self.index == self.owner.start

    def epsilon_transitions(self):
        """Generator for the epsilon transitions out of this state."""
        return (t for t in self.data.transitions if t.is_epsilon)

    def element_transitions(self):
        """Generator for the transitions consuming an element."""
        return (t for t in self.data.transitions if not t.is_epsilon)

    def all_targets(self) -> set:
        """Returns the set of state indices this state has transitions to."""
        return {t.destination for t in self.data.transitions}

    def __eq__(self, other):
        return isinstance(other, State) and self.owner is other.owner and self.index == other.index

    def __hash__(self):
        return hash((id(self.owner), self.index))

    def __repr__(self):
        return f'State({self.index}, endweight={self.endweight}, transitions={len(self.data.transitions)})'


class StateCollection:
    """Indexed, iterable access to the states of an automaton as State views."""
    __slots__ = ['owner']

    def __init__(self, owner):
        self.owner = owner

    def __getitem__(self, index: int) -> State:
        statesdata = self.owner.statesdata
        if not 0 <= index < len(statesdata):
            raise InvalidReferenceException(index, len(statesdata))
        return State(self.owner, index, statesdata[index])

    def __len__(self):
        return len(self.owner.statesdata)

    def __iter__(self):
        owner = self.owner
        return (State(owner, i, data) for i, data in enumerate(owner.statesdata))


def all_transitions(statesdata: Iterable[StateData]):
    """Enumerate all transitions as (source index, Transition)."""
    for i, data in enumerate(statesdata):
        for t in data.transitions:
            yield i, t


def create_reverse_index(statesdata: List[StateData]) -> list:
    """For each state index, the set of states with a transition into it."""
    idx = [set() for _ in statesdata]
    for s, t in all_transitions(statesdata):
        idx[t.destination].add(s)
    return idx


def validate(statesdata: List[StateData], start: int):
    """Check that the start index and every transition destination exist."""
    count = len(statesdata)
    if not 0 <= start < count:
        raise InvalidReferenceException(start, count, what="start state")
    for _, t in all_transitions(statesdata):
        if not 0 <= t.destination < count:
            raise InvalidReferenceException(t.destination, count, what="destination state")
