import math
from typing import TYPE_CHECKING, List

from pywfa.atomic import StateData, Transition, validate
from pywfa._private.exceptions import InvalidReferenceException

if TYPE_CHECKING:
    from pywfa.automaton import Automaton


class Builder:
    """Incrementally assembles the state graph of an automaton.

    All algorithms that produce automata go through a Builder: states are
    added first and referenced by index afterwards, so any transition or start
    index that does not exist yet is rejected immediately.
    Call get_automaton() to obtain the (validated) result.
    """

    def __init__(self):
        self.statesdata: List[StateData] = []
        self.start = 0

    @classmethod
    def from_automaton(cls, automaton: 'Automaton') -> 'Builder':
        """A builder holding a copy of `automaton`."""
        builder = cls()
        builder.start = builder.append(automaton) + automaton.start
        return builder

    def __len__(self):
        return len(self.statesdata)

    def _check(self, index, what="state"):
        if not 0 <= index < len(self.statesdata):
            raise InvalidReferenceException(index, len(self.statesdata), what=what)

    def add_state(self, endweight: float = -math.inf, name=None) -> int:
        """Add a state and return its index. New states are non-accepting by default."""
        self.statesdata.append(StateData(endweight=endweight, name=name))
        return len(self.statesdata) - 1

    def add_states(self, count: int) -> int:
        """Add `count` non-accepting states and return the index of the first one."""
        first = len(self.statesdata)
        self.statesdata.extend(StateData() for _ in range(count))
        return first

    def add_transition(self, source: int, destination: int, distribution=None, weight: float = 0.0) -> Transition:
        """Add a transition consuming one element drawn from `distribution`,
           or an epsilon transition if distribution is None."""
        self._check(source, "source state")
        self._check(destination, "destination state")
        newtrans = Transition(destination, distribution, weight)
        self.statesdata[source].transitions.append(newtrans)
        return newtrans

    def add_epsilon_transition(self, source: int, destination: int, weight: float = 0.0) -> Transition:
        return self.add_transition(source, destination, None, weight)

    def set_endweight(self, state: int, value: float):
        self._check(state)
        self.statesdata[state].endweight = value

    def get_endweight(self, state: int) -> float:
        self._check(state)
        return self.statesdata[state].endweight

    def set_start(self, state: int):
        self._check(state, "start state")
        self.start = state

    def append(self, automaton: 'Automaton') -> int:
        """Copy the states of `automaton` into this builder, renumbered by the
           returned offset. The start state of the copy is offset + automaton.start."""
        offset = len(self.statesdata)
        for data in automaton.statesdata:
            self.statesdata.append(StateData(
                endweight=data.endweight,
                transitions=[Transition(t.destination + offset, t.distribution, t.weight) for t in data.transitions],
                name=data.name))
        return offset

    def get_automaton(self) -> 'Automaton':
        """Validate the graph and return it as a new Automaton."""
        from pywfa.automaton import Automaton
        if not self.statesdata:
            self.add_state()
        validate(self.statesdata, self.start)
        automaton = Automaton(self.statesdata, self.start, check=False)
        self.statesdata = [StateData(d.endweight, list(d.transitions), d.name) for d in self.statesdata]
        return automaton
