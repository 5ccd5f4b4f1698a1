import functools
import logging
import math
from collections import deque
from typing import Dict, Hashable, Iterable, List, Optional, Sequence, Tuple, Type, cast

from pywfa import algorithms
from pywfa.atomic import State, StateCollection, StateData, all_transitions, validate
from pywfa.builder import Builder
from pywfa.distributions import DiscreteDistribution, ElementDistribution
from pywfa._private import util
from pywfa._private.exceptions import DivergentWeightException, InfiniteSupportException, \
    StateCountExceededException
from pywfa._private.partition_refinement import PartitionRefinement
from pywfa._private.util import log_sum_exp, log_sum_exp_all

logger = logging.getLogger(__name__)

DEFAULT_TOLERANCE = 1e-9
"""Distributions and weights closer than this are merged by determinize() and minimize()"""
DEFAULT_MAX_STATES = 100000
"""Default ceiling on the number of states determinize() may create"""
END_SYMBOL = "#"
"""Reserved target name marking the end of a rule in from_grammar()"""


class Automaton:
    """A weighted finite-state automaton over sequences.

    Each transition consumes one sequence element and is weighted by a
    distribution over elements times exp(weight), or consumes nothing (an
    epsilon transition) and carries only a weight. Each state has an end
    weight; -inf marks a non-accepting state. The weight of a sequence is the
    log-sum-exp, over all accepting paths, of the sum of transition weights,
    element log-probabilities and the final end weight.

    States live in `statesdata`, addressed by index; `states` gives read-only
    State views. Automata returned by the methods below are new objects and
    must not be mutated in place; use a Builder to construct new ones.
    """

    # ==================
    # Initializers
    # ==================

    def __init__(self, statesdata: Optional[List[StateData]] = None, start: int = 0, check: bool = True):
        """Creates an automaton from a list of states and a start index.

        :param statesdata: the states; a single non-accepting state if omitted
        :param start: index of the start state
        :param check: validate that start and all transition destinations exist

        Without arguments the result is the zero automaton, which accepts nothing.
        """
        self.statesdata: List[StateData] = [StateData()] if statesdata is None else list(statesdata)
        """All states, addressed by index"""
        self.start = start
        """The index of the start state"""
        if check:
            validate(self.statesdata, self.start)

    @classmethod
    def zero(cls) -> 'Automaton':
        """The automaton assigning weight zero (log weight -inf) to every sequence."""
        return cls()

    @classmethod
    def from_sequence(cls, sequence: Iterable, weight: float = 0.0,
                      distribution_type: Type[ElementDistribution] = DiscreteDistribution) -> 'Automaton':
        """A point mass: log weight `weight` on `sequence` and -inf elsewhere."""
        builder = Builder()
        current = builder.add_state()
        for element in sequence:
            nextstate = builder.add_state()
            builder.add_transition(current, nextstate, distribution_type.point_mass(element))
            current = nextstate
        builder.set_endweight(current, weight)
        return builder.get_automaton()

    @classmethod
    def from_sequences(cls, sequences: Iterable[Iterable],
                       distribution_type: Type[ElementDistribution] = DiscreteDistribution) -> 'Automaton':
        """Create a deterministic automaton (a trie) giving log weight 0 to each distinct sequence."""
        builder = Builder()
        root = builder.add_state()
        children: Dict[Tuple[int, Hashable], int] = {}
        for sequence in sequences:
            current = root
            for element in sequence:
                if (current, element) not in children:
                    nextstate = builder.add_state()
                    builder.add_transition(current, nextstate, distribution_type.point_mass(element))
                    children[(current, element)] = nextstate
                current = children[(current, element)]
            builder.set_endweight(current, 0.0)
        return builder.get_automaton()

    @classmethod
    def single_element(cls, distribution: ElementDistribution, weight: float = 0.0) -> 'Automaton':
        """Sequences of length one, distributed according to `distribution`."""
        builder = Builder()
        first, second = builder.add_state(), builder.add_state(endweight=0.0)
        builder.add_transition(first, second, distribution, weight)
        return builder.get_automaton()

    @classmethod
    def uniform_on(cls, distribution: ElementDistribution, log_value: float = 0.0) -> 'Automaton':
        """A single accepting state looping on the support of `distribution`.

        Every sequence (the empty one included) whose elements all lie in the
        support gets log weight `log_value`; other sequences get -inf."""
        uniform = distribution.partial_uniform()
        builder = Builder()
        state = builder.add_state(endweight=log_value)
        builder.add_transition(state, state, uniform, -uniform.log_average_of(uniform))
        return builder.get_automaton()

    @classmethod
    def from_grammar(cls, grammar: Dict[str, Iterable], startsymbol: str,
                     distribution_type: Type[ElementDistribution] = DiscreteDistribution) -> 'Automaton':
        """Compile a weighted right-linear grammar into an automaton.

        `grammar` maps each nonterminal to its rules. A rule is a tuple
        (sequence, target) or (sequence, target, logweight): reading `sequence`
        moves from the nonterminal to `target`, and the target "#" ends the
        derivation. Elements of a sequence are either plain elements (turned
        into point masses) or ElementDistribution instances. An empty sequence
        gives an epsilon transition.

        Example: {"Start": [("ab", "Start", -1.0), ("c", "#")]} accepts
        (ab)^n c with log weight -n.
        """
        if END_SYMBOL in grammar:
            raise ValueError(f"'{END_SYMBOL}' is reserved and cannot be a nonterminal")
        if startsymbol not in grammar:
            raise ValueError(f"Start symbol {startsymbol!r} has no rules")
        builder = Builder()
        statedict = {name: builder.add_state(name=name) for name in list(grammar.keys()) + [END_SYMBOL]}
        builder.set_endweight(statedict[END_SYMBOL], 0.0)
        builder.set_start(statedict[startsymbol])

        for lexstate, rules in grammar.items():
            for rule in rules:
                if len(rule) not in (2, 3):
                    raise ValueError(f"Malformed rule {rule!r} for {lexstate!r}")
                if rule[1] not in statedict:
                    raise ValueError(f"Unknown target {rule[1]!r} in rule for {lexstate!r}")
                elements = list(rule[0])
                w = 0.0 if len(rule) < 3 else float(rule[2])
                currstate = statedict[lexstate]
                if not elements:
                    builder.add_epsilon_transition(currstate, statedict[rule[1]], w)
                    continue
                for idx, element in enumerate(elements):
                    if idx == len(elements) - 1:  # dump weight on last transition
                        targetstate, tw = statedict[rule[1]], w
                    else:
                        targetstate, tw = builder.add_state(), 0.0
                    if not isinstance(element, ElementDistribution):
                        element = distribution_type.point_mass(element)
                    builder.add_transition(currstate, targetstate, element, tw)
                    currstate = targetstate
        return builder.get_automaton()

    # ==================
    # Structure
    # ==================

    @property
    def states(self) -> StateCollection:
        """Indexed and iterable State views, in index order."""
        return StateCollection(self)

    @property
    def start_state(self) -> State:
        return self.states[self.start]

    def arccount(self) -> int:
        """Counts number of transitions in the automaton."""
        return sum(len(data.transitions) for data in self.statesdata)

    def is_epsilon_free(self) -> bool:
        return not any(t.is_epsilon for _, t in all_transitions(self.statesdata))

    def is_deterministic(self, tolerance: float = DEFAULT_TOLERANCE) -> bool:
        """True if there are no epsilons and no state has two transitions with
           distributions equal within `tolerance`. This is the notion determinize()
           produces: transitions with different but overlapping distributions
           may still both admit the same element."""
        for data in self.statesdata:
            if any(t.is_epsilon for t in data.transitions):
                return False
            classes = util.cluster_distributions([t.distribution for t in data.transitions], tolerance)
            if len(set(classes)) != len(classes):
                return False
        return True

    def is_zero(self) -> bool:
        """True if no accepting state is reachable from the start state."""
        return self.start not in algorithms.coaccessible(self)

    def has_finite_support(self) -> bool:
        """True if only finitely many sequences have nonzero weight."""
        return algorithms.is_acyclic(self.remove_epsilons())

    @functools.cached_property
    def _epsilon_closures(self) -> List[Dict[int, float]]:
        if self.is_epsilon_free():
            return [{s: 0.0} for s in range(len(self.statesdata))]
        return [algorithms.epsilon_closure(self, s) for s in range(len(self.statesdata))]

    # ==================
    # Evaluation
    # ==================

    def _follow_epsilons(self, weights: Dict[int, float]) -> Dict[int, float]:
        closures = self._epsilon_closures
        result: Dict[int, float] = {}
        for s, w in weights.items():
            for target, cost in closures[s].items():
                result[target] = log_sum_exp(result.get(target, -math.inf), w + cost)
        return result

    def log_probability_of(self, sequence: Iterable) -> float:
        """The log weight of `sequence`, summed over all accepting paths;
           -inf if there is none. A string is read as a sequence of characters."""
        current = self._follow_epsilons({self.start: 0.0})
        for element in sequence:
            step: Dict[int, float] = {}
            for s, w in current.items():
                for t in self.statesdata[s].transitions:
                    if t.is_epsilon:
                        continue
                    logprob = t.distribution.get_log_prob(element)
                    if logprob == -math.inf or t.weight == -math.inf:
                        continue
                    step[t.destination] = log_sum_exp(step.get(t.destination, -math.inf), w + t.weight + logprob)
            if not step:
                return -math.inf
            current = self._follow_epsilons(step)
        return log_sum_exp_all(w + self.statesdata[s].endweight for s, w in current.items()
                               if self.statesdata[s].is_accepting)

    def get_log_normalizer(self) -> float:
        """The log of the total weight over all sequences. +inf if it diverges."""
        return algorithms.log_normalizer(self)

    def try_normalize(self) -> Tuple[bool, 'Automaton']:
        """Scale so that the total weight is 1. Returns (False, self) if the
           normalizer is zero or divergent."""
        lognormalizer = self.get_log_normalizer()
        if math.isinf(lognormalizer):
            return False, self
        return True, self.scale_log(-lognormalizer)

    def enumerate_support(self, tokenize_outputs: bool = False):
        """Return a generator of (sequence, log weight) pairs, one for each
           sequence with nonzero weight, shortest first.

           Sequences are tuples of elements. When every element the automaton
           can read is a str they are joined into strings, unless
           tokenize_outputs is True. Raises InfiniteSupportException right
           away if the support is infinite."""
        source = self.remove_epsilons()
        if not algorithms.is_acyclic(source):
            raise InfiniteSupportException()
        joined = not tokenize_outputs and all(isinstance(x, str) for _, t in all_transitions(source.statesdata)
                                              for x in t.distribution.support())
        return self._enumerate(source, joined)

    @staticmethod
    def _enumerate(source: 'Automaton', joined: bool):
        seen = set()
        Q = deque([(source.start, ())])
        while Q:
            s, seq = Q.popleft()
            data = source.statesdata[s]
            if data.is_accepting and seq not in seen:
                seen.add(seq)
                yield (''.join(seq) if joined else seq), source.log_probability_of(seq)
            for t in data.transitions:
                for element in t.distribution.support():
                    Q.append((t.destination, seq + (element,)))

    # ==================
    # Operations
    # ==================

    def union(self, other: 'Automaton', weight: float = 0.0, other_weight: float = 0.0) -> 'Automaton':
        """Weighted sum: a new start state with epsilon transitions into copies
           of self and other carrying the log mixture weights."""
        builder = Builder()
        start = builder.add_state()
        builder.set_start(start)
        offset1 = builder.append(self)
        offset2 = builder.append(other)
        builder.add_epsilon_transition(start, offset1 + self.start, weight)
        builder.add_epsilon_transition(start, offset2 + other.start, other_weight)
        return builder.get_automaton()

    def concatenate(self, other: 'Automaton') -> 'Automaton':
        """Concatenation of self and other. The end weights of self move onto
           epsilon transitions into the start of other."""
        builder = Builder.from_automaton(self)
        offset = builder.append(other)
        for s, data in enumerate(self.statesdata):
            if data.is_accepting:
                builder.set_endweight(s, -math.inf)
                builder.add_epsilon_transition(s, offset + other.start, data.endweight)
        return builder.get_automaton()

    def closure(self) -> 'Automaton':
        """Apply self* (Kleene star). The empty sequence gets an extra log weight 0.
           Each accepting state loops back to the start of self through an
           epsilon carrying its end weight, so repeated weights multiply."""
        builder = Builder()
        start = builder.add_state(endweight=0.0)
        builder.set_start(start)
        offset = builder.append(self)
        inner = offset + self.start
        builder.add_epsilon_transition(start, inner)
        for s, data in enumerate(self.statesdata):
            if data.is_accepting:
                builder.add_epsilon_transition(offset + s, inner, data.endweight)
        return builder.get_automaton()

    kleene_star = closure

    def kleene_plus(self) -> 'Automaton':
        """Apply self+."""
        return self.concatenate(self.closure())

    def optional(self) -> 'Automaton':
        """Calculate self | '' (weighted sum with the empty sequence)."""
        return self.union(Automaton.from_sequence(()))

    def repeat(self, min_times: int = 1, max_times: Optional[int] = None) -> 'Automaton':
        """Concatenations of self with itself between min_times and max_times times
           (no upper bound if max_times is None)."""
        if min_times < 0 or (max_times is not None and max_times < min_times):
            raise ValueError(f"Invalid repetition range [{min_times}, {max_times}]")
        result = Automaton.from_sequence(())
        for _ in range(min_times):
            result = result.concatenate(self)
        if max_times is None:
            return result.concatenate(self.closure())
        tail = Automaton.from_sequence(())
        for _ in range(max_times - min_times):
            tail = Automaton.from_sequence(()).union(self.concatenate(tail))
        return result.concatenate(tail)

    def product(self, other: 'Automaton', max_states: Optional[int] = None) -> 'Automaton':
        """Pointwise product of the two weight functions (weighted intersection).

        Pair states are created breadth-first from the pair of start states, so
        unreachable pairs never exist. Epsilons of `other` are removed first;
        epsilons of self advance only the left component. Raises
        StateCountExceededException if more than max_states pairs are needed."""
        right = other if other.is_epsilon_free() else other.remove_epsilons()
        builder = Builder()
        firstpair = (self.start, right.start)
        pairs = {firstpair: builder.add_state(name=firstpair)}
        Q = deque([firstpair])

        def _target(pair):
            if pair not in pairs:
                if max_states is not None and len(pairs) >= max_states:
                    raise StateCountExceededException(max_states)
                pairs[pair] = builder.add_state(name=pair)
                Q.append(pair)
            return pairs[pair]

        while Q:
            s1, s2 = Q.popleft()
            currentstate = pairs[(s1, s2)]
            data1, data2 = self.statesdata[s1], right.statesdata[s2]
            builder.set_endweight(currentstate, data1.endweight + data2.endweight)
            for t1 in data1.transitions:
                if t1.is_epsilon:
                    builder.add_epsilon_transition(currentstate, _target((t1.destination, s2)), t1.weight)
                    continue
                for t2 in data2.transitions:
                    logaverage = t1.distribution.log_average_of(t2.distribution)
                    if logaverage == -math.inf:
                        continue
                    builder.add_transition(currentstate, _target((t1.destination, t2.destination)),
                                           t1.distribution.product(t2.distribution),
                                           t1.weight + t2.weight + logaverage)
        logger.debug("Product of %d and %d states has %d reachable states", len(self), len(right), len(pairs))
        return builder.get_automaton().trim()

    intersection = product

    def scale_log(self, log_scale: float) -> 'Automaton':
        """Add log_scale to the weight of every sequence."""
        builder = Builder.from_automaton(self)
        for s, data in enumerate(self.statesdata):
            if data.is_accepting:
                builder.set_endweight(s, data.endweight + log_scale)
        return builder.get_automaton()

    def reverse(self) -> 'Automaton':
        """Reverse the automaton, using epsilons out of a new start state."""
        builder = Builder()
        builder.add_states(len(self.statesdata))
        start = builder.add_state()
        builder.set_start(start)
        for s, t in all_transitions(self.statesdata):
            builder.add_transition(t.destination, s, t.distribution, t.weight)
        for s, data in enumerate(self.statesdata):
            if data.is_accepting:
                builder.add_epsilon_transition(start, s, data.endweight)
        builder.set_endweight(self.start, 0.0)
        return builder.get_automaton()

    def trim(self) -> 'Automaton':
        """Remove states that aren't both accessible and coaccessible.
           The start state is always kept. States are renumbered breadth-first."""
        keep = algorithms.accessible(self) & algorithms.coaccessible(self)
        mapping = {self.start: 0}
        order = []
        Q = deque([self.start])
        while Q:
            s = Q.popleft()
            order.append(s)
            for t in self.statesdata[s].transitions:
                if t.destination in keep and t.destination not in mapping:
                    mapping[t.destination] = len(mapping)
                    Q.append(t.destination)
        builder = Builder()
        for s in order:
            builder.add_state(self.statesdata[s].endweight, self.statesdata[s].name)
        for s in order:
            for t in self.statesdata[s].transitions:
                if t.destination in mapping:
                    builder.add_transition(mapping[s], mapping[t.destination], t.distribution, t.weight)
        return builder.get_automaton()

    def remove_epsilons(self) -> 'Automaton':
        """Create new epsilon-free (and trimmed) automaton equivalent to the original."""
        # For each state s and each state u in its epsilon closure, reached with
        # total epsilon weight c, copy u's element transitions to s adding c,
        # and add c + u's end weight into s's end weight.
        if self.is_epsilon_free():
            return self.trim()
        builder = Builder()
        for data in self.statesdata:
            builder.add_state(name=data.name)
        builder.set_start(self.start)
        for s, closure in enumerate(self._epsilon_closures):
            endweight = -math.inf
            for target, cost in closure.items():
                targetdata = self.statesdata[target]
                for t in targetdata.transitions:
                    if not t.is_epsilon:
                        builder.add_transition(s, t.destination, t.distribution, cost + t.weight)
                if targetdata.is_accepting:
                    endweight = log_sum_exp(endweight, cost + targetdata.endweight)
            builder.set_endweight(s, endweight)
        return builder.get_automaton().trim()

    def merge_parallel_transitions(self) -> 'Automaton':
        """Fuse transitions sharing source and destination into one. Element
           transitions are fused into the weighted sum of their distributions."""
        builder = Builder()
        for data in self.statesdata:
            builder.add_state(data.endweight, data.name)
        builder.set_start(self.start)
        for s, data in enumerate(self.statesdata):
            merged = {}
            for t in data.transitions:
                if t.weight == -math.inf:
                    continue
                key = (t.destination, t.is_epsilon)
                if key not in merged:
                    merged[key] = (t.distribution, t.weight)
                    continue
                distribution, w = merged[key]
                if not t.is_epsilon and t.distribution is not distribution:
                    distribution = distribution.weighted_sum(w, t.distribution, t.weight)
                merged[key] = (distribution, log_sum_exp(w, t.weight))
            for (destination, _), (distribution, w) in merged.items():
                builder.add_transition(s, destination, distribution, w)
        return builder.get_automaton()

    def simplify(self) -> 'Automaton':
        """Remove epsilons, fuse parallel transitions and trim."""
        return self.remove_epsilons().merge_parallel_transitions().trim()

    def determinize(self, max_states: int = DEFAULT_MAX_STATES, tolerance: float = DEFAULT_TOLERANCE) -> 'Automaton':
        """Weighted determinization in the log semiring.

        Subset states hold (state, residual) pairs, where the residual is the
        log weight a path still owes after the shared part was emitted on the
        transition. Outgoing transitions of a subset whose distributions are
        equal within `tolerance` become one transition. Residuals are compared
        after rounding to `tolerance`, so this is a best-effort construction
        that is exact only up to that tolerance.

        Raises StateCountExceededException when more than max_states states
        would be needed; some weighted automata have no finite deterministic
        equivalent. Raises DivergentWeightException when an epsilon cycle
        makes some path weight infinite."""
        source = self.remove_epsilons()
        statesdata = source.statesdata
        builder = Builder()

        def _key(subset):
            if tolerance > 0.0:
                return frozenset((s, round(r / tolerance)) for s, r in subset)
            return frozenset(subset)

        firstsubset = ((source.start, 0.0),)
        subsets = {_key(firstsubset): builder.add_state()}
        Q = deque([(0, firstsubset)])
        while Q:
            currentstate, subset = Q.popleft()
            builder.set_endweight(currentstate, log_sum_exp_all(r + statesdata[s].endweight for s, r in subset
                                                                if statesdata[s].is_accepting))
            moves = [(r, t) for s, r in subset for t in statesdata[s].transitions]
            classes = util.cluster_distributions([t.distribution for _, t in moves], tolerance)
            collectlabels = {}
            for c, move in zip(classes, moves):
                collectlabels.setdefault(c, []).append(move)

            for c in sorted(collectlabels):
                group = collectlabels[c]
                # wprime is the mass the matching transitions share; the rest is
                # passed on as residuals in the next subset
                wprime = log_sum_exp_all(r + t.weight for r, t in group)
                if wprime == -math.inf:
                    continue
                if wprime == math.inf:
                    raise DivergentWeightException()
                residuals: Dict[int, float] = {}
                distribution, dweight = None, -math.inf
                for r, t in group:
                    w = r + t.weight
                    if w == -math.inf:
                        continue
                    residuals[t.destination] = log_sum_exp(residuals.get(t.destination, -math.inf), w - wprime)
                    if distribution is not None and t.distribution is not distribution \
                            and not t.distribution.equals(distribution):
                        distribution = distribution.weighted_sum(dweight, t.distribution, w)
                    elif distribution is None:
                        distribution = t.distribution
                    dweight = log_sum_exp(dweight, w)
                newsubset = tuple(sorted(residuals.items()))
                key = _key(newsubset)
                if key not in subsets:
                    if len(subsets) >= max_states:
                        raise StateCountExceededException(max_states)
                    subsets[key] = builder.add_state()
                    Q.append((subsets[key], newsubset))
                builder.add_transition(currentstate, subsets[key], distribution, wprime)
        logger.debug("Determinized %d states into %d", len(source), len(subsets))
        return builder.get_automaton()

    def try_determinize(self, max_states: int = DEFAULT_MAX_STATES,
                        tolerance: float = DEFAULT_TOLERANCE) -> Tuple[bool, 'Automaton']:
        """Like determinize(), but returns (False, self) instead of raising when
           the state ceiling is hit or a weight diverges, and (True, result) otherwise."""
        try:
            return True, self.determinize(max_states=max_states, tolerance=tolerance)
        except (StateCountExceededException, DivergentWeightException) as e:
            logger.info("Determinization abandoned: %s", e)
            return False, self

    def minimize(self, tolerance: float = DEFAULT_TOLERANCE) -> 'Automaton':
        """Merge states with identical behavior by partition refinement.

        Blocks start out as states with equal end weights and are split until
        the states in each block have the same multiset of (distribution,
        weight, destination block) transitions, with distributions and weights
        compared within `tolerance`. Works on nondeterministic automata too,
        but does not produce a canonical form."""
        source = self.remove_epsilons()
        statesdata = source.statesdata
        moves = [t for data in statesdata for t in data.transitions]
        distclasses = util.cluster_distributions([t.distribution for t in moves], tolerance)
        weightclasses = util.cluster_values([t.weight for t in moves], tolerance)
        labels = {id(t): (c, weightclasses[t.weight]) for t, c in zip(moves, distclasses)}
        endclasses = util.cluster_values([data.endweight for data in statesdata], tolerance)

        initialpartition = {}
        for s, data in enumerate(statesdata):
            initialpartition.setdefault(endclasses[data.endweight], []).append(s)
        P = PartitionRefinement(initialpartition.values())

        def _signature(s):
            return tuple(sorted((labels[id(t)], P.block_of(t.destination)) for t in statesdata[s].transitions))

        equivalenceclasses = P.refine_until_stable(_signature).astuples()
        logger.debug("Minimized %d states into %d", len(statesdata), len(equivalenceclasses))
        if len(equivalenceclasses) == len(statesdata):
            return source  # we were already minimal, no need to reconstruct
        return source.merge_equivalent_states(equivalenceclasses)

    def merge_equivalent_states(self, equivalenceclasses: Iterable[Sequence[int]]) -> 'Automaton':
        """Merge equivalent states given as groups of state indices. Each group
           is replaced by its first member."""
        eqmap = {s: group[0] for group in equivalenceclasses for s in group}
        representers = sorted(set(eqmap.values()))
        builder = Builder()
        statemap = {s: builder.add_state(self.statesdata[s].endweight, self.statesdata[s].name) for s in representers}
        builder.set_start(statemap[eqmap[self.start]])
        for s in representers:
            for t in self.statesdata[s].transitions:
                builder.add_transition(statemap[s], statemap[eqmap[t.destination]], t.distribution, t.weight)
        return builder.get_automaton()

    # ==================
    # Rendering
    # ==================

    def view(self, show_weights=False, show_names=False) -> 'graphviz.Digraph':
        """Creates a 'graphviz.Digraph' object to view the automaton. Will automatically display in Jupyter.

            :param show_weights: force display of weights even if 0.0
            :param show_names: label states with their names where they have one
            :return: A Digraph object which will automatically display in Jupyter.

           If you would like to display the automaton from a non-Jupyter environment, please use :code:`Automaton.render`
        """
        import graphviz
        if not util.check_graphviz_installed():
            raise EnvironmentError("Graphviz executable not found. Please install [Graphviz](https://www.graphviz.org/download/). On macOS, use `brew install graphviz`.")

        def _float_format(num):
            if not show_weights:
                return ""
            s = '{0:.2f}'.format(num).rstrip('0').rstrip('.')
            s = '0' if s == '-0' else s
            return "/" + s

        if show_weights == False:
            if any(t.weight != 0.0 for _, t in all_transitions(self.statesdata)) or \
                    any(data.endweight != 0.0 for data in self.statesdata if data.is_accepting):
                show_weights = True

        g = graphviz.Digraph('Automaton', graph_attr={"rankdir": "LR"})
        g.attr(rankdir='LR', size='8,5')
        for s, data in enumerate(self.statesdata):
            label = str(data.name) if show_names and data.name is not None else str(s)
            if data.is_accepting:
                label += _float_format(data.endweight)
            g.node(str(s), label=graphviz.nohtml(label),
                   shape='doublecircle' if data.is_accepting else 'circle',
                   style='filled, bold' if s == self.start else 'filled')

        grouped = {}
        for s, t in all_transitions(self.statesdata):
            label = 'ϵ' if t.is_epsilon else repr(t.distribution)
            grouped.setdefault((s, t.destination), []).append(label + _float_format(t.weight))
        for (s, destination), labellist in grouped.items():
            g.edge(str(s), str(destination), label=graphviz.nohtml(', '.join(sorted(labellist))))
        return g

    def render(self, view=True, filename: str = 'automaton', format='pdf', tight=True):
        """
        Renders the automaton to a file and optionally opens the file.
        :param view: If True, the rendered file will be opened.
        :param format: The file format for the Digraph. Typically 'pdf', 'png', or 'svg'. View all formats: https://graphviz.org/docs/outputs/
        :param tight: If False, the rendered file will have whitespace margins around the graph.
        """
        import graphviz
        digraph = cast(graphviz.Digraph, self.view())
        digraph.format = format
        if tight:
            digraph.graph_attr['margin'] = '0'  # Remove padding
        digraph.render(view=view, filename=filename, cleanup=True)

    # ==================
    # Magic Methods
    # ==================

    def __copy__(self):
        """Copy an automaton through a Builder."""
        return Builder.from_automaton(self).get_automaton()

    def __len__(self):
        """Return the number of states."""
        return len(self.statesdata)

    def __str__(self):
        """Generate a tab-separated listing: one line per transition
           (source, destination, label, weight), then one per accepting state
           (state, end weight). The start state comes first."""
        order = [self.start] + [s for s in range(len(self.statesdata)) if s != self.start]
        st = ""
        for s in order:
            for t in self.statesdata[s].transitions:
                label = '@0@' if t.is_epsilon else repr(t.distribution)
                st += '{}\t{}\t{}\t{}\n'.format(s, t.destination, label, t.weight)
        for s in order:
            if self.statesdata[s].is_accepting:
                st += '{}\t{}\n'.format(s, self.statesdata[s].endweight)
        return st

    def __or__(self, other):
        """Union."""
        return self.union(other)

    def __and__(self, other):
        """Product."""
        return self.product(other)

    def __mul__(self, other):
        """Concatenation."""
        return self.concatenate(other)


# ==================
# Global Functions
# ==================
def union(a1: Automaton, a2: Automaton, weight: float = 0.0, other_weight: float = 0.0):
    return a1.union(a2, weight=weight, other_weight=other_weight)

def concatenate(a1: Automaton, a2: Automaton):
    return a1.concatenate(a2)

def closure(a: Automaton):
    return a.closure()

def product(a1: Automaton, a2: Automaton, max_states: Optional[int] = None):
    return a1.product(a2, max_states=max_states)

def remove_epsilons(a: Automaton):
    return a.remove_epsilons()

def trim(a: Automaton):
    return a.trim()

def determinize(a: Automaton, max_states: int = DEFAULT_MAX_STATES, tolerance: float = DEFAULT_TOLERANCE):
    return a.determinize(max_states=max_states, tolerance=tolerance)

def try_determinize(a: Automaton, max_states: int = DEFAULT_MAX_STATES, tolerance: float = DEFAULT_TOLERANCE):
    return a.try_determinize(max_states=max_states, tolerance=tolerance)

def minimize(a: Automaton, tolerance: float = DEFAULT_TOLERANCE):
    return a.minimize(tolerance=tolerance)

def log_probability_of(a: Automaton, sequence):
    return a.log_probability_of(sequence)

def get_log_normalizer(a: Automaton):
    return a.get_log_normalizer()

def enumerate_support(a: Automaton, tokenize_outputs: bool = False):
    return a.enumerate_support(tokenize_outputs=tokenize_outputs)
