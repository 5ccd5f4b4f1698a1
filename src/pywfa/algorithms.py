#!/usr/bin/env python

"""Defines common algorithms over automata"""
import itertools
import logging
import math
from collections import deque
from typing import TYPE_CHECKING, Callable, Iterable, List

import numpy

from pywfa.atomic import create_reverse_index
from pywfa._private.util import log_sum_exp, log_sum_exp_all

if TYPE_CHECKING:
    from .automaton import Automaton

logger = logging.getLogger(__name__)

# Spectral radius at or above which a cycle's geometric series is treated as divergent
CONVERGENCE_MARGIN = 1e-12


def reachable_from(roots: Iterable[int], successors: Callable) -> set:
    """All nodes on a path from any of `roots`, roots included."""
    explored = set(roots)
    stack = deque(explored)
    while stack:
        source = stack.pop()
        for target in successors(source):
            if target not in explored:
                explored.add(target)
                stack.append(target)
    return explored


def accessible(automaton: 'Automaton') -> set:
    """Indices of the states on a path from the start state."""
    statesdata = automaton.statesdata
    return reachable_from([automaton.start], lambda s: (t.destination for t in statesdata[s].transitions))


def coaccessible(automaton: 'Automaton') -> set:
    """Indices of the states from which an accepting state can be reached."""
    inverse = create_reverse_index(automaton.statesdata)
    finals = [i for i, data in enumerate(automaton.statesdata) if data.is_accepting]
    return reachable_from(finals, lambda s: inverse[s])


def scc(roots: Iterable[int], successors: Callable) -> List[list]:
    """Calculate the strongly connected components reachable from `roots`.

       This is Tarjan's (1972) algorithm with an explicit stack instead of
       recursion, so long chains (e.g. automata for long sequences) are fine.
       Tarjan, R. E. (1972), "Depth-first search and linear graph algorithms",
       SIAM Journal on Computing, 1 (2): 146–160.

       Components are returned in reverse topological order: a component
       comes before every component that has an edge into it."""

    cntr = itertools.count()
    indices, lowlink, onstack = {}, {}, set()
    S, sccs = [], []

    for root in roots:
        if root in indices:
            continue
        indices[root] = lowlink[root] = next(cntr)
        S.append(root)
        onstack.add(root)
        work = [(root, iter(successors(root)))]
        while work:
            state, targets = work[-1]
            for target in targets:
                if target not in indices:
                    indices[target] = lowlink[target] = next(cntr)
                    S.append(target)
                    onstack.add(target)
                    work.append((target, iter(successors(target))))
                    break
                elif target in onstack:
                    lowlink[state] = min(lowlink[state], indices[target])
            else:
                work.pop()
                if work:
                    parent = work[-1][0]
                    lowlink[parent] = min(lowlink[parent], lowlink[state])
                if lowlink[state] == indices[state]:
                    currscc = []
                    while True:
                        target = S.pop()
                        onstack.remove(target)
                        currscc.append(target)
                        if target == state:
                            break
                    sccs.append(currscc)
    return sccs


def _geometric(logweight: float) -> float:
    """log(1 + w + w^2 + ...) for w = exp(logweight)."""
    if logweight >= 0.0:
        return math.inf
    return -math.log1p(-math.exp(logweight))


def _component_totals(component: list, edges: Callable, inflow: dict) -> dict:
    """Sum over all paths inside a cyclic component, solving (I - E)^-1 in probability space."""
    pos = {v: i for i, v in enumerate(component)}
    n = len(component)
    E = numpy.zeros((n, n))
    for v in component:
        for u, w in edges(v):
            if u in pos:
                E[pos[v], pos[u]] += math.exp(w) if w < 700.0 else math.inf
    incoming = [inflow.get(v, -math.inf) for v in component]
    m = max(incoming)
    if m == -math.inf:
        return {v: -math.inf for v in component}
    if m == math.inf or not numpy.isfinite(E).all() or \
            numpy.max(numpy.abs(numpy.linalg.eigvals(E))) >= 1.0 - CONVERGENCE_MARGIN:
        return {v: math.inf for v in component}
    K = numpy.linalg.inv(numpy.eye(n) - E)
    y = numpy.array([math.exp(a - m) for a in incoming]) @ K
    return {v: (m + math.log(y[pos[v]]) if y[pos[v]] > 0.0 else -math.inf) for v in component}


def path_sums(source: int, edges: Callable) -> dict:
    """Log-semiring sum of the weights of all paths from `source` to every node
       reachable from it, the empty path included.

       `edges(v)` yields (target, logweight) pairs. Components of the graph are
       visited in topological order; cycles are summed in closed form, and a
       node whose total does not converge gets +inf."""

    def successors(v):
        return (u for u, _ in edges(v))

    components = scc([source], successors)
    components.reverse()
    inflow = {source: 0.0}
    totals = {}
    for component in components:
        if len(component) == 1:
            v = component[0]
            loops = [w for u, w in edges(v) if u == v]
            total = inflow.get(v, -math.inf)
            if loops and total != -math.inf:
                total += _geometric(log_sum_exp_all(loops))
            totals[v] = total
        else:
            totals.update(_component_totals(component, edges, inflow))
        members = set(component)
        for v in component:
            if totals[v] == -math.inf:
                continue
            for u, w in edges(v):
                if u not in members and w != -math.inf:
                    inflow[u] = log_sum_exp(inflow.get(u, -math.inf), totals[v] + w)
    return totals


def epsilon_closure(automaton: 'Automaton', state: int) -> dict:
    """Finds, for a state, the states reachable by epsilon-hopping and the
       log-sum-exp of the weights of all epsilon paths to each of them.
       The state itself is included (with weight 0.0 unless it lies on an epsilon cycle)."""
    statesdata = automaton.statesdata

    def epsilons(v):
        return ((t.destination, t.weight) for t in statesdata[v].transitions
                if t.is_epsilon and t.weight != -math.inf)

    return path_sums(state, epsilons)


def log_normalizer(automaton: 'Automaton') -> float:
    """The log of the total weight the automaton assigns to all sequences.

       Element distributions are normalized, so every transition contributes
       exactly its own weight. Returns +inf if the weight of some cycle does
       not converge."""
    trimmed = automaton.trim()
    statesdata = trimmed.statesdata

    def alledges(v):
        return ((t.destination, t.weight) for t in statesdata[v].transitions if t.weight != -math.inf)

    totals = path_sums(trimmed.start, alledges)
    result = log_sum_exp_all(total + statesdata[v].endweight for v, total in totals.items()
                             if statesdata[v].is_accepting)
    if result == math.inf:
        logger.warning("Normalizer diverges: cyclic weight mass does not converge")
    return result


def is_acyclic(automaton: 'Automaton') -> bool:
    """True if no cycle is reachable from the start state."""
    statesdata = automaton.statesdata

    def successors(v):
        return (t.destination for t in statesdata[v].transitions)

    for component in scc([automaton.start], successors):
        if len(component) > 1 or component[0] in successors(component[0]):
            return False
    return True
