"""Distributions over single sequence elements.

An automaton transition consumes one element, and its weight is a whole
distribution over the alphabet rather than a single symbol. The automaton
algorithms only rely on the operations declared by ElementDistribution, so
any alphabet (characters, tokens, integers) can be plugged in by subclassing
it. DiscreteDistribution is a finite-table implementation of that interface.

Element distributions are always normalized; the scale of a transition lives
in its log weight.
"""

import math
from abc import ABC, abstractmethod
from typing import Dict, Hashable, Iterable

from pywfa._private.util import log_sum_exp


class ElementDistribution(ABC):
    """The capabilities automaton algorithms need from an element distribution."""

    @classmethod
    @abstractmethod
    def point_mass(cls, element) -> 'ElementDistribution':
        """A distribution putting all its mass on `element`."""

    @abstractmethod
    def product(self, other: 'ElementDistribution') -> 'ElementDistribution':
        """Normalized pointwise product of self and other."""

    @abstractmethod
    def weighted_sum(self, weight: float, other: 'ElementDistribution', other_weight: float) -> 'ElementDistribution':
        """Normalized mixture of self and other with log-scale mixture weights."""

    @abstractmethod
    def log_average_of(self, other: 'ElementDistribution') -> float:
        """log of sum_x self(x) * other(x); -inf if the supports are disjoint."""

    @abstractmethod
    def partial_uniform(self) -> 'ElementDistribution':
        """Uniform distribution over the support of self."""

    @abstractmethod
    def get_log_prob(self, element) -> float:
        """Log-mass of a single element."""

    @abstractmethod
    def max_diff(self, other: 'ElementDistribution') -> float:
        """Largest absolute difference in probability between self and other."""

    def equals(self, other: 'ElementDistribution', tolerance: float = 0.0) -> bool:
        """Approximate equality used when merging transitions."""
        return self.max_diff(other) <= tolerance

    def support(self) -> Iterable:
        """Elements with nonzero mass."""
        raise NotImplementedError(f"{self.__class__.__name__} cannot enumerate its support")


class DiscreteDistribution(ElementDistribution):
    """A distribution over finitely many hashable elements, stored as a table."""

    __slots__ = ['probs']

    def __init__(self, probs: Dict[Hashable, float]):
        total = sum(probs.values())
        if any(p < 0.0 for p in probs.values()):
            raise ValueError("Probabilities must be non-negative")
        if total <= 0.0:
            raise ValueError("Distribution must have nonzero total mass")
        self.probs = {x: p / total for x, p in probs.items() if p > 0.0}

    @classmethod
    def point_mass(cls, element) -> 'DiscreteDistribution':
        return cls({element: 1.0})

    @classmethod
    def uniform(cls, elements) -> 'DiscreteDistribution':
        return cls({x: 1.0 for x in elements})

    @classmethod
    def from_probabilities(cls, probs: Dict[Hashable, float]) -> 'DiscreteDistribution':
        return cls(dict(probs))

    def product(self, other: 'DiscreteDistribution') -> 'DiscreteDistribution':
        if len(other.probs) < len(self.probs):
            small, large = other.probs, self.probs
        else:
            small, large = self.probs, other.probs
        prod = {x: p * large[x] for x, p in small.items() if x in large}
        if not prod:
            raise ValueError("Product of distributions with disjoint supports")
        return DiscreteDistribution(prod)

    def weighted_sum(self, weight, other, other_weight) -> 'DiscreteDistribution':
        total = log_sum_exp(weight, other_weight)
        if total == -math.inf:
            raise ValueError("Mixture weights must not both be zero")
        a, b = math.exp(weight - total), math.exp(other_weight - total)
        mixed = {x: a * p for x, p in self.probs.items()}
        for x, p in other.probs.items():
            mixed[x] = mixed.get(x, 0.0) + b * p
        return DiscreteDistribution(mixed)

    def log_average_of(self, other) -> float:
        s = sum(p * other.probs.get(x, 0.0) for x, p in self.probs.items())
        return math.log(s) if s > 0.0 else -math.inf

    def partial_uniform(self) -> 'DiscreteDistribution':
        return DiscreteDistribution.uniform(self.probs)

    def get_log_prob(self, element) -> float:
        p = self.probs.get(element, 0.0)
        return math.log(p) if p > 0.0 else -math.inf

    def max_diff(self, other) -> float:
        keys = self.probs.keys() | other.probs.keys()
        return max(abs(self.probs.get(x, 0.0) - other.probs.get(x, 0.0)) for x in keys)

    def support(self):
        return iter(self.probs)

    def is_point_mass(self) -> bool:
        return len(self.probs) == 1

    def __len__(self):
        return len(self.probs)

    def __repr__(self):
        if self.is_point_mass():
            return repr(next(iter(self.probs)))
        return '{' + ', '.join(f'{x!r}: {p:.4g}' for x, p in self.probs.items()) + '}'
