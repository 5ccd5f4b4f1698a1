from pywfa.automaton import Automaton, union, concatenate, closure, product, remove_epsilons, trim, \
    determinize, try_determinize, minimize, log_probability_of, get_log_normalizer, enumerate_support, \
    DEFAULT_TOLERANCE, DEFAULT_MAX_STATES
from pywfa.atomic import State, StateCollection, StateData, Transition
from pywfa.builder import Builder
from pywfa.distributions import ElementDistribution, DiscreteDistribution
from pywfa._private.exceptions import InvalidReferenceException, StateCountExceededException, \
    InfiniteSupportException, DivergentWeightException

__author__     = "Mans Hulden"
__copyright__  = "Copyright 2022"
__credits__    = ["Mans Hulden"]
__license__    = "Apache"
__version__    = "0.1"
__maintainer__ = "Mans Hulden"
__email__      = "mans.hulden@gmail.com"
__status__     = "Prototype"
