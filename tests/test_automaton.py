import itertools
import math
import unittest
from pywfa import Automaton, Builder, DiscreteDistribution, InfiniteSupportException, \
    StateCountExceededException
from pywfa import union, concatenate, closure, product, trim
from pywfa._private.util import check_graphviz_installed, log_sum_exp

LOG3 = math.log(0.3)
LOG7 = math.log(0.7)


def all_strings(alphabet, maxlen):
    for n in range(maxlen + 1):
        for t in itertools.product(alphabet, repeat=n):
            yield ''.join(t)


class TestConstruction(unittest.TestCase):
    """Test the primitive automata"""

    def test_from_sequence(self):
        ab = Automaton.from_sequence("ab")
        self.assertEqual(ab.log_probability_of("ab"), 0.0)
        for s in ["", "a", "b", "ba", "abc", "abab"]:
            self.assertEqual(ab.log_probability_of(s), -math.inf)

    def test_from_sequence_tokens(self):
        a = Automaton.from_sequence([3, 1, 4])
        self.assertEqual(a.log_probability_of([3, 1, 4]), 0.0)
        self.assertEqual(a.log_probability_of([3, 1]), -math.inf)

    def test_empty_sequence(self):
        e = Automaton.from_sequence("")
        self.assertEqual(len(e), 1)
        self.assertEqual(e.log_probability_of(""), 0.0)
        self.assertEqual(e.log_probability_of("a"), -math.inf)

    def test_zero(self):
        z = Automaton.zero()
        self.assertTrue(z.is_zero())
        self.assertEqual(z.log_probability_of(""), -math.inf)
        self.assertEqual(z.get_log_normalizer(), -math.inf)

    def test_from_sequences(self):
        words = Automaton.from_sequences(["cat", "car", "dog"])
        self.assertTrue(words.is_deterministic())
        for w in ["cat", "car", "dog"]:
            self.assertEqual(words.log_probability_of(w), 0.0)
        self.assertEqual(words.log_probability_of("ca"), -math.inf)
        self.assertEqual(len(words), 8)

    def test_single_element(self):
        d = DiscreteDistribution({'a': 0.25, 'b': 0.75})
        a = Automaton.single_element(d)
        self.assertAlmostEqual(a.log_probability_of("b"), math.log(0.75))
        self.assertEqual(a.log_probability_of("bb"), -math.inf)

    def test_uniform_on(self):
        u = Automaton.uniform_on(DiscreteDistribution({'a': 0.2, 'b': 0.8}), log_value=-1.0)
        for s in ["", "a", "ab", "bbba"]:
            self.assertAlmostEqual(u.log_probability_of(s), -1.0)
        self.assertEqual(u.log_probability_of("abc"), -math.inf)

    def test_from_grammar(self):
        g = {"Start": [("ab", "Start", math.log(0.5)), ("c", "#")]}
        a = Automaton.from_grammar(g, "Start")
        self.assertEqual(a.log_probability_of("c"), 0.0)
        self.assertAlmostEqual(a.log_probability_of("ababc"), 2 * math.log(0.5))
        self.assertEqual(a.log_probability_of("abab"), -math.inf)

    def test_from_grammar_epsilon_and_distributions(self):
        vowel = DiscreteDistribution.uniform("ae")
        g = {"S": [("", "V", LOG3), ("x", "V", LOG7)],
             "V": [([vowel], "#")]}
        a = Automaton.from_grammar(g, "S")
        self.assertAlmostEqual(a.log_probability_of("a"), LOG3 + math.log(0.5))
        self.assertAlmostEqual(a.log_probability_of("xe"), LOG7 + math.log(0.5))

    def test_from_grammar_errors(self):
        with self.assertRaises(ValueError):
            Automaton.from_grammar({"S": [("a", "T")]}, "S")
        with self.assertRaises(ValueError):
            Automaton.from_grammar({"S": [("a", "#")], "#": []}, "S")
        with self.assertRaises(ValueError):
            Automaton.from_grammar({"S": [("a", "#")]}, "T")
        with self.assertRaises(ValueError):
            Automaton.from_grammar({"S": [("a",)]}, "S")


class TestCombinators(unittest.TestCase):
    """Test union, concatenation, closure and product"""

    def test_union(self):
        a = Automaton.from_sequence("ab")
        b = Automaton.from_sequence("ab", weight=math.log(0.5))
        c = Automaton.from_sequence("c")
        u = union(a, b) | c
        self.assertAlmostEqual(u.log_probability_of("ab"), math.log(1.5))
        self.assertEqual(u.log_probability_of("c"), 0.0)
        self.assertEqual(u.log_probability_of("abc"), -math.inf)

    def test_union_law(self):
        a = Automaton.from_grammar({"S": [("a", "S", math.log(0.4)), ("b", "#", math.log(0.6))]}, "S")
        b = Automaton.from_sequence("a").closure().concatenate(Automaton.from_sequence("b"))
        u = a.union(b, LOG3, LOG7)
        for s in all_strings("ab", 4):
            expected = log_sum_exp(LOG3 + a.log_probability_of(s), LOG7 + b.log_probability_of(s))
            self.assertAlmostEqual(u.log_probability_of(s), expected)

    def test_union_with_itself(self):
        a = Automaton.from_sequence("ab")
        self.assertAlmostEqual((a | a).log_probability_of("ab"), math.log(2))
        self.assertEqual(len(a), 3)

    def test_concatenate(self):
        a = Automaton.from_sequence("ab")
        b = Automaton.from_sequence("cd")
        ab_cd = concatenate(a, b)
        self.assertEqual(ab_cd.log_probability_of("abcd"), 0.0)
        self.assertEqual(ab_cd.log_probability_of("ab"), -math.inf)
        self.assertEqual(ab_cd.log_probability_of("cd"), -math.inf)
        self.assertEqual((a * b).log_probability_of("abcd"), 0.0)

    def test_concatenate_weights(self):
        a = Automaton.from_sequence("a", weight=LOG3)
        b = Automaton.from_sequence("b", weight=LOG7)
        self.assertAlmostEqual((a * b).log_probability_of("ab"), LOG3 + LOG7)

    def test_concatenate_ambiguous_split(self):
        astar = Automaton.from_sequence("a").closure()
        twice = astar * astar
        for k in range(4):
            self.assertGreaterEqual(twice.log_probability_of("a" * k), 0.0)
            self.assertAlmostEqual(twice.log_probability_of("a" * k), math.log(k + 1))

    def test_closure(self):
        astar = closure(Automaton.from_sequence("a"))
        self.assertEqual(astar.log_probability_of(""), 0.0)
        self.assertEqual(astar.log_probability_of("aaa"), 0.0)
        self.assertEqual(astar.log_probability_of("b"), -math.inf)
        self.assertEqual(astar.kleene_star().log_probability_of("a"), math.inf)

    def test_closure_weights(self):
        half = Automaton.from_sequence("ab", weight=math.log(0.5)).closure()
        self.assertEqual(half.log_probability_of(""), 0.0)
        self.assertAlmostEqual(half.log_probability_of("abab"), 2 * math.log(0.5))
        self.assertEqual(half.log_probability_of("aba"), -math.inf)

    def test_kleene_plus_and_optional(self):
        a = Automaton.from_sequence("a")
        plus = a.kleene_plus()
        self.assertEqual(plus.log_probability_of(""), -math.inf)
        self.assertEqual(plus.log_probability_of("aa"), 0.0)
        opt = Automaton.from_sequence("ab").optional()
        self.assertEqual(opt.log_probability_of(""), 0.0)
        self.assertEqual(opt.log_probability_of("ab"), 0.0)
        self.assertEqual(opt.log_probability_of("a"), -math.inf)

    def test_repeat(self):
        a = Automaton.from_sequence("a")
        r = a.repeat(2, 3)
        self.assertEqual(r.log_probability_of("a"), -math.inf)
        self.assertEqual(r.log_probability_of("aa"), 0.0)
        self.assertEqual(r.log_probability_of("aaa"), 0.0)
        self.assertEqual(r.log_probability_of("aaaa"), -math.inf)
        unbounded = a.repeat(2)
        self.assertEqual(unbounded.log_probability_of("aaaaa"), 0.0)
        self.assertEqual(unbounded.log_probability_of("a"), -math.inf)
        self.assertEqual(a.repeat(0, 0).log_probability_of(""), 0.0)
        with self.assertRaises(ValueError):
            a.repeat(-1)
        with self.assertRaises(ValueError):
            a.repeat(3, 2)

    def test_product_law(self):
        a = Automaton.from_sequence("ab").union(Automaton.from_sequence("ac"), LOG3, LOG7)
        letters = DiscreteDistribution({'a': 0.5, 'b': 0.25, 'c': 0.25})
        b = Automaton.from_grammar({"S": [([letters], "S", math.log(0.9)), ("", "#", math.log(0.1))]}, "S")
        p = product(a, b)
        for s in all_strings("abc", 3):
            expected = a.log_probability_of(s) + b.log_probability_of(s)
            if expected == -math.inf:
                self.assertEqual(p.log_probability_of(s), -math.inf)
            else:
                self.assertAlmostEqual(p.log_probability_of(s), expected)

    def test_product_with_epsilons_on_both_sides(self):
        left = Automaton.from_sequence("a") * Automaton.from_sequence("b").closure()
        right = Automaton.from_sequence("ab").union(Automaton.from_sequence("abb"), LOG3, LOG7)
        p = left & right
        self.assertAlmostEqual(p.log_probability_of("ab"), LOG3)
        self.assertAlmostEqual(p.log_probability_of("abb"), LOG7)
        self.assertEqual(p.log_probability_of("a"), -math.inf)

    def test_product_uniform(self):
        u = Automaton.uniform_on(DiscreteDistribution.uniform("abc"))
        ab = Automaton.from_sequence("ab")
        p = u & ab
        self.assertAlmostEqual(p.log_probability_of("ab"), 0.0)
        self.assertEqual(p.log_probability_of("abc"), -math.inf)

    def test_product_disjoint(self):
        p = Automaton.from_sequence("ab").product(Automaton.from_sequence("cd"))
        self.assertTrue(p.is_zero())
        self.assertEqual(len(p), 1)

    def test_product_state_ceiling(self):
        ab = Automaton.from_sequence("ab")
        with self.assertRaises(StateCountExceededException):
            ab.product(ab, max_states=2)
        self.assertEqual(len(ab.product(ab, max_states=3)), 3)

    def test_operands_unchanged(self):
        a = Automaton.from_sequence("ab")
        b = Automaton.from_sequence("cd")
        before = (str(a), str(b))
        a.union(b), a.concatenate(b), a.closure(), a.product(b), a.reverse()
        self.assertEqual((str(a), str(b)), before)

    def test_scale_log(self):
        a = Automaton.from_sequence("ab").scale_log(-2.0)
        self.assertAlmostEqual(a.log_probability_of("ab"), -2.0)

    def test_reverse(self):
        a = Automaton.from_sequence("ab").union(Automaton.from_sequence("abc"), LOG3, LOG7)
        r = a.reverse()
        self.assertAlmostEqual(r.log_probability_of("ba"), LOG3)
        self.assertAlmostEqual(r.log_probability_of("cba"), LOG7)
        self.assertEqual(r.log_probability_of("ab"), -math.inf)


class TestSimplification(unittest.TestCase):
    """Test trimming, epsilon removal and transition merging"""

    def dead_ends(self):
        builder = Builder()
        s0, s1, dead, unreachable = builder.add_states(4), 1, 2, 3
        builder.set_endweight(s1, 0.0)
        builder.set_endweight(unreachable, 0.0)
        builder.add_transition(s0, s1, DiscreteDistribution.point_mass('a'))
        builder.add_transition(s0, dead, DiscreteDistribution.point_mass('b'))
        builder.add_transition(dead, dead, DiscreteDistribution.point_mass('b'))
        builder.add_transition(unreachable, s1, DiscreteDistribution.point_mass('c'))
        return builder.get_automaton()

    def test_trim(self):
        a = self.dead_ends()
        t = trim(a)
        self.assertEqual(len(t), 2)
        self.assertEqual(t.arccount(), 1)
        self.assertEqual(t.log_probability_of("a"), 0.0)
        self.assertEqual(t.log_probability_of("bb"), -math.inf)

    def test_trim_idempotent(self):
        t1 = self.dead_ends().trim()
        t2 = t1.trim()
        self.assertEqual(str(t1), str(t2))
        for s in all_strings("abc", 3):
            self.assertEqual(t1.log_probability_of(s), t2.log_probability_of(s))

    def test_trim_keeps_start(self):
        builder = Builder()
        builder.add_states(2)
        builder.add_transition(0, 1, DiscreteDistribution.point_mass('a'))
        t = builder.get_automaton().trim()
        self.assertEqual(len(t), 1)
        self.assertEqual(t.arccount(), 0)

    def test_remove_epsilons(self):
        a = (Automaton.from_sequence("ab") * Automaton.from_sequence("c").closure()).union(
            Automaton.from_sequence("a"), LOG3, LOG7)
        e = a.remove_epsilons()
        self.assertTrue(e.is_epsilon_free())
        for s in all_strings("abc", 4):
            if a.log_probability_of(s) == -math.inf:
                self.assertEqual(e.log_probability_of(s), -math.inf)
            else:
                self.assertAlmostEqual(e.log_probability_of(s), a.log_probability_of(s))

    def test_epsilon_cycle(self):
        builder = Builder()
        builder.add_states(2)
        builder.set_endweight(0, 0.0)
        builder.add_epsilon_transition(0, 1, math.log(0.5))
        builder.add_epsilon_transition(1, 0, math.log(0.5))
        builder.add_transition(1, 1, DiscreteDistribution.point_mass('a'), math.log(0.5))
        a = builder.get_automaton()
        self.assertAlmostEqual(a.log_probability_of(""), math.log(4 / 3))
        self.assertAlmostEqual(a.remove_epsilons().log_probability_of(""), math.log(4 / 3))
        self.assertAlmostEqual(a.log_probability_of("a"), a.remove_epsilons().log_probability_of("a"))

    def test_merge_parallel_transitions(self):
        builder = Builder()
        builder.add_states(2)
        builder.set_endweight(1, 0.0)
        builder.add_transition(0, 1, DiscreteDistribution.point_mass('a'), math.log(0.5))
        builder.add_transition(0, 1, DiscreteDistribution.point_mass('b'), math.log(0.25))
        builder.add_epsilon_transition(0, 1, math.log(0.1))
        builder.add_epsilon_transition(0, 1, math.log(0.1))
        a = builder.get_automaton()
        m = a.merge_parallel_transitions()
        self.assertEqual(m.arccount(), 2)
        for s in ["", "a", "b", "c"]:
            self.assertAlmostEqual(math.exp(m.log_probability_of(s)), math.exp(a.log_probability_of(s)))

    def test_simplify(self):
        a = Automaton.from_sequence("a").union(Automaton.from_sequence("b"))
        s = a.simplify()
        self.assertTrue(s.is_epsilon_free())
        self.assertEqual(len(s), 3)
        self.assertEqual(s.arccount(), 2)
        self.assertEqual(s.log_probability_of("a"), 0.0)
        self.assertEqual(s.log_probability_of("b"), 0.0)


class TestEvaluation(unittest.TestCase):
    """Test normalizers and support enumeration"""

    def test_log_normalizer(self):
        self.assertEqual(Automaton.from_sequence("abc").get_log_normalizer(), 0.0)
        mix = Automaton.from_sequence("ab").union(Automaton.from_sequence("b"), LOG3, LOG7)
        self.assertAlmostEqual(mix.get_log_normalizer(), 0.0)
        self.assertAlmostEqual(Automaton.from_sequence("a", weight=2.0).get_log_normalizer(), 2.0)

    def test_log_normalizer_geometric(self):
        g = Automaton.from_grammar({"S": [("a", "S", math.log(0.5)), ("", "#", math.log(0.5))]}, "S")
        self.assertAlmostEqual(g.get_log_normalizer(), 0.0)
        self.assertAlmostEqual(g.log_probability_of("aa"), 3 * math.log(0.5))

    def test_log_normalizer_mutual_cycle(self):
        g = Automaton.from_grammar({"S": [("a", "T", math.log(0.5)), ("", "#", math.log(0.5))],
                                    "T": [("b", "S", math.log(0.5)), ("", "#", math.log(0.5))]}, "S")
        self.assertAlmostEqual(g.get_log_normalizer(), 0.0)

    def test_log_normalizer_divergent(self):
        u = Automaton.uniform_on(DiscreteDistribution.uniform("ab"))
        with self.assertLogs('pywfa.algorithms', level='WARNING'):
            self.assertEqual(u.get_log_normalizer(), math.inf)
        ok, same = u.try_normalize()
        self.assertFalse(ok)
        self.assertIs(same, u)

    def test_log_normalizer_ignores_dead_cycles(self):
        builder = Builder()
        builder.add_states(3)
        builder.set_endweight(1, 0.0)
        builder.add_transition(0, 1, DiscreteDistribution.point_mass('a'))
        builder.add_transition(0, 2, DiscreteDistribution.point_mass('b'))
        builder.add_transition(2, 2, DiscreteDistribution.point_mass('b'), 1.0)
        self.assertEqual(builder.get_automaton().get_log_normalizer(), 0.0)

    def test_try_normalize(self):
        a = Automaton.from_sequence("ab", weight=math.log(2.0)).union(Automaton.from_sequence("c"))
        ok, n = a.try_normalize()
        self.assertTrue(ok)
        self.assertAlmostEqual(n.get_log_normalizer(), 0.0)
        self.assertAlmostEqual(n.log_probability_of("ab"), math.log(2 / 3))

    def test_enumerate_support(self):
        a = Automaton.from_sequences(["ab", "c"])
        self.assertEqual(sorted(a.enumerate_support()), [("ab", 0.0), ("c", 0.0)])

    def test_enumerate_support_aggregates_paths(self):
        ab = Automaton.from_sequence("ab")
        support = list((ab | ab).enumerate_support())
        self.assertEqual(len(support), 1)
        self.assertEqual(support[0][0], "ab")
        self.assertAlmostEqual(support[0][1], math.log(2))

    def test_enumerate_support_integer_tokens(self):
        tokens = Automaton.from_sequence([3, 1, 4]).union(Automaton.from_sequence([2]), LOG3, LOG7)
        support = dict(tokens.enumerate_support())
        self.assertEqual(set(support), {(3, 1, 4), (2,)})
        self.assertAlmostEqual(support[(3, 1, 4)], LOG3)

    def test_enumerate_support_distributions(self):
        d = DiscreteDistribution({'a': 0.25, 'b': 0.75})
        a = Automaton.single_element(d) * Automaton.from_sequence("c")
        support = dict(a.enumerate_support(tokenize_outputs=True))
        self.assertEqual(set(support), {('a', 'c'), ('b', 'c')})
        self.assertAlmostEqual(support[('b', 'c')], math.log(0.75))

    def test_enumerate_infinite_support(self):
        astar = Automaton.from_sequence("a").closure()
        self.assertFalse(astar.has_finite_support())
        with self.assertRaises(InfiniteSupportException):
            astar.enumerate_support()

    def test_finite_support_with_dead_cycle(self):
        builder = Builder()
        builder.add_states(3)
        builder.set_endweight(1, 0.0)
        builder.add_transition(0, 1, DiscreteDistribution.point_mass('a'))
        builder.add_transition(0, 2, DiscreteDistribution.point_mass('b'))
        builder.add_transition(2, 2, DiscreteDistribution.point_mass('b'))
        a = builder.get_automaton()
        self.assertTrue(a.has_finite_support())
        self.assertEqual(list(a.enumerate_support()), [("a", 0.0)])


class TestInspection(unittest.TestCase):
    """Test string listing and rendering"""

    def test_str(self):
        listing = str(Automaton.from_sequence("ab"))
        self.assertEqual(listing, "0\t1\t'a'\t0.0\n1\t2\t'b'\t0.0\n2\t0.0\n")

    def test_str_epsilon(self):
        listing = str(Automaton.from_sequence("a") * Automaton.from_sequence("b"))
        self.assertIn("@0@", listing)

    @unittest.skipUnless(check_graphviz_installed(), "Graphviz executable not installed")
    def test_view(self):
        g = Automaton.from_sequence("ab").union(Automaton.from_sequence("c")).view()
        self.assertIn("doublecircle", g.source)
        self.assertIn("ϵ", g.source)


if __name__ == "__main__":
    unittest.main()
