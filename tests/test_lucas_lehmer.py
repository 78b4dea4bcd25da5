import unittest

import pytest

import lucasLehmer
from lucasLehmer import (
    Verdict,
    classify,
    is_prime,
    lucas_lehmer,
    lucas_lehmer_sequence,
    mersenne_digits,
    mersenne_mod,
    mersenne_number,
    prefilter,
    trial_divisors,
    trial_limit,
)

MERSENNE_EXPONENTS = [2, 3, 5, 7, 13, 17, 19, 31, 61, 89, 107, 127]


class TestFilters(unittest.TestCase):

    def test_mersenne_number(self):
        self.assertEqual(mersenne_number(2), 3)
        self.assertEqual(mersenne_number(11), 2047)
        self.assertEqual(mersenne_number(64), 2**64 - 1)

    def test_mersenne_digits(self):
        for p in list(range(1, 400)) + [521, 4423, 9689]:
            self.assertEqual(mersenne_digits(p), len(str(mersenne_number(p))), p)
        self.assertEqual(mersenne_digits(127), 39)

    def test_one_and_zero_are_not_prime(self):
        self.assertFalse(is_prime(0))
        self.assertFalse(is_prime(1))
        self.assertTrue(is_prime(2))

    def test_composite_exponents_stop_at_exponent_check(self):
        for p in [1, 4, 6, 8, 9, 15, 21, 25, 91, 1001]:
            self.assertIs(classify(p), Verdict.COMPOSITE_EXPONENT, p)

    def test_two_is_trivial(self):
        self.assertIs(prefilter(2), Verdict.TRIVIAL_PRIME)

    def test_algebraic_divisor(self):
        """p = 3 mod 4 with 2p+1 prime: 47 | M23 and 23 | M11."""
        self.assertIs(prefilter(23), Verdict.ALGEBRAIC_DIVISOR)
        self.assertIs(prefilter(11), Verdict.ALGEBRAIC_DIVISOR)
        self.assertIs(prefilter(83), Verdict.ALGEBRAIC_DIVISOR)

    def test_algebraic_divisor_skips_three(self):
        # 2*3+1 = 7 is M3 itself
        self.assertIsNone(prefilter(3))

    def test_trial_division(self):
        # 233 = 2*29*4 + 1 and 223 = 2*37*3 + 1
        self.assertIn(233, list(trial_divisors(29)))
        self.assertIs(prefilter(29), Verdict.TRIAL_DIVISOR)
        self.assertIs(prefilter(37), Verdict.TRIAL_DIVISOR)

    def test_trial_divisors_shape(self):
        for p in [13, 29, 61, 101]:
            for q in trial_divisors(p):
                self.assertEqual((q - 1) % (2 * p), 0)
                self.assertIn(q % 8, (1, 7))
                self.assertTrue(q % 3 and q % 5 and q % 7)
                self.assertLess(q, mersenne_number(p))

    def test_trial_limit(self):
        self.assertEqual(trial_limit(29), 14)
        self.assertEqual(trial_limit(2**40), lucasLehmer.ULONG_MAX // 2**41)

    def test_mersenne_exponents_reach_lucas_lehmer(self):
        for p in MERSENNE_EXPONENTS[1:]:
            self.assertIsNone(prefilter(p), p)


class TestLucasLehmer(unittest.TestCase):

    def test_fold_matches_modulo(self):
        for p in [3, 7, 13, 31, 61]:
            mp = mersenne_number(p)
            for v in [0, 1, mp - 1, mp, mp + 1, 2 * mp, mp * mp - 1, (mp - 1) ** 2 - 2, 12345678901234567]:
                self.assertEqual(mersenne_mod(v, p, mp), v % mp, (p, v))

    def test_fold_of_minus_two(self):
        mp = mersenne_number(7)
        self.assertEqual(mersenne_mod(-2, 7, mp), mp - 2)

    def test_sequence_primes(self):
        for p in MERSENNE_EXPONENTS:
            self.assertTrue(lucas_lehmer_sequence(p), p)

    def test_sequence_composites(self):
        # 11 and 23 never reach this stage in the pipeline, the sequence agrees anyway
        for p in [11, 23, 29, 37, 67]:
            self.assertFalse(lucas_lehmer_sequence(p), p)

    def test_m67_needs_the_full_test(self):
        # smallest factor 193707721 is far beyond the trial bound
        self.assertIsNone(prefilter(67))
        self.assertIs(classify(67), Verdict.LUCAS_LEHMER_COMPOSITE)


class TestOracle(unittest.TestCase):

    def test_callback_only_when_sequence_runs(self):
        reached = []
        for p in (1, 2, 4, 11, 29, 31, 67):
            classify(p, on_lucas_lehmer=reached.append)
        self.assertEqual(reached, [31, 67])

    def test_callback_does_not_change_verdict(self):
        for p in range(1, 80):
            self.assertIs(classify(p, on_lucas_lehmer=lambda p: None), classify(p), p)

    def test_known_mersenne_primes(self):
        for p in MERSENNE_EXPONENTS:
            self.assertTrue(lucas_lehmer(p), p)

    def test_prime_exponents_that_fail(self):
        for p in [11, 23, 29, 37, 41, 43, 47, 53, 59, 67, 71, 73, 79, 97]:
            self.assertFalse(lucas_lehmer(p), p)

    def test_matches_generic_definition(self):
        expected = {2, 3, 5, 7, 13, 17, 19, 31, 61, 89, 107, 127}
        found = {p for p in range(1, 130) if lucas_lehmer(p)}
        self.assertEqual(found, expected)

    def test_verdict_kinds(self):
        self.assertEqual(classify(4).kind, "composite-by-primality")
        self.assertEqual(classify(23).kind, "composite-by-divisor")
        self.assertEqual(classify(29).kind, "composite-by-divisor")
        self.assertEqual(classify(67).kind, "composite-by-divisor")
        self.assertEqual(classify(31).kind, "probable-prime")
        self.assertEqual(classify(2).kind, "probable-prime")


@pytest.mark.parametrize("p, verdict", [
    (1, Verdict.COMPOSITE_EXPONENT),
    (2, Verdict.TRIVIAL_PRIME),
    (3, Verdict.PROBABLE_PRIME),
    (4, Verdict.COMPOSITE_EXPONENT),
    (11, Verdict.ALGEBRAIC_DIVISOR),
    (29, Verdict.TRIAL_DIVISOR),
    (67, Verdict.LUCAS_LEHMER_COMPOSITE),
    (127, Verdict.PROBABLE_PRIME),
])
def test_classify(p, verdict):
    assert classify(p) is verdict
