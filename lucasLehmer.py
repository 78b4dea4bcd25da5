import enum
import math

import gmpy2

PRIME_ROUNDS = 25           # miller-rabin rounds, false positive <= 4**-25
ULONG_MAX = 2**64 - 1       # trial divisors must stay below this


class Verdict(enum.Enum):
    TRIVIAL_PRIME = "trivial"
    COMPOSITE_EXPONENT = "exponent"
    ALGEBRAIC_DIVISOR = "algebraic"
    TRIAL_DIVISOR = "trial"
    LUCAS_LEHMER_COMPOSITE = "lucas-lehmer"
    PROBABLE_PRIME = "prime"

    @property
    def is_prime(self):
        return self in (Verdict.TRIVIAL_PRIME, Verdict.PROBABLE_PRIME)

    @property
    def kind(self):
        if self.is_prime:
            return "probable-prime"
        if self is Verdict.COMPOSITE_EXPONENT:
            return "composite-by-primality"
        return "composite-by-divisor"


def is_prime(n, rounds=PRIME_ROUNDS):
    # 0 and 1 come back as not prime
    return bool(gmpy2.is_prime(gmpy2.mpz(n), rounds))


def mersenne_number(p):
    return gmpy2.bit_set(gmpy2.mpz(0), p) - 1


# 2**p is never a power of ten, so M_p has as many digits as 2**p
def mersenne_digits(p):
    return int(p * math.log10(2)) + 1


# -------------------------------------------------
# CHEAP FILTERS
# -------------------------------------------------

def trial_limit(p):
    return min(p // 2, ULONG_MAX // (2 * p))


def trial_divisors(p, mp=None):
    """
    Yield the candidate divisors q = 2*p*k + 1 worth testing against M_p.

    Any factor of M_p is 1 or 7 mod 8, and q sharing a factor with 3, 5 or 7
    can't be the smallest one, so both are skipped before the bignum check.
    """
    if mp is None:
        mp = mersenne_number(p)
    for k in range(1, trial_limit(p) + 1):
        q = 2 * p * k + 1
        if q >= mp:
            break
        if q % 8 not in (1, 7):
            continue
        if q % 3 == 0 or q % 5 == 0 or q % 7 == 0:
            continue
        yield q


def prefilter(p, rounds=PRIME_ROUNDS):
    """
    Run the cheap stages in order and return the first conclusive Verdict,
    or None if only the full Lucas-Lehmer test can decide.
    """
    if p == 2:
        return Verdict.TRIVIAL_PRIME

    if not is_prime(p, rounds):
        return Verdict.COMPOSITE_EXPONENT

    mp = mersenne_number(p)

    # p = 3 mod 4 with 2p+1 prime: 2p+1 divides M_p (euler)
    if p > 3 and p % 4 == 3:
        q = 2 * p + 1
        if is_prime(q, rounds) and gmpy2.is_divisible(mp, q):
            return Verdict.ALGEBRAIC_DIVISOR

    for q in trial_divisors(p, mp):
        if gmpy2.is_divisible(mp, q):
            return Verdict.TRIAL_DIVISOR

    return None


# -------------------------------------------------
# LUCAS-LEHMER TEST
# -------------------------------------------------

def mersenne_mod(v, p, mp):
    """
    Reduce v modulo M_p = 2**p - 1 without a division.

    Since 2**p = 1 (mod M_p), v = high*2**p + low folds to high + low. The
    square of anything below M_p needs a single fold, after which at most
    one subtraction of M_p is left.
    """
    if v < 0:
        v += mp
    while v > mp:
        v = gmpy2.t_div_2exp(v, p) + gmpy2.t_mod_2exp(v, p)
    while v >= mp:
        v -= mp
    return v


def lucas_lehmer_sequence(p):
    if p == 2:
        return True
    mp = mersenne_number(p)
    v = gmpy2.mpz(4)
    for _ in range(3, p + 1):
        v = mersenne_mod(v * v - 2, p, mp)
    return v == 0


def classify(p, rounds=PRIME_ROUNDS, on_lucas_lehmer=None):
    """
    Full pipeline for one exponent. on_lucas_lehmer(p) is called once the
    cheap filters are exhausted, just before the expensive sequence runs.
    """
    verdict = prefilter(p, rounds)
    if verdict is not None:
        return verdict
    if on_lucas_lehmer is not None:
        on_lucas_lehmer(p)
    if lucas_lehmer_sequence(p):
        return Verdict.PROBABLE_PRIME
    return Verdict.LUCAS_LEHMER_COMPOSITE


def lucas_lehmer(p, rounds=PRIME_ROUNDS):
    return classify(p, rounds).is_prime
