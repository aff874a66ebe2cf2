"""
Conformance Test Suite

This suite defines the NORMATIVE behavior of the treasury engine.
Any compliant implementation MUST pass these tests.

The tests are organized by invariant:
1. solvency.py - balance >= claim obligation + investment reserve
2. conservation.py - entitlements never exceed what was distributed
3. monotonicity.py - volume, price and accumulators never decrease
4. atomicity.py - failed operations leave no observable change
5. idempotency.py - settlement and claims cannot pay twice
6. determinism.py - identical operation sequences give identical state

These tests use hypothesis for property-based testing over random
operation sequences (see strategies.py).
"""
