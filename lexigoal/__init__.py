"""lexigoal: bounded pre-emptive integer goal programming.

Allocates values to box-bounded variables so that prioritized linear goals
are met in strict lexicographic order, with exact rational results.
"""
