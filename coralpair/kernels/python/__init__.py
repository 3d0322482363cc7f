"""
Integer-only pair kernels.

Each module is a set of pure functions over ints with frozen result records;
none of them touch `PairState`, so the same code prices a quote and settles it.
"""
