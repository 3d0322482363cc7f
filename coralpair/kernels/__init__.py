"""
Kernel layer.

`coralpair/kernels/python/` holds the integer-only kernels shared by the
quoting engine and the settlement path: fixed-point primitives, the CPMM swap
formula, and LP share math. Quoting and settlement must call the same kernels
so their results agree byte-for-byte.
"""
