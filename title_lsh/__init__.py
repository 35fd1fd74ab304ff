"""
Title LSH Server

Near-duplicate lookup of video titles backed by a persistent
MinHash-LSH index.
"""
__version__ = "1.0.0"
