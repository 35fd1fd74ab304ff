"""
MinHash LSH services
"""
from .banding import IndexOptions, optimal_num_bands, integrate_s_curve, s_curve
from .hashing import fold_hash, element_stream, hash_token
from .signature import compute_signature, to_bands
from .shingles import shingle, title_tokens
from .minhash_index import MinhashIndex, ElementSet, AnnResult, BucketStats, jaccard_similarity

__all__ = [
    "IndexOptions",
    "optimal_num_bands",
    "integrate_s_curve",
    "s_curve",
    "fold_hash",
    "element_stream",
    "hash_token",
    "compute_signature",
    "to_bands",
    "shingle",
    "title_tokens",
    "MinhashIndex",
    "ElementSet",
    "AnnResult",
    "BucketStats",
    "jaccard_similarity",
]
