"""
Title shingling
"""
from typing import List

from .hashing import hash_token


def shingle(text: str, size: int = 3) -> List[str]:
    """Overlapping character n-grams of a string"""
    return [text[i:i + size] for i in range(len(text) - size + 1)]


def title_tokens(title: str, size: int = 3) -> List[int]:
    """
    Turn a video title into hashed character shingles

    The title is padded with one space on each side so that words at the
    edges produce their own boundary shingles.
    """
    return [hash_token(s) for s in shingle(f" {title} ", size)]
