"""
Banding parameter optimisation for MinHash LSH

With r rows per band and b bands, two sets of Jaccard similarity x share at
least one bucket with probability P(x) = 1 - (1 - x^r)^b. The optimiser
picks the band count whose curve is closest to a step at the target
similarity.
"""
import logging
import math
from dataclasses import dataclass
from typing import Optional

import numpy as np

from ..core.errors import ConfigurationError

logger = logging.getLogger(__name__)

SIMPSON_INTERVALS = 512


def s_curve(rows: float, bands: float, x):
    """Probability of at least one band collision, 1 - (1 - x^r)^b"""
    return 1.0 - (1.0 - np.power(x, rows)) ** bands


def integrate_s_curve(rows: float, bands: float, a: float, b: float,
                      intervals: int = SIMPSON_INTERVALS) -> float:
    """
    Integrate the S-curve over [a, b] with composite Simpson's rule

    Args:
        rows: Rows per band
        bands: Number of bands
        a: Lower bound
        b: Upper bound
        intervals: Number of equal subintervals

    Returns:
        Approximation of the definite integral
    """
    edges = np.linspace(a, b, intervals + 1)
    left, right = edges[:-1], edges[1:]
    mid = (left + right) * 0.5
    width = (b - a) / intervals
    total = (
        s_curve(rows, bands, left)
        + 4.0 * s_curve(rows, bands, mid)
        + s_curve(rows, bands, right)
    )
    return float(np.sum(total) * width / 6.0)


def optimal_num_bands(num_hashes: int, target_similarity: float) -> int:
    """
    Choose the band count that best separates the S-curve at the target

    Every divisor b of num_hashes with 1 <= b < sqrt(num_hashes) is scored by
    the false-positive mass below the threshold minus the true-positive mass
    above it. The lowest score wins; the smaller b wins a tie.
    """
    if num_hashes <= 0:
        raise ConfigurationError(f"num_hashes must be positive, got {num_hashes}")
    if not 0.0 < target_similarity < 1.0:
        raise ConfigurationError(
            f"target_jaccard_similarity must lie in (0, 1), got {target_similarity}"
        )

    best_bands = None
    min_error = math.inf
    b = 1
    while b * b < num_hashes:
        if num_hashes % b == 0:
            rows = num_hashes // b
            error = (integrate_s_curve(rows, b, 0.0, target_similarity)
                     - integrate_s_curve(rows, b, target_similarity, 1.0))
            if error < min_error:
                min_error = error
                best_bands = b
        b += 1

    if best_bands is None:
        raise ConfigurationError(
            f"No band count below sqrt({num_hashes}) divides {num_hashes}"
        )
    logger.info(f"Selected {best_bands} bands of {num_hashes // best_bands} rows "
                f"for target similarity {target_similarity} (error {min_error:.6f})")
    return best_bands


@dataclass
class IndexOptions:
    """Configuration of a MinHash index"""
    num_hashes: int = 100
    num_bands: Optional[int] = None
    target_jaccard_similarity: Optional[float] = 0.7

    @property
    def rows_per_band(self) -> int:
        return self.num_hashes // self.num_bands

    def resolve(self) -> "IndexOptions":
        """
        Return options with num_bands filled in and validated

        Raises:
            ConfigurationError: No way to derive the band count, or the band
                                count does not divide num_hashes
        """
        if self.num_hashes <= 0:
            raise ConfigurationError(f"num_hashes must be positive, got {self.num_hashes}")

        num_bands = self.num_bands
        if num_bands is None:
            if self.target_jaccard_similarity is None:
                raise ConfigurationError(
                    "A new index needs num_bands or target_jaccard_similarity"
                )
            num_bands = optimal_num_bands(self.num_hashes, self.target_jaccard_similarity)

        if num_bands <= 0 or self.num_hashes % num_bands != 0:
            raise ConfigurationError(
                f"num_bands={num_bands} does not evenly divide num_hashes={self.num_hashes}"
            )
        return IndexOptions(
            num_hashes=self.num_hashes,
            num_bands=num_bands,
            target_jaccard_similarity=self.target_jaccard_similarity,
        )
