"""Impurity metrics scored over a confusion matrix.

Every metric returns the row-weighted impurity of the outcome given the
candidate attribute; lower is better. The tree builders depend only on the
`PurityFunction` protocol, so any of these (or a user-supplied metric) can be
injected without touching the builders.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

import numpy as np

if TYPE_CHECKING:
    from id3kit.confusion_matrix import ConfusionMatrix


@runtime_checkable
class PurityFunction(Protocol):
    """Scores how well a candidate attribute separates outcome classes."""

    def calculate(self, matrix: ConfusionMatrix) -> float:
        """Return the impurity of the outcome given the matrix's row attribute.

        Args:
            matrix (ConfusionMatrix): Row attribute vs. outcome counts.

        Returns:
            float: A non-negative impurity score; lower is better.
        """
        ...


class Entropy:
    """Weighted conditional entropy `H(outcome | attribute)` in bits.

    For each row value the entropy of the outcome distribution is computed and
    the results are averaged, weighted by the share of rows holding that value:

        H(Y | A) = sum_row (row_total / total) * sum_col p * log2(1 / p)

    where `p = count(row, col) / row_total`. Zero counts contribute nothing.

    Examples:
        >>> Entropy().calculate(ConfusionMatrix.build(dataset, "Outlook", "Play"))  # doctest: +SKIP
        0.6935
    """

    def calculate(self, matrix: ConfusionMatrix) -> float:
        """Return the weighted conditional entropy of the matrix.

        Args:
            matrix (ConfusionMatrix): Row attribute vs. outcome counts.

        Returns:
            float: Entropy in bits; 0.0 for an empty matrix.
        """
        counts, row_totals = _row_distributions(matrix)
        if matrix.total == 0:
            return 0.0
        with np.errstate(divide="ignore", invalid="ignore"):
            proportions = counts / row_totals[:, np.newaxis]
            terms = np.where(counts > 0, proportions * np.log2(row_totals[:, np.newaxis] / counts), 0.0)
        row_entropy = terms.sum(axis=1)
        return float(np.sum(row_totals / matrix.total * row_entropy))

    def __repr__(self) -> str:
        return "Entropy()"


class GiniImpurity:
    """Weighted Gini impurity: `sum_row (row_total / total) * (1 - sum_col p^2)`."""

    def calculate(self, matrix: ConfusionMatrix) -> float:
        """Return the weighted Gini impurity of the matrix.

        Args:
            matrix (ConfusionMatrix): Row attribute vs. outcome counts.

        Returns:
            float: Gini impurity in `[0, 1)`; 0.0 for an empty matrix.
        """
        counts, row_totals = _row_distributions(matrix)
        if matrix.total == 0:
            return 0.0
        proportions = counts / row_totals[:, np.newaxis]
        row_gini = 1.0 - np.sum(proportions**2, axis=1)
        return float(np.sum(row_totals / matrix.total * row_gini))

    def __repr__(self) -> str:
        return "GiniImpurity()"


class MisclassificationRate:
    """Weighted misclassification rate: `sum_row (row_total / total) * (1 - max_col p)`."""

    def calculate(self, matrix: ConfusionMatrix) -> float:
        """Return the weighted misclassification rate of the matrix.

        Args:
            matrix (ConfusionMatrix): Row attribute vs. outcome counts.

        Returns:
            float: Fraction of rows outside their row's majority outcome; 0.0
                for an empty matrix.
        """
        counts, row_totals = _row_distributions(matrix)
        if matrix.total == 0:
            return 0.0
        row_error = 1.0 - counts.max(axis=1) / row_totals
        return float(np.sum(row_totals / matrix.total * row_error))

    def __repr__(self) -> str:
        return "MisclassificationRate()"


def _row_distributions(matrix: ConfusionMatrix) -> tuple[np.ndarray, np.ndarray]:
    """Return the float count array and its per-row totals."""
    counts = matrix.to_array().astype(np.float64)
    return counts, counts.sum(axis=1)
