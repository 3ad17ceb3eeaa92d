"""Supervised binning of continuous attributes.

The discretizer places a single threshold on a continuous attribute so that
the resulting two bins agree with the training outcome as often as possible:

1. Pair each row's numeric value with its outcome and sort by value (stable).
2. Every adjacent pair whose outcomes differ contributes its midpoint as a
   candidate split point.
3. Each candidate maps values `< point` to `output_classes[0]` and values
   `>= point` to `output_classes[1]`; rows whose outcome differs from their
   bin label count as misclassified.
4. The candidate with the fewest misclassifications wins; ties go to the
   lowest candidate.

Only one split point is ever chosen, so labels past `output_classes[1]` are
never assigned.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from typing import Final, Literal

import numpy as np
from loguru import logger

from id3kit.dataset import Dataset, numeric_values
from id3kit.exceptions import DegenerateDiscretizationError, InvalidConfigurationError

type DegeneratePolicy = Literal["raise", "skip"]

_MIN_OUTPUT_CLASSES: Final[int] = 2


@dataclass(frozen=True)
class DiscretizationResult:
    """The threshold chosen for one continuous attribute and the bins it induces.

    Attributes:
        attribute (str): The continuous attribute that was discretized.
        split_point (float): The chosen threshold.
        candidate_split_points (tuple[float, ...]): Every candidate evaluated,
            ascending.
        assignments (tuple[tuple[float, str], ...]): Each distinct value,
            ascending, paired with its bin label.
        misclassified (int): Rows whose outcome differs from their bin label
            under the chosen threshold.
        below_label (str): Bin label for values below `split_point`.
        above_label (str): Bin label for values at or above `split_point`.
    """

    attribute: str
    split_point: float
    candidate_split_points: tuple[float, ...]
    assignments: tuple[tuple[float, str], ...]
    misclassified: int
    below_label: str
    above_label: str

    def label_for(self, value: float) -> str:
        """Return the bin label for a numeric value.

        Args:
            value (float): A value of the discretized attribute.

        Returns:
            str: `below_label` if `value < split_point`, else `above_label`.
        """
        return self.below_label if value < self.split_point else self.above_label


@dataclass(frozen=True)
class DiscretizedDataset:
    """A copy of a dataset with continuous attributes rewritten to bin labels.

    Attributes:
        dataset (Dataset): The rewritten copy. Rows are in the same order as the
            source dataset.
        results (dict[str, DiscretizationResult]): The threshold chosen for each
            rewritten attribute.
    """

    dataset: Dataset
    results: dict[str, DiscretizationResult]


class Discretizer:
    """Binary supervised discretizer over a fixed, ordered list of bin labels.

    Examples:
        >>> discretizer = Discretizer(["1", "2"])
        >>> result = discretizer.discretize_attribute(dataset, "Elevation")  # doctest: +SKIP
        >>> result.split_point  # doctest: +SKIP
        250.0
    """

    def __init__(self, output_classes: Sequence[str]) -> None:
        """Initialize the discretizer.

        Args:
            output_classes (Sequence[str]): Ordered bin labels. Index 0 labels
                values below the threshold and index 1 labels values at or
                above it.

        Raises:
            InvalidConfigurationError: If fewer than two labels are given, a
                label is empty, or labels repeat.
        """
        self.output_classes: tuple[str, ...] = tuple(output_classes)
        validate_output_classes(self.output_classes)

    @classmethod
    def with_class_count(cls, class_count: int) -> Discretizer:
        """Build a discretizer whose labels are `"0"`, `"1"`, ... `str(class_count - 1)`.

        Args:
            class_count (int): Number of bin labels to generate.

        Returns:
            Discretizer: The configured discretizer.
        """
        return cls([str(index) for index in range(class_count)])

    def discretize_attribute(self, dataset: Dataset, name: str) -> DiscretizationResult:
        """Choose the split point for one continuous attribute.

        Args:
            dataset (Dataset): The labeled rows.
            name (str): The continuous attribute to discretize.

        Returns:
            DiscretizationResult: The chosen threshold and bin assignments.

        Raises:
            DegenerateDiscretizationError: If the attribute has fewer than two
                distinct values or no candidate split points.
            InvalidConfigurationError: If a value is not numeric.
        """
        values = np.asarray(numeric_values(dataset, name), dtype=np.float64)
        outcomes = np.asarray(dataset.outcome_values(), dtype=object)

        order = np.argsort(values, kind="stable")
        sorted_values = values[order]
        sorted_outcomes = outcomes[order]

        distinct_values = np.unique(sorted_values)
        candidates = _candidate_split_points(sorted_values, sorted_outcomes)
        if distinct_values.size < 2 or candidates.size == 0:
            raise DegenerateDiscretizationError(
                name,
                distinct_value_count=int(distinct_values.size),
                candidate_count=int(candidates.size),
            )

        below_label, above_label = self.output_classes[0], self.output_classes[1]
        misclassified = _count_misclassified(sorted_values, sorted_outcomes, candidates, below_label, above_label)
        # argmin returns the first minimum, i.e. the lowest tied candidate
        best_index = int(np.argmin(misclassified))
        split_point = float(candidates[best_index])

        assignments = tuple(
            (float(value), below_label if value < split_point else above_label) for value in distinct_values
        )
        return DiscretizationResult(
            attribute=name,
            split_point=split_point,
            candidate_split_points=tuple(float(candidate) for candidate in candidates),
            assignments=assignments,
            misclassified=int(misclassified[best_index]),
            below_label=below_label,
            above_label=above_label,
        )

    def discretize(
        self,
        dataset: Dataset,
        names: Sequence[str] | None = None,
        *,
        on_degenerate: DegeneratePolicy = "raise",
    ) -> DiscretizedDataset:
        """Rewrite continuous attributes of a copy of `dataset` to bin labels.

        Args:
            dataset (Dataset): The labeled rows; never modified.
            names (Sequence[str] | None): Attributes to discretize. Defaults to
                the dataset's declared continuous attributes.
            on_degenerate (DegeneratePolicy): What to do with an attribute that
                cannot be split. `"raise"` propagates the error; `"skip"` leaves
                the attribute unchanged and omits it from `results`.

        Returns:
            DiscretizedDataset: The rewritten copy and the per-attribute results.

        Raises:
            DegenerateDiscretizationError: If any requested attribute cannot be
                split and `on_degenerate="raise"`.
            InvalidConfigurationError: If a value is not numeric.
        """
        attribute_names = dataset.continuous if names is None else tuple(names)
        discretized = dataset.copy()
        results: dict[str, DiscretizationResult] = {}
        for name in attribute_names:
            try:
                result = self.discretize_attribute(dataset, name)
            except DegenerateDiscretizationError as exc:
                if on_degenerate == "raise":
                    raise
                # the caller treats the attribute as unusable for this dataset
                logger.debug(
                    "Attribute left undiscretized",
                    attribute=name,
                    distinct_values=exc.distinct_value_count,
                    candidates=exc.candidate_count,
                )
                continue
            results[name] = result
            discretized = discretized.with_values(name, lambda value, result=result: result.label_for(float(value)))
            logger.debug(
                "Attribute discretized",
                attribute=name,
                split_point=result.split_point,
                candidates=len(result.candidate_split_points),
                misclassified=result.misclassified,
            )
        return DiscretizedDataset(dataset=discretized, results=results)

    def __repr__(self) -> str:
        return f"Discretizer(output_classes={list(self.output_classes)!r})"


# ---------------------------------------------------------------------------
# Private helpers
# ---------------------------------------------------------------------------


def validate_output_classes(output_classes: tuple[str, ...]) -> None:
    """Raise `InvalidConfigurationError` if the bin labels are malformed.

    Args:
        output_classes (tuple[str, ...]): The labels to check.

    Raises:
        InvalidConfigurationError: If fewer than two labels are given, a label
            is empty, or labels repeat.
    """
    if len(output_classes) < _MIN_OUTPUT_CLASSES:
        raise InvalidConfigurationError(
            f"output_classes must name at least {_MIN_OUTPUT_CLASSES} classes, got {list(output_classes)}",
            parameter="output_classes",
        )
    if any(not label for label in output_classes):
        raise InvalidConfigurationError("output_classes must not contain empty labels", parameter="output_classes")
    if len(set(output_classes)) != len(output_classes):
        raise InvalidConfigurationError(
            f"output_classes must be unique, got {list(output_classes)}", parameter="output_classes"
        )


def _candidate_split_points(sorted_values: np.ndarray, sorted_outcomes: np.ndarray) -> np.ndarray:
    """Return the midpoints between adjacent values whose outcomes differ.

    Args:
        sorted_values (np.ndarray): Values sorted ascending.
        sorted_outcomes (np.ndarray): Outcomes parallel to `sorted_values`.

    Returns:
        np.ndarray: Distinct candidate split points, ascending.
    """
    if sorted_values.size < 2:
        return np.empty(0, dtype=np.float64)
    changes = np.asarray(sorted_outcomes[1:] != sorted_outcomes[:-1], dtype=bool)
    midpoints = (sorted_values[1:][changes] + sorted_values[:-1][changes]) / 2
    # midpoints are already ascending; unique only drops repeats
    return np.unique(midpoints)


def _count_misclassified(
    sorted_values: np.ndarray,
    sorted_outcomes: np.ndarray,
    candidates: np.ndarray,
    below_label: str,
    above_label: str,
) -> np.ndarray:
    """Count misclassified rows for every candidate threshold at once.

    Args:
        sorted_values (np.ndarray): Values sorted ascending.
        sorted_outcomes (np.ndarray): Outcomes parallel to `sorted_values`.
        candidates (np.ndarray): Candidate split points.
        below_label (str): Label assigned to values below a candidate.
        above_label (str): Label assigned to values at or above a candidate.

    Returns:
        np.ndarray: One misclassification count per candidate.
    """
    is_below = sorted_values[np.newaxis, :] < candidates[:, np.newaxis]
    wrong_if_below = np.asarray(sorted_outcomes != below_label, dtype=bool)
    wrong_if_above = np.asarray(sorted_outcomes != above_label, dtype=bool)
    return np.where(is_below, wrong_if_below, wrong_if_above).sum(axis=1)
