"""Cross-tabulation of a candidate split attribute against the outcome.

A confusion matrix counts, over a dataset, how often each value of the row
attribute co-occurs with each value of the column attribute (conventionally
the outcome). The counts are what purity functions score::

                       Outcome            Total
                  no        yes
    Outlook sunny  3         2          5
            rainy  0         4          4
                   3         6          9
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Final, Literal

import numpy as np
import polars as pl

from id3kit.exceptions import MissingAttributeError

if TYPE_CHECKING:
    from id3kit.dataset import Dataset

type MissingPolicy = Literal["skip", "raise"]

_ROW: Final[str] = "row"
_COLUMN: Final[str] = "column"
_COUNT: Final[str] = "count"
_UNSPLIT_ROW_VALUE: Final[str] = "*"


@dataclass(frozen=True)
class ConfusionMatrix:
    """Counts keyed by `(row_value, column_value)` plus per-row, per-column, and grand totals.

    Build instances with `ConfusionMatrix.build` or `ConfusionMatrix.unsplit`
    rather than calling the constructor directly.

    Attributes:
        row_attribute (str): Name of the attribute indexing the rows.
        column_attribute (str): Name of the attribute indexing the columns.
        cells (dict[tuple[str, str], int]): Nonzero counts keyed by
            `(row_value, column_value)`, in first-seen order.
        row_totals (dict[str, int]): Count per row value, in first-seen order.
        column_totals (dict[str, int]): Count per column value, in first-seen order.
        total (int): Number of Instances that contributed to the matrix.
        skipped (int): Number of Instances excluded because they lacked the
            row or column attribute.

    Examples:
        >>> matrix = ConfusionMatrix.build(dataset, "Outlook", "Play")  # doctest: +SKIP
        >>> matrix.count_at("sunny", "no")  # doctest: +SKIP
        3
    """

    row_attribute: str
    column_attribute: str
    cells: dict[tuple[str, str], int] = field(default_factory=dict)
    row_totals: dict[str, int] = field(default_factory=dict)
    column_totals: dict[str, int] = field(default_factory=dict)
    total: int = 0
    skipped: int = 0

    @classmethod
    def build(
        cls,
        dataset: Dataset,
        row_attribute: str,
        column_attribute: str,
        *,
        on_missing: MissingPolicy = "skip",
    ) -> ConfusionMatrix:
        """Cross-tabulate two attributes over every Instance of a dataset.

        Args:
            dataset (Dataset): The rows to count.
            row_attribute (str): The candidate split attribute.
            column_attribute (str): The outcome attribute.
            on_missing (MissingPolicy): What to do with an Instance lacking
                either attribute. `"skip"` excludes it and counts it in
                `skipped`; `"raise"` raises `MissingAttributeError`.

        Returns:
            ConfusionMatrix: The populated matrix.

        Raises:
            MissingAttributeError: If `on_missing="raise"` and an Instance lacks
                either attribute.
        """
        row_values: list[str | None] = []
        column_values: list[str | None] = []
        for instance in dataset:
            row = instance.get(row_attribute)
            column = instance.get(column_attribute)
            if on_missing == "raise" and (row is None or column is None):
                missing_name = row_attribute if row is None else column_attribute
                raise MissingAttributeError(missing_name, available_attributes=instance.names)
            row_values.append(row.value if row is not None else None)
            column_values.append(column.value if column is not None else None)

        frame = pl.DataFrame(
            {_ROW: row_values, _COLUMN: column_values},
            schema={_ROW: pl.String, _COLUMN: pl.String},
        )
        return cls._from_frame(frame, row_attribute=row_attribute, column_attribute=column_attribute)

    @classmethod
    def unsplit(cls, dataset: Dataset, column_attribute: str) -> ConfusionMatrix:
        """Build a single-row matrix over the whole dataset.

        Scoring this matrix gives the impurity of the partition itself, before
        any split.

        Args:
            dataset (Dataset): The rows to count.
            column_attribute (str): The outcome attribute.

        Returns:
            ConfusionMatrix: A matrix whose only row value is `"*"`.
        """
        column_values = [
            attribute.value for instance in dataset if (attribute := instance.get(column_attribute)) is not None
        ]
        frame = pl.DataFrame(
            {_ROW: [_UNSPLIT_ROW_VALUE] * len(column_values), _COLUMN: column_values},
            schema={_ROW: pl.String, _COLUMN: pl.String},
        )
        return cls._from_frame(frame, row_attribute=_UNSPLIT_ROW_VALUE, column_attribute=column_attribute)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    @property
    def row_values(self) -> list[str]:
        """Return the row values in first-seen order."""
        return list(self.row_totals)

    @property
    def column_values(self) -> list[str]:
        """Return the column values in first-seen order."""
        return list(self.column_totals)

    def count_at(self, row: str, column: str) -> int:
        """Return the count at `(row, column)`, or 0 when the pair never occurred.

        Args:
            row (str): The row attribute value.
            column (str): The column attribute value.

        Returns:
            int: The cell count.
        """
        return self.cells.get((row, column), 0)

    def row_total(self, row: str) -> int:
        """Return the number of contributing Instances with row value `row`."""
        return self.row_totals.get(row, 0)

    def column_total(self, column: str) -> int:
        """Return the number of contributing Instances with column value `column`."""
        return self.column_totals.get(column, 0)

    def is_useless(self) -> bool:
        """Return whether the row attribute is constant across the contributing rows.

        A constant attribute carries no discriminative information and must
        not be considered as a split candidate.

        Returns:
            bool: `True` iff exactly one row value has a nonzero total.
        """
        return sum(1 for count in self.row_totals.values() if count > 0) == 1

    def is_same_label(self) -> bool:
        """Return whether every contributing row has the same column (outcome) value.

        Returns:
            bool: `True` iff exactly one column value has a nonzero total.
        """
        return sum(1 for count in self.column_totals.values() if count > 0) == 1

    def to_array(self) -> np.ndarray:
        """Return the counts as a 2-D integer array.

        Returns:
            np.ndarray: Array of shape `(len(row_values), len(column_values))`,
                rows and columns in first-seen order.
        """
        row_index = {value: index for index, value in enumerate(self.row_totals)}
        column_index = {value: index for index, value in enumerate(self.column_totals)}
        counts = np.zeros((len(row_index), len(column_index)), dtype=np.int64)
        for (row, column), count in self.cells.items():
            counts[row_index[row], column_index[column]] = count
        return counts

    def to_frame(self) -> pl.DataFrame:
        """Return the matrix as a wide Polars table for display.

        Returns:
            pl.DataFrame: One row per row value; a column named after
                `row_attribute` followed by one count column per column value.
        """
        columns: dict[str, list[str] | list[int]] = {self.row_attribute: self.row_values}
        counts = self.to_array()
        for column_index, column_value in enumerate(self.column_values):
            columns[column_value] = counts[:, column_index].tolist()
        return pl.DataFrame(columns)

    def __str__(self) -> str:
        """Return the matrix as a plain-text table with totals.

        Returns:
            str: The table, one line per row value followed by a totals line.
        """
        header = " | ".join([self.row_attribute, *self.column_values, "total"])
        lines = [header]
        for row in self.row_values:
            counts = [str(self.count_at(row, column)) for column in self.column_values]
            lines.append(" | ".join([row, *counts, str(self.row_total(row))]))
        totals = [str(self.column_total(column)) for column in self.column_values]
        lines.append(" | ".join(["total", *totals, str(self.total)]))
        return "\n".join(lines)

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    @classmethod
    def _from_frame(cls, frame: pl.DataFrame, *, row_attribute: str, column_attribute: str) -> ConfusionMatrix:
        contributing = frame.drop_nulls()
        cell_counts = contributing.group_by([_ROW, _COLUMN], maintain_order=True).agg(pl.len().alias(_COUNT))
        row_counts = contributing.group_by(_ROW, maintain_order=True).agg(pl.len().alias(_COUNT))
        column_counts = contributing.group_by(_COLUMN, maintain_order=True).agg(pl.len().alias(_COUNT))
        return cls(
            row_attribute=row_attribute,
            column_attribute=column_attribute,
            cells={
                (row, column): int(count)
                for row, column, count in cell_counts.select(_ROW, _COLUMN, _COUNT).iter_rows()
            },
            row_totals={row: int(count) for row, count in row_counts.select(_ROW, _COUNT).iter_rows()},
            column_totals={column: int(count) for column, count in column_counts.select(_COLUMN, _COUNT).iter_rows()},
            total=contributing.height,
            skipped=frame.height - contributing.height,
        )
