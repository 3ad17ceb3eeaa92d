"""Tabular data model: Attribute, Instance, and Dataset.

An `Attribute` is one named cell value, an `Instance` is one table row (an
ordered collection of attributes with unique names), and a `Dataset` is an
ordered sequence of instances together with the name of the outcome attribute
and the names of the attributes that hold continuous values.

All three types are immutable. Operations that filter or rewrite data return
new objects, so a dataset handed to the tree builder is never changed by it.
"""

from __future__ import annotations

import math
from collections import Counter
from collections.abc import Callable, Iterable, Iterator, Mapping
from dataclasses import dataclass, field
from typing import overload

import polars as pl

from id3kit.exceptions import DuplicateAttributeError, InvalidConfigurationError, MissingAttributeError

# ---------------------------------------------------------------------------
# Public models
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Attribute:
    """A single named value within an Instance.

    Equality and hashing consider only `name` and `value`; the
    `is_continuous` flag is carried along for evaluation but never changes
    whether two attributes are equal.

    Attributes:
        name (str): The attribute (column) name, e.g. `"Outlook"`.
        value (str): The attribute value as text, e.g. `"sunny"` or `"250.0"`.
        is_continuous (bool): Whether the value is a continuous threshold.

    Examples:
        >>> Attribute("Outlook", "sunny") == Attribute("Outlook", "sunny", is_continuous=True)
        True
        >>> Attribute("Elevation", "100").less_than(Attribute("Elevation", "250.0"))
        True
    """

    name: str
    value: str
    is_continuous: bool = field(default=False, compare=False)

    @property
    def numeric_value(self) -> float:
        """Return the value parsed as a float.

        Returns:
            float: The numeric value.

        Raises:
            ValueError: If the value does not parse as a number.
        """
        return float(self.value)

    def less_than(self, other: Attribute) -> bool:
        """Return whether this attribute's numeric value is below `other`'s.

        Args:
            other (Attribute): An attribute with the same name.

        Returns:
            bool: `True` if `self.numeric_value < other.numeric_value`.

        Raises:
            ValueError: If the names differ or either value is not numeric.
        """
        self._check_comparable(other)
        return self.numeric_value < other.numeric_value

    def greater_than(self, other: Attribute) -> bool:
        """Return whether this attribute's numeric value is above `other`'s.

        Args:
            other (Attribute): An attribute with the same name.

        Returns:
            bool: `True` if `self.numeric_value > other.numeric_value`.

        Raises:
            ValueError: If the names differ or either value is not numeric.
        """
        self._check_comparable(other)
        return self.numeric_value > other.numeric_value

    def _check_comparable(self, other: Attribute) -> None:
        if self.name != other.name:
            raise ValueError(f"Cannot compare attribute '{self.name}' with attribute '{other.name}'")

    def __str__(self) -> str:
        """Return the attribute as `"<name>=<value>"`.

        Returns:
            str: Human-readable form of the attribute.
        """
        return f"{self.name}={self.value}"


class Instance:
    """One labeled or unlabeled table row.

    Attribute names are unique within an Instance; lookup by name is the
    primary access pattern.

    Examples:
        >>> row = Instance.from_mapping({"Outlook": "sunny", "Play": "no"})
        >>> row["Outlook"].value
        'sunny'
        >>> "Wind" in row
        False
    """

    __slots__ = ("_attributes", "_by_name")

    def __init__(self, attributes: Iterable[Attribute] = ()) -> None:
        """Initialize an Instance.

        Args:
            attributes (Iterable[Attribute]): The row's attributes, in column order.

        Raises:
            DuplicateAttributeError: If two attributes share a name.
        """
        self._attributes: tuple[Attribute, ...] = tuple(attributes)
        self._by_name: dict[str, Attribute] = {attribute.name: attribute for attribute in self._attributes}
        if len(self._by_name) != len(self._attributes):
            raise DuplicateAttributeError(attribute_names=[attribute.name for attribute in self._attributes])

    @classmethod
    def from_mapping(cls, values: Mapping[str, object], *, continuous: Iterable[str] = ()) -> Instance:
        """Build an Instance from a `{name: value}` mapping.

        Values are converted to text with `str`. `None` values are dropped so
        that the resulting Instance lacks that attribute.

        Args:
            values (Mapping[str, object]): Attribute values keyed by name.
            continuous (Iterable[str]): Names to flag as continuous.

        Returns:
            Instance: The new Instance, attributes in mapping order.
        """
        continuous_names = set(continuous)
        return cls(
            Attribute(name, str(value), is_continuous=name in continuous_names)
            for name, value in values.items()
            if value is not None
        )

    @property
    def attributes(self) -> tuple[Attribute, ...]:
        """Return the attributes in column order."""
        return self._attributes

    @property
    def names(self) -> list[str]:
        """Return the attribute names in column order."""
        return [attribute.name for attribute in self._attributes]

    def get(self, name: str) -> Attribute | None:
        """Return the attribute called `name`, or `None` if the row lacks it.

        Args:
            name (str): The attribute name.

        Returns:
            Attribute | None: The matching attribute, if any.
        """
        return self._by_name.get(name)

    def replace(self, name: str, value: str) -> Instance:
        """Return a copy of this Instance with one attribute's value rewritten.

        Args:
            name (str): The attribute to rewrite.
            value (str): The new value.

        Returns:
            Instance: A new Instance; column order and continuous flags are kept.

        Raises:
            MissingAttributeError: If the Instance lacks `name`.
        """
        if name not in self._by_name:
            raise MissingAttributeError(name, available_attributes=self.names)
        return Instance(
            Attribute(attribute.name, value, attribute.is_continuous) if attribute.name == name else attribute
            for attribute in self._attributes
        )

    def to_dict(self) -> dict[str, str]:
        """Return the row as a `{name: value}` dictionary."""
        return {attribute.name: attribute.value for attribute in self._attributes}

    def __getitem__(self, name: str) -> Attribute:
        """Return the attribute called `name`.

        Args:
            name (str): The attribute name.

        Returns:
            Attribute: The matching attribute.

        Raises:
            MissingAttributeError: If the Instance lacks `name`.
        """
        try:
            return self._by_name[name]
        except KeyError:
            raise MissingAttributeError(name, available_attributes=self.names) from None

    def __contains__(self, name: object) -> bool:
        return name in self._by_name

    def __iter__(self) -> Iterator[Attribute]:
        return iter(self._attributes)

    def __len__(self) -> int:
        return len(self._attributes)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Instance):
            return NotImplemented
        return self._attributes == other._attributes

    def __hash__(self) -> int:
        return hash(self._attributes)

    def __repr__(self) -> str:
        cells = ", ".join(str(attribute) for attribute in self._attributes)
        return f"Instance({cells})"


class Dataset:
    """An ordered sequence of Instances with a designated outcome attribute.

    Every Instance must carry the outcome attribute and every declared
    continuous attribute. The attribute schema is taken from the first
    Instance.

    Examples:
        >>> dataset = Dataset(
        ...     [
        ...         Instance.from_mapping({"Outlook": "sunny", "Play": "no"}),
        ...         Instance.from_mapping({"Outlook": "rainy", "Play": "yes"}),
        ...     ],
        ...     outcome="Play",
        ... )
        >>> dataset.distinct_values("Outlook")
        ['sunny', 'rainy']
        >>> len(dataset.split(Attribute("Outlook", "sunny")))
        1
    """

    __slots__ = ("_continuous", "_instances", "_outcome")

    def __init__(
        self,
        instances: Iterable[Instance],
        *,
        outcome: str,
        continuous: Iterable[str] = (),
    ) -> None:
        """Initialize a Dataset.

        Args:
            instances (Iterable[Instance]): The rows, in insertion order.
            outcome (str): Name of the outcome (label) attribute.
            continuous (Iterable[str]): Names of attributes holding continuous
                values that must be discretized before they are used as split
                candidates.

        Raises:
            InvalidConfigurationError: If `outcome` is empty, the outcome is
                absent from every Instance, or the outcome is declared
                continuous.
            MissingAttributeError: If some Instance lacks the outcome or a
                declared continuous attribute.
        """
        self._instances: tuple[Instance, ...] = tuple(instances)
        self._outcome = outcome
        self._continuous: tuple[str, ...] = tuple(dict.fromkeys(continuous))
        self._validate()

    @classmethod
    def from_frame(
        cls,
        df: pl.DataFrame,
        *,
        outcome: str,
        continuous: Iterable[str] = (),
    ) -> Dataset:
        """Build a Dataset from a Polars DataFrame.

        Every column is cast to text. Null cells are dropped, so the
        corresponding Instance lacks that attribute.

        Args:
            df (pl.DataFrame): The source table, one row per Instance.
            outcome (str): Name of the outcome column.
            continuous (Iterable[str]): Names of continuous columns.

        Returns:
            Dataset: A Dataset with one Instance per DataFrame row.
        """
        continuous_names = tuple(continuous)
        text_frame = df.select(pl.all().cast(pl.String))
        instances = [
            Instance.from_mapping(row, continuous=continuous_names) for row in text_frame.iter_rows(named=True)
        ]
        return cls(instances, outcome=outcome, continuous=continuous_names)

    def to_frame(self) -> pl.DataFrame:
        """Return the Dataset as a Polars DataFrame of string columns.

        Columns follow first-seen attribute order across all Instances; an
        Instance lacking an attribute yields a null cell.

        Returns:
            pl.DataFrame: One row per Instance.
        """
        columns = list(dict.fromkeys(name for instance in self._instances for name in instance.names))
        schema = dict.fromkeys(columns, pl.String)
        rows = [instance.to_dict() for instance in self._instances]
        return pl.DataFrame(rows, schema=schema)

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------

    @property
    def instances(self) -> tuple[Instance, ...]:
        """Return the rows in insertion order."""
        return self._instances

    @property
    def outcome(self) -> str:
        """Return the outcome attribute name."""
        return self._outcome

    @property
    def continuous(self) -> tuple[str, ...]:
        """Return the declared continuous attribute names, in declaration order."""
        return self._continuous

    @property
    def attribute_names(self) -> list[str]:
        """Return the schema: attribute names of the first Instance, in column order."""
        if not self._instances:
            return []
        return self._instances[0].names

    def values(self, name: str) -> list[str]:
        """Return every value of attribute `name`, skipping rows that lack it.

        Args:
            name (str): The attribute name.

        Returns:
            list[str]: Values in row order.
        """
        return [attribute.value for instance in self._instances if (attribute := instance.get(name)) is not None]

    def distinct_values(self, name: str) -> list[str]:
        """Return the distinct values of attribute `name` in first-seen order.

        Args:
            name (str): The attribute name.

        Returns:
            list[str]: Distinct values, ordered by first occurrence.
        """
        return list(dict.fromkeys(self.values(name)))

    def outcome_values(self) -> list[str]:
        """Return the outcome value of every row, in row order."""
        return self.values(self._outcome)

    def majority_value(self, name: str) -> str:
        """Return the most frequent value of attribute `name`.

        Ties resolve to the value seen first.

        Args:
            name (str): The attribute name.

        Returns:
            str: The majority value.

        Raises:
            MissingAttributeError: If no row carries `name`.
        """
        counts = Counter(self.values(name))
        if not counts:
            raise MissingAttributeError(name, available_attributes=self.attribute_names)
        # most_common is stable, so equal counts keep first-seen order
        return counts.most_common(1)[0][0]

    # ------------------------------------------------------------------
    # Transformations
    # ------------------------------------------------------------------

    def copy(self) -> Dataset:
        """Return a deep copy with independent Instance and Attribute objects.

        Returns:
            Dataset: A new Dataset with equal content.
        """
        instances = [
            Instance(Attribute(attribute.name, attribute.value, attribute.is_continuous) for attribute in instance)
            for instance in self._instances
        ]
        return self._derive(instances)

    def split(self, attribute: Attribute) -> Dataset:
        """Return the rows carrying an attribute equal to `attribute`.

        Args:
            attribute (Attribute): The attribute (name and value) to match exactly.

        Returns:
            Dataset: The matching rows, in their original order.
        """
        return self._derive(instance for instance in self._instances if instance.get(attribute.name) == attribute)

    def select(self, indices: Iterable[int]) -> Dataset:
        """Return the rows at the given positions.

        Args:
            indices (Iterable[int]): Row positions, in the order to keep them.

        Returns:
            Dataset: The selected rows.
        """
        return self._derive(self._instances[index] for index in indices)

    def with_outcome(self, outcome: str) -> Dataset:
        """Return the same rows with a different outcome attribute.

        Args:
            outcome (str): The new outcome attribute name.

        Returns:
            Dataset: A new Dataset.
        """
        return Dataset(self._instances, outcome=outcome, continuous=self._continuous)

    def with_continuous(self, continuous: Iterable[str]) -> Dataset:
        """Return the same rows with a different set of continuous attributes.

        Args:
            continuous (Iterable[str]): The new continuous attribute names.

        Returns:
            Dataset: A new Dataset.
        """
        return Dataset(self._instances, outcome=self._outcome, continuous=continuous)

    def with_values(self, name: str, mapper: Callable[[str], str]) -> Dataset:
        """Return a copy with attribute `name` rewritten through `mapper`.

        Args:
            name (str): The attribute to rewrite.
            mapper (Callable[[str], str]): Maps each old value to its new value.

        Returns:
            Dataset: A new Dataset; rows lacking `name` are kept unchanged.
        """
        return self._derive(
            instance.replace(name, mapper(attribute.value)) if (attribute := instance.get(name)) is not None else instance
            for instance in self._instances
        )

    # ------------------------------------------------------------------
    # Dunder methods
    # ------------------------------------------------------------------

    def __len__(self) -> int:
        return len(self._instances)

    def __iter__(self) -> Iterator[Instance]:
        return iter(self._instances)

    @overload
    def __getitem__(self, index: int) -> Instance: ...

    @overload
    def __getitem__(self, index: slice) -> Dataset: ...

    def __getitem__(self, index: int | slice) -> Instance | Dataset:
        if isinstance(index, slice):
            return self._derive(self._instances[index])
        return self._instances[index]

    def __repr__(self) -> str:
        return (
            f"Dataset(rows={len(self._instances)}, outcome={self._outcome!r}, "
            f"continuous={list(self._continuous)!r}, attributes={self.attribute_names!r})"
        )

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _derive(self, instances: Iterable[Instance]) -> Dataset:
        return Dataset(instances, outcome=self._outcome, continuous=self._continuous)

    def _validate(self) -> None:
        if not self._outcome:
            raise InvalidConfigurationError("Outcome attribute name must not be empty", parameter="outcome")
        if self._outcome in self._continuous:
            raise InvalidConfigurationError(
                f"Outcome attribute '{self._outcome}' cannot be declared continuous", parameter="continuous"
            )
        if not self._instances:
            return
        if not any(self._outcome in instance for instance in self._instances):
            raise InvalidConfigurationError(
                f"Outcome attribute '{self._outcome}' is absent from the dataset schema {self.attribute_names}",
                parameter="outcome",
            )
        required = (self._outcome, *self._continuous)
        for instance in self._instances:
            for name in required:
                if name not in instance:
                    raise MissingAttributeError(name, available_attributes=instance.names)


def numeric_values(dataset: Dataset, name: str) -> list[float]:
    """Parse every value of a continuous attribute as a float.

    Args:
        dataset (Dataset): The dataset to read.
        name (str): The continuous attribute name.

    Returns:
        list[float]: Parsed values in row order.

    Raises:
        InvalidConfigurationError: If a value is not numeric or is NaN.
    """
    parsed: list[float] = []
    for value in dataset.values(name):
        try:
            number = float(value)
        except ValueError:
            raise InvalidConfigurationError(
                f"Continuous attribute '{name}' has non-numeric value {value!r}", parameter="continuous"
            ) from None
        if math.isnan(number):
            raise InvalidConfigurationError(f"Continuous attribute '{name}' has a NaN value", parameter="continuous")
        parsed.append(number)
    return parsed

