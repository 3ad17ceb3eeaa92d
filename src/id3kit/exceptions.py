"""Custom exceptions for id3kit.

This module defines the failure taxonomy shared by the data model, the
discretizer, the tree builders, and tree evaluation. Every exception derives
from ID3KitError so callers can catch all library failures at once:

Data model exceptions:
- MissingAttributeError: An Instance lacks an attribute required by a split or
  by the outcome name (also a LookupError).
- DuplicateAttributeError: An Instance was given the same attribute name twice
  (also a ValueError).

Training exceptions:
- EmptyPartitionError: Tree induction reached a zero-row dataset.
- DegenerateDiscretizationError: A continuous attribute has fewer than two
  distinct values or no candidate split points (also a ValueError).
- InvalidConfigurationError: Malformed training configuration, such as an
  empty `output_classes` list or an outcome absent from the schema (also a
  ValueError).

Evaluation exceptions:
- UnmatchedBranchError: No decision at an inner node applies to the evaluated
  Instance (also a LookupError).
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from id3kit.dataset import Attribute


class ID3KitError(Exception):
    """Base exception for all id3kit errors.

    Catching this exception will catch every failure raised while building,
    training, or evaluating a decision tree.
    """


class MissingAttributeError(ID3KitError, LookupError):
    """Raised when an Instance lacks a required attribute.

    Attributes:
        attribute_name (str): The attribute name that was looked up.
        available_attributes (list[str]): Attribute names present on the
            Instance (or in the schema) that was searched.

    Examples:
        >>> err = MissingAttributeError("Outlook", available_attributes=["Wind", "Play"])
        >>> err.attribute_name
        'Outlook'
        >>> str(err)
        "Attribute 'Outlook' not found. Available attributes: ['Play', 'Wind']"
    """

    attribute_name: str
    available_attributes: list[str]

    def __init__(self, attribute_name: str, *, available_attributes: list[str] | None = None) -> None:
        """Initialize MissingAttributeError.

        Args:
            attribute_name (str): The attribute name that was not found.
            available_attributes (list[str] | None): Attribute names that were
                available at lookup time.
        """
        self.attribute_name = attribute_name
        self.available_attributes = available_attributes or []
        super().__init__(
            f"Attribute '{attribute_name}' not found. Available attributes: {sorted(self.available_attributes)}"
        )

    def __repr__(self) -> str:
        """Return detailed representation for debugging.

        Returns:
            str: Detailed string representation including the missing and available names.
        """
        return (
            f"{self.__class__.__name__}("
            f"attribute_name={self.attribute_name!r}, "
            f"available_attributes={self.available_attributes!r})"
        )


class DuplicateAttributeError(ID3KitError, ValueError):
    """Raised when the same attribute name is given twice for one Instance.

    Attributes:
        attribute_names (list[str]): The attribute names that contain duplicates.
        duplicate_names (list[str]): The specific names that are duplicated
            (each listed once).

    Examples:
        >>> err = DuplicateAttributeError(attribute_names=["a", "a", "b"])
        >>> err.duplicate_names
        ['a']
    """

    attribute_names: list[str]
    duplicate_names: list[str]

    def __init__(self, attribute_names: list[str]) -> None:
        """Initialize DuplicateAttributeError.

        Args:
            attribute_names (list[str]): The attribute name list containing duplicates.
        """
        self.attribute_names = attribute_names
        seen: set[str] = set()
        self.duplicate_names = []
        for name in attribute_names:
            if name in seen and name not in self.duplicate_names:
                self.duplicate_names.append(name)
            seen.add(name)
        super().__init__(f"Duplicate attribute names are not allowed: {self.duplicate_names}")


class EmptyPartitionError(ID3KitError):
    """Raised when tree induction reaches a dataset with no rows.

    Attributes:
        attribute (Attribute | None): The branch attribute whose partition was
            empty, or `None` when the dataset handed to training was empty.
    """

    attribute: Attribute | None

    def __init__(self, message: str, *, attribute: Attribute | None = None) -> None:
        """Initialize EmptyPartitionError.

        Args:
            message (str): Description of where the empty partition occurred.
            attribute (Attribute | None): The branch attribute that selected no rows.
        """
        super().__init__(message)
        self.attribute = attribute

    def __repr__(self) -> str:
        """Return detailed representation for debugging.

        Returns:
            str: Detailed string representation including message and attribute.
        """
        return f"{self.__class__.__name__}(message={str(self)!r}, attribute={self.attribute!r})"


class DegenerateDiscretizationError(ID3KitError, ValueError):
    """Raised when a continuous attribute cannot be split into two bins.

    This happens when the attribute has fewer than two distinct values, or
    when no adjacent pair of sorted values has differing outcomes (so there is
    no candidate split point).

    Attributes:
        attribute_name (str): The continuous attribute that was discretized.
        distinct_value_count (int): Number of distinct numeric values observed.
        candidate_count (int): Number of candidate split points found.

    Examples:
        >>> err = DegenerateDiscretizationError("Elevation", distinct_value_count=1, candidate_count=0)
        >>> err.distinct_value_count
        1
    """

    attribute_name: str
    distinct_value_count: int
    candidate_count: int

    def __init__(self, attribute_name: str, *, distinct_value_count: int, candidate_count: int) -> None:
        """Initialize DegenerateDiscretizationError.

        Args:
            attribute_name (str): The continuous attribute that was discretized.
            distinct_value_count (int): Number of distinct numeric values observed.
            candidate_count (int): Number of candidate split points found.
        """
        if distinct_value_count < 2:
            reason = f"only {distinct_value_count} distinct value(s)"
        else:
            reason = "no adjacent values with differing outcomes"
        super().__init__(f"Cannot discretize attribute '{attribute_name}': {reason}")
        self.attribute_name = attribute_name
        self.distinct_value_count = distinct_value_count
        self.candidate_count = candidate_count

    def __repr__(self) -> str:
        """Return detailed representation for debugging.

        Returns:
            str: Detailed string representation including the value and candidate counts.
        """
        return (
            f"{self.__class__.__name__}("
            f"attribute_name={self.attribute_name!r}, "
            f"distinct_value_count={self.distinct_value_count!r}, "
            f"candidate_count={self.candidate_count!r})"
        )


class UnmatchedBranchError(ID3KitError, LookupError):
    """Raised when evaluation finds no applicable decision at an inner node.

    Attributes:
        split_attribute (str): The attribute name the inner node splits on.
        observed_value (str | None): The evaluated Instance's value for that
            attribute, or `None` when the Instance lacks it.
    """

    split_attribute: str
    observed_value: str | None

    def __init__(self, message: str, *, split_attribute: str, observed_value: str | None = None) -> None:
        """Initialize UnmatchedBranchError.

        Args:
            message (str): Description of why no branch matched.
            split_attribute (str): The attribute name the inner node splits on.
            observed_value (str | None): The Instance's value for the split attribute.
        """
        super().__init__(message)
        self.split_attribute = split_attribute
        self.observed_value = observed_value

    def __repr__(self) -> str:
        """Return detailed representation for debugging.

        Returns:
            str: Detailed string representation including the split attribute and observed value.
        """
        return (
            f"{self.__class__.__name__}("
            f"message={str(self)!r}, split_attribute={self.split_attribute!r}, "
            f"observed_value={self.observed_value!r})"
        )


class InvalidConfigurationError(ID3KitError, ValueError):
    """Raised when training is configured with malformed parameters.

    Attributes:
        parameter (str | None): The offending parameter name, when known.
    """

    parameter: str | None

    def __init__(self, message: str, *, parameter: str | None = None) -> None:
        """Initialize InvalidConfigurationError.

        Args:
            message (str): Description of the configuration problem.
            parameter (str | None): The offending parameter name.
        """
        super().__init__(message)
        self.parameter = parameter

    def __repr__(self) -> str:
        """Return detailed representation for debugging.

        Returns:
            str: Detailed string representation including message and parameter.
        """
        return f"{self.__class__.__name__}(message={str(self)!r}, parameter={self.parameter!r})"
