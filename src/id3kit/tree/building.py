"""ID3 tree construction: the baseline and the continuous-aware, pre-pruned builders.

Both builders grow the tree top-down. At every node each candidate attribute
is cross-tabulated against the outcome, scored by the injected purity
function, and the lowest-scoring attribute wins; ties keep the attribute that
appears first in the schema. Recursion stops when:

- the partition is pure (one outcome value), giving a purity-0 leaf;
- no attribute varies across the partition;
- the extended builder's best purity is not below `pruning_threshold`;
- the best split leaves a partition empty or no smaller than the parent.

The extended builder re-discretizes continuous attributes on every partition,
so a deeper node may choose a different threshold than its ancestors.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

from loguru import logger

from id3kit.confusion_matrix import ConfusionMatrix
from id3kit.dataset import Attribute, Dataset, numeric_values
from id3kit.discretizer import DiscretizationResult, Discretizer
from id3kit.exceptions import EmptyPartitionError, InvalidConfigurationError
from id3kit.logging import TRAINING_LEVEL
from id3kit.purity import Entropy, PurityFunction
from id3kit.tree.config import load_training_config
from id3kit.tree.models import Decision, InnerNode, Node, TerminalNode, TerminalReason, Tree

# ---------------------------------------------------------------------------
# Private types
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class _BuildContext:
    """Settings shared by every recursive call of one build."""

    outcome: str
    purity_function: PurityFunction
    discretizer: Discretizer | None = None
    pruning_threshold: float | None = None


@dataclass(frozen=True)
class _Candidate:
    """A scored split attribute."""

    name: str
    purity: float


# ---------------------------------------------------------------------------
# Public interface
# ---------------------------------------------------------------------------


def train(
    dataset: Dataset,
    outcome: str,
    purity_function: PurityFunction | None = None,
    output_classes: Sequence[str] | None = None,
    *,
    pruning_threshold: float | None = None,
) -> Tree:
    """Train an ID3 decision tree.

    Uses the baseline builder when `output_classes` is `None`, otherwise the
    extended builder that discretizes continuous attributes and pre-prunes.

    Args:
        dataset (Dataset): The labeled training rows.
        outcome (str): Name of the outcome attribute to predict. Overrides the
            dataset's own outcome.
        purity_function (PurityFunction | None): Split scoring metric.
            Defaults to `Entropy()`.
        output_classes (Sequence[str] | None): Ordered bin labels for
            continuous attributes.
        pruning_threshold (float | None): Pre-pruning threshold; required when
            `output_classes` is given.

    Returns:
        Tree: The trained tree.

    Raises:
        InvalidConfigurationError: If the hyperparameters are malformed, the
            outcome is absent, or continuous attributes are declared without
            `output_classes`.
        EmptyPartitionError: If `dataset` is empty.
    """
    config = load_training_config(
        outcome=outcome,
        output_classes=tuple(output_classes) if output_classes is not None else None,
        pruning_threshold=pruning_threshold,
    )
    training_set = dataset.with_outcome(config.outcome)
    if training_set.continuous and not config.is_extended:
        raise InvalidConfigurationError(
            f"Continuous attributes {list(training_set.continuous)} require output_classes",
            parameter="output_classes",
        )
    purity_function = purity_function or Entropy()

    logger.log(
        TRAINING_LEVEL,
        "Training decision tree",
        rows=len(training_set),
        outcome=config.outcome,
        builder="extended" if config.is_extended else "baseline",
        purity_function=repr(purity_function),
    )
    if config.output_classes is not None and config.pruning_threshold is not None:
        tree = build_extended_id3_tree(
            training_set,
            purity_function,
            output_classes=config.output_classes,
            pruning_threshold=config.pruning_threshold,
        )
    else:
        tree = build_id3_tree(training_set, purity_function)
    logger.log(TRAINING_LEVEL, "Decision tree trained", depth=tree.depth, leaves=tree.leaf_count)
    return tree


def build_id3_tree(dataset: Dataset, purity_function: PurityFunction | None = None) -> Tree:
    """Build a tree over categorical attributes only.

    Declared continuous attributes are treated as ordinary categorical ones.

    Args:
        dataset (Dataset): The labeled training rows.
        purity_function (PurityFunction | None): Split scoring metric.
            Defaults to `Entropy()`.

    Returns:
        Tree: The trained tree.

    Raises:
        EmptyPartitionError: If `dataset` is empty.
    """
    context = _BuildContext(outcome=dataset.outcome, purity_function=purity_function or Entropy())
    _require_rows(dataset)
    return Tree(root=_build_node(dataset, context), purity_function=context.purity_function)


def build_extended_id3_tree(
    dataset: Dataset,
    purity_function: PurityFunction | None = None,
    *,
    output_classes: Sequence[str],
    pruning_threshold: float,
) -> Tree:
    """Build a tree that discretizes continuous attributes and pre-prunes weak splits.

    Args:
        dataset (Dataset): The labeled training rows.
        purity_function (PurityFunction | None): Split scoring metric.
            Defaults to `Entropy()`.
        output_classes (Sequence[str]): Ordered bin labels for continuous
            attributes.
        pruning_threshold (float): A split becomes a leaf unless its purity is
            strictly below this value.

    Returns:
        Tree: The trained tree.

    Raises:
        EmptyPartitionError: If `dataset` is empty.
        InvalidConfigurationError: If `output_classes` is malformed or a
            continuous value is not numeric.
    """
    context = _BuildContext(
        outcome=dataset.outcome,
        purity_function=purity_function or Entropy(),
        discretizer=Discretizer(output_classes),
        pruning_threshold=pruning_threshold,
    )
    _require_rows(dataset)
    return Tree(root=_build_node(dataset, context), purity_function=context.purity_function)


# ---------------------------------------------------------------------------
# Private helpers
# ---------------------------------------------------------------------------


def _require_rows(dataset: Dataset) -> None:
    if len(dataset) == 0:
        raise EmptyPartitionError("Cannot build a decision tree from an empty dataset")


def _build_node(dataset: Dataset, context: _BuildContext, *, branch: Attribute | None = None) -> Node:
    """Recursively build the subtree for one partition.

    In the extended builder a continuous attribute that cannot be discretized
    in this partition (a single distinct value, or no outcome change between
    neighbours) is not an error: `Discretizer.discretize` is called with
    `on_degenerate="skip"` and the attribute is simply excluded from candidacy
    here. See "Degenerate continuous attributes in a partition" in DESIGN.md.

    Args:
        dataset (Dataset): The partition, with original (undiscretized) values.
        context (_BuildContext): Build-wide settings.
        branch (Attribute | None): The edge that led here, for error reporting.

    Returns:
        Node: The subtree root.

    Raises:
        EmptyPartitionError: If the partition has no rows.
    """
    if len(dataset) == 0:
        raise EmptyPartitionError(f"Partition reached through {branch} has no rows", attribute=branch)

    if len(set(dataset.outcome_values())) == 1:
        return _terminal(dataset, context, reason="pure")

    results: dict[str, DiscretizationResult] = {}
    scan_dataset = dataset
    if context.discretizer is not None:
        discretized = context.discretizer.discretize(dataset, on_degenerate="skip")
        scan_dataset, results = discretized.dataset, discretized.results
    # undiscretizable continuous attributes cannot be split on
    excluded = set(dataset.continuous) - set(results) if context.discretizer is not None else set()

    best = _select_attribute(scan_dataset, context, excluded=excluded)
    if best is None:
        return _terminal(dataset, context, reason="no_attribute")
    if context.pruning_threshold is not None and not best.purity < context.pruning_threshold:
        logger.debug(
            "Split pre-pruned",
            attribute=best.name,
            purity=best.purity,
            pruning_threshold=context.pruning_threshold,
            rows=len(dataset),
        )
        return _terminal(dataset, context, reason="pre_pruned", purity=best.purity)

    result = results.get(best.name)
    if result is not None:
        branches = _continuous_branches(dataset, result)
    else:
        branches = _categorical_branches(dataset, best.name)
    # a continuous split leaves one side empty when every upper-bin value equals the threshold
    if any(len(child) in (0, len(dataset)) for _, child in branches):
        logger.debug("Split made no progress", attribute=best.name, rows=len(dataset))
        return _terminal(dataset, context, reason="no_progress", purity=best.purity)

    logger.debug(
        "Split selected",
        attribute=best.name,
        purity=best.purity,
        rows=len(dataset),
        branches=len(branches),
    )
    decisions = tuple(
        Decision(attribute=attribute, child=_build_node(child, context, branch=attribute))
        for attribute, child in branches
    )
    return InnerNode(attribute=best.name, decisions=decisions, purity=best.purity, dataset=dataset)


def _select_attribute(scan_dataset: Dataset, context: _BuildContext, *, excluded: set[str]) -> _Candidate | None:
    """Return the lowest-purity split candidate, or `None` if no attribute varies.

    Args:
        scan_dataset (Dataset): The partition with continuous attributes
            already rewritten to bin labels.
        context (_BuildContext): Build-wide settings.
        excluded (set[str]): Attributes that must not be considered.

    Returns:
        _Candidate | None: The winning attribute and its purity score.
    """
    best: _Candidate | None = None
    for name in scan_dataset.attribute_names:
        if name == context.outcome or name in excluded:
            continue
        matrix = ConfusionMatrix.build(scan_dataset, name, context.outcome, on_missing="raise")
        if matrix.is_useless():
            continue
        purity = context.purity_function.calculate(matrix)
        # strict comparison keeps the first attribute on ties
        if best is None or purity < best.purity:
            best = _Candidate(name=name, purity=purity)
    return best


def _categorical_branches(dataset: Dataset, name: str) -> list[tuple[Attribute, Dataset]]:
    """Partition rows by each distinct value of `name`, in first-seen order."""
    branches: list[tuple[Attribute, Dataset]] = []
    for value in dataset.distinct_values(name):
        attribute = Attribute(name, value)
        branches.append((attribute, dataset.split(attribute)))
    return branches


def _continuous_branches(dataset: Dataset, result: DiscretizationResult) -> list[tuple[Attribute, Dataset]]:
    """Partition rows at the chosen threshold: `> split_point` first, then `<= split_point`.

    Rows are routed on their original values with the same comparison
    `Tree.evaluate` applies, so a value equal to the split point lands in the
    second partition even though the discretizer binned it with the upper label.
    Children keep undiscretized values and can be re-discretized.

    Args:
        dataset (Dataset): The partition with original values.
        result (DiscretizationResult): The threshold for the split attribute.

    Returns:
        list[tuple[Attribute, Dataset]]: Two `(threshold attribute, rows)` pairs.
    """
    threshold = Attribute(result.attribute, str(result.split_point), is_continuous=True)
    values = numeric_values(dataset, result.attribute)
    above = [index for index, value in enumerate(values) if value > result.split_point]
    at_or_below = [index for index, value in enumerate(values) if value <= result.split_point]
    return [(threshold, dataset.select(above)), (threshold, dataset.select(at_or_below))]


def _terminal(
    dataset: Dataset,
    context: _BuildContext,
    *,
    reason: TerminalReason,
    purity: float | None = None,
) -> TerminalNode:
    """Build a leaf predicting the partition's majority outcome.

    Args:
        dataset (Dataset): The partition reaching the leaf.
        context (_BuildContext): Build-wide settings.
        reason (TerminalReason): Why recursion stopped.
        purity (float | None): Purity to record. Defaults to the impurity of
            the unsplit partition.

    Returns:
        TerminalNode: The leaf.
    """
    if purity is None:
        purity = context.purity_function.calculate(ConfusionMatrix.unsplit(dataset, context.outcome))
    label = dataset.majority_value(context.outcome)
    logger.debug("Leaf created", label=label, reason=reason, rows=len(dataset))
    return TerminalNode(label=label, purity=purity, reason=reason, dataset=dataset)
