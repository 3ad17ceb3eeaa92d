"""Pydantic node models, evaluation, and rendering for trained ID3 trees."""

from __future__ import annotations

from collections.abc import Iterator
from typing import Literal

from loguru import logger
from pydantic import BaseModel, ConfigDict, Field
from sklearn.metrics import accuracy_score

from id3kit.dataset import Attribute, Dataset, Instance
from id3kit.exceptions import UnmatchedBranchError
from id3kit.logging import TRAINING_LEVEL
from id3kit.purity import PurityFunction
from id3kit.tree.config import PURITY_DECIMAL_PLACES

# ---------------------------------------------------------------------------
# Public type aliases
# ---------------------------------------------------------------------------

type TerminalReason = Literal["pure", "no_attribute", "pre_pruned", "no_progress"]

type Node = InnerNode | TerminalNode

# ---------------------------------------------------------------------------
# Public models
# ---------------------------------------------------------------------------


class TerminalNode(BaseModel):
    """A leaf that predicts one outcome label.

    Attributes:
        kind (Literal["terminal"]): Discriminator field; always `"terminal"`.
        label (str): The predicted outcome value.
        purity (float): Impurity of the partition that reached this leaf.
        reason (TerminalReason): Why recursion stopped here.
        dataset (Dataset): The training partition that reached this leaf.
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    kind: Literal["terminal"] = Field(
        default="terminal",
        description='Discriminator field. Always "terminal".',
    )
    label: str = Field(
        description="Predicted outcome value for instances reaching this leaf.",
    )
    purity: float = Field(
        description="Impurity of the training partition that reached this leaf. 0.0 means pure.",
    )
    reason: TerminalReason = Field(
        description=(
            "Why recursion stopped: the partition was pure, no attribute could split it, "
            "the best split was pre-pruned, or the best split did not shrink the partition."
        ),
    )
    dataset: Dataset = Field(
        repr=False,
        exclude=True,
        description="Training partition that reached this leaf.",
    )

    @property
    def samples(self) -> int:
        """Return the number of training rows that reached this leaf."""
        return len(self.dataset)


class Decision(BaseModel):
    """One outgoing edge of an inner node.

    For a categorical split, `attribute` is the value an instance must carry
    to follow the edge. For a continuous split, `attribute.value` is the
    threshold and `attribute.is_continuous` is `True`; the first decision of
    the node is taken when the instance's value is above the threshold and the
    second otherwise.

    Attributes:
        attribute (Attribute): The split attribute and its edge value.
        child (Node): The subtree reached through this edge.
    """

    model_config = ConfigDict(frozen=True)

    attribute: Attribute = Field(
        description="Split attribute and the value (or threshold) this edge matches.",
    )
    child: InnerNode | TerminalNode = Field(
        discriminator="kind",
        description="Subtree reached through this edge.",
    )


class InnerNode(BaseModel):
    """A split on one attribute with one decision per outgoing edge.

    Attributes:
        kind (Literal["inner"]): Discriminator field; always `"inner"`.
        attribute (str): Name of the split attribute.
        decisions (tuple[Decision, ...]): Outgoing edges, in split order.
        purity (float): Purity score of the chosen split.
        dataset (Dataset): The training partition split at this node.
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    kind: Literal["inner"] = Field(
        default="inner",
        description='Discriminator field. Always "inner".',
    )
    attribute: str = Field(
        description="Name of the attribute this node splits on.",
    )
    decisions: tuple[Decision, ...] = Field(
        description="Outgoing edges. A continuous split has exactly two: above, then at-or-below.",
    )
    purity: float = Field(
        description="Purity score of the chosen split. Lower is better.",
    )
    dataset: Dataset = Field(
        repr=False,
        exclude=True,
        description="Training partition split at this node.",
    )

    @property
    def is_continuous(self) -> bool:
        """Return whether this node splits on a numeric threshold."""
        return bool(self.decisions) and self.decisions[0].attribute.is_continuous


Decision.model_rebuild()
InnerNode.model_rebuild()


class Tree(BaseModel):
    """A trained decision tree and the purity function it was built with.

    Examples:
        >>> tree = train(dataset, "Play")  # doctest: +SKIP
        >>> tree.evaluate(Instance.from_mapping({"Outlook": "sunny"}))  # doctest: +SKIP
        'no'
        >>> print(tree.render())  # doctest: +SKIP
        1) Outlook=sunny  purity=0.0000
          2) Decision: no  purity=0.0000 *
        1) Outlook=rainy  purity=0.0000
          2) Decision: yes  purity=0.0000 *
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    root: InnerNode | TerminalNode = Field(
        discriminator="kind",
        description="Root node of the tree.",
    )
    purity_function: PurityFunction = Field(
        description="Purity function used to choose every split.",
    )

    def evaluate(self, instance: Instance) -> str:
        """Predict the outcome label for one instance.

        Args:
            instance (Instance): The instance to classify. Only the attributes
                on its root-to-leaf path are read.

        Returns:
            str: The label of the leaf the instance reaches.

        Raises:
            UnmatchedBranchError: If the instance lacks a split attribute, no
                decision matches its value, or a continuous value is not
                numeric.
        """
        node: Node = self.root
        while True:
            match node:
                case TerminalNode(label=label):
                    return label
                case InnerNode():
                    node = _follow_decision(node, instance)

    def evaluate_all(self, dataset: Dataset) -> list[str]:
        """Predict the outcome label for every instance of a dataset, in row order."""
        return [self.evaluate(instance) for instance in dataset]

    def accuracy(self, dataset: Dataset) -> float:
        """Return the fraction of rows whose predicted label equals their outcome.

        Args:
            dataset (Dataset): Labeled rows to score.

        Returns:
            float: Accuracy in `[0, 1]`.

        Raises:
            ValueError: If `dataset` is empty.
            UnmatchedBranchError: If any row cannot be classified.
        """
        if len(dataset) == 0:
            raise ValueError("Cannot score a tree on an empty dataset")
        predictions = self.evaluate_all(dataset)
        score = float(accuracy_score(dataset.outcome_values(), predictions))
        logger.log(TRAINING_LEVEL, "Tree scored", rows=len(dataset), accuracy=round(score, PURITY_DECIMAL_PLACES))
        return score

    @property
    def depth(self) -> int:
        """Return the number of inner nodes on the longest root-to-leaf path."""
        return _depth(self.root)

    @property
    def leaf_count(self) -> int:
        """Return the number of terminal nodes."""
        return sum(1 for node in self.nodes() if isinstance(node, TerminalNode))

    def nodes(self) -> Iterator[Node]:
        """Yield every node in depth-first, decision order, starting at the root."""
        stack: list[Node] = [self.root]
        while stack:
            node = stack.pop()
            yield node
            if isinstance(node, InnerNode):
                stack.extend(decision.child for decision in reversed(node.decisions))

    def render(self) -> str:
        """Return an indented text rendering of the tree.

        Each decision edge becomes a line `"<level>) <name>=<value>  purity=<p>"`
        where `p` is the purity of the child it leads to. Both edges of a continuous
        split print the threshold as their value, the `>` edge first. Each leaf becomes
        `"<level>) Decision: <label>  purity=<p> *"`. Levels start at 1 and
        every level is indented two more spaces than its parent.

        Returns:
            str: The rendering, one line per edge or leaf.
        """
        lines: list[str] = []
        _render_node(self.root, level=1, lines=lines)
        return "\n".join(lines)

    def __str__(self) -> str:
        return self.render()


# ---------------------------------------------------------------------------
# Private helpers
# ---------------------------------------------------------------------------


def _follow_decision(node: InnerNode, instance: Instance) -> Node:
    """Return the child of `node` that `instance` is routed to.

    Args:
        node (InnerNode): The node to route through.
        instance (Instance): The instance being classified.

    Returns:
        Node: The selected child.

    Raises:
        UnmatchedBranchError: If no child can be selected.
    """
    observed = instance.get(node.attribute)
    if observed is None:
        raise UnmatchedBranchError(
            f"Instance has no value for split attribute '{node.attribute}'",
            split_attribute=node.attribute,
        )

    if not node.is_continuous:
        for decision in node.decisions:
            if decision.attribute == observed:
                return decision.child
        raise UnmatchedBranchError(
            f"No decision of '{node.attribute}' matches value {observed.value!r}",
            split_attribute=node.attribute,
            observed_value=observed.value,
        )

    if len(node.decisions) != 2:
        raise UnmatchedBranchError(
            f"Continuous split on '{node.attribute}' must have 2 decisions, found {len(node.decisions)}",
            split_attribute=node.attribute,
            observed_value=observed.value,
        )
    above, at_or_below = node.decisions
    try:
        is_above = observed.greater_than(above.attribute)
    except ValueError as exc:
        raise UnmatchedBranchError(
            f"Value {observed.value!r} of '{node.attribute}' cannot be compared with threshold {above.attribute.value}",
            split_attribute=node.attribute,
            observed_value=observed.value,
        ) from exc
    return above.child if is_above else at_or_below.child


def _depth(node: Node) -> int:
    match node:
        case TerminalNode():
            return 0
        case InnerNode(decisions=decisions):
            return 1 + max((_depth(decision.child) for decision in decisions), default=0)


def _render_node(node: Node, *, level: int, lines: list[str]) -> None:
    indent = "  " * (level - 1)
    match node:
        case TerminalNode(label=label, purity=purity):
            lines.append(f"{indent}{level}) Decision: {label}  purity={_format_purity(purity)} *")
        case InnerNode(decisions=decisions):
            for decision in decisions:
                lines.append(f"{indent}{level}) {decision.attribute}  purity={_format_purity(decision.child.purity)}")
                _render_node(decision.child, level=level + 1, lines=lines)


def _format_purity(purity: float) -> str:
    return f"{purity:.{PURITY_DECIMAL_PLACES}f}"
