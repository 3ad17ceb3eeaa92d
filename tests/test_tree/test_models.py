"""Tests for tree node models: evaluation, traversal, scoring, and rendering."""

from __future__ import annotations

import pytest
from pydantic import ValidationError
from pytest_check import check

from id3kit.dataset import Attribute, Dataset, Instance
from id3kit.exceptions import UnmatchedBranchError
from id3kit.purity import Entropy
from id3kit.tree.models import Decision, InnerNode, TerminalNode, Tree


def _rows(*rows: dict[str, str], outcome: str = "Play") -> Dataset:
    return Dataset([Instance.from_mapping(row) for row in rows], outcome=outcome)


def _leaf(label: str, *, purity: float = 0.0) -> TerminalNode:
    return TerminalNode(label=label, purity=purity, reason="pure", dataset=_rows({"Play": label}))


def _outlook_tree() -> Tree:
    """Return `Outlook` -> sunny: no, rainy: yes."""
    root = InnerNode(
        attribute="Outlook",
        decisions=(
            Decision(attribute=Attribute("Outlook", "sunny"), child=_leaf("no")),
            Decision(attribute=Attribute("Outlook", "rainy"), child=_leaf("yes")),
        ),
        purity=0.0,
        dataset=_rows({"Outlook": "sunny", "Play": "no"}, {"Outlook": "rainy", "Play": "yes"}),
    )
    return Tree(root=root, purity_function=Entropy())


def _elevation_tree(*, decision_count: int = 2) -> Tree:
    """Return `Elevation` > 250.0: "2", <= 250.0: "1"."""
    threshold = Attribute("Elevation", "250.0", is_continuous=True)
    labels = ["2", "1", "3"][:decision_count]
    root = InnerNode(
        attribute="Elevation",
        decisions=tuple(Decision(attribute=threshold, child=_leaf(label)) for label in labels),
        purity=0.0,
        dataset=_rows({"Elevation": "100", "Cover_Type": "1"}, outcome="Cover_Type"),
    )
    return Tree(root=root, purity_function=Entropy())


class TestNodeModels:
    """Tests for pydantic validation of the node models."""

    def test_kind_discriminators_default(self) -> None:
        """Each node type carries its own discriminator value."""
        tree = _outlook_tree()

        with check:
            assert tree.root.kind == "inner"
        with check:
            assert isinstance(tree.root, InnerNode)
        with check:
            assert tree.root.decisions[0].child.kind == "terminal"

    def test_nodes_are_frozen(self) -> None:
        """Nodes cannot be mutated after construction."""
        leaf = _leaf("yes")

        with pytest.raises(ValidationError):
            leaf.label = "no"  # type: ignore[misc]

    def test_terminal_samples_counts_partition_rows(self) -> None:
        """`samples` reports the size of the partition that reached the leaf."""
        leaf = TerminalNode(
            label="yes",
            purity=0.0,
            reason="pure",
            dataset=_rows({"Play": "yes"}, {"Play": "yes"}),
        )

        assert leaf.samples == 2

    def test_dataset_excluded_from_dump(self) -> None:
        """Training partitions are not serialized."""
        dumped = _leaf("yes").model_dump()

        with check:
            assert "dataset" not in dumped
        with check:
            assert dumped == {"kind": "terminal", "label": "yes", "purity": 0.0, "reason": "pure"}


class TestTreeEvaluate:
    """Tests for `Tree.evaluate` and `Tree.evaluate_all`."""

    @pytest.mark.parametrize(("outlook", "expected"), [("sunny", "no"), ("rainy", "yes")], ids=["sunny", "rainy"])
    def test_categorical_decision(self, outlook: str, expected: str) -> None:
        """The decision whose attribute equals the instance's value is followed."""
        instance = Instance.from_mapping({"Outlook": outlook, "Wind": "weak"})

        assert _outlook_tree().evaluate(instance) == expected

    @pytest.mark.parametrize(
        ("elevation", "expected"),
        [("260", "2"), ("250.0", "1"), ("90", "1")],
        ids=["above", "equal-goes-below", "below-numerically"],
    )
    def test_continuous_decision(self, elevation: str, expected: str) -> None:
        """Values above the threshold take the first decision, all others the second."""
        instance = Instance.from_mapping({"Elevation": elevation})

        assert _elevation_tree().evaluate(instance) == expected

    def test_evaluation_is_deterministic(self) -> None:
        """Evaluating the same instance twice yields the same label."""
        # Arrange
        tree = _outlook_tree()
        instance = Instance.from_mapping({"Outlook": "sunny"})

        # Act & Assert
        assert tree.evaluate(instance) == tree.evaluate(instance)

    def test_missing_split_attribute_raises(self) -> None:
        """An instance lacking the split attribute cannot be routed."""
        with pytest.raises(UnmatchedBranchError) as exc_info:
            _outlook_tree().evaluate(Instance.from_mapping({"Wind": "weak"}))

        with check:
            assert exc_info.value.split_attribute == "Outlook"
        with check:
            assert exc_info.value.observed_value is None

    def test_unseen_categorical_value_raises(self) -> None:
        """A value with no matching decision raises rather than guessing a label."""
        with pytest.raises(UnmatchedBranchError) as exc_info:
            _outlook_tree().evaluate(Instance.from_mapping({"Outlook": "overcast"}))

        assert exc_info.value.observed_value == "overcast"

    def test_non_numeric_continuous_value_raises(self) -> None:
        """A continuous split cannot compare a non-numeric value."""
        with pytest.raises(UnmatchedBranchError, match="cannot be compared"):
            _elevation_tree().evaluate(Instance.from_mapping({"Elevation": "high"}))

    def test_malformed_continuous_node_raises(self) -> None:
        """A continuous split must have exactly two decisions."""
        with pytest.raises(UnmatchedBranchError, match="must have 2 decisions, found 3"):
            _elevation_tree(decision_count=3).evaluate(Instance.from_mapping({"Elevation": "300"}))

    def test_evaluate_all_keeps_row_order(self) -> None:
        """Predictions are returned in dataset row order."""
        dataset = _rows(
            {"Outlook": "rainy", "Play": "yes"},
            {"Outlook": "sunny", "Play": "yes"},
            {"Outlook": "sunny", "Play": "no"},
        )

        assert _outlook_tree().evaluate_all(dataset) == ["yes", "no", "no"]


class TestTreeAccuracy:
    """Tests for `Tree.accuracy`."""

    def test_accuracy_is_hit_ratio(self) -> None:
        """Accuracy is the fraction of rows predicted correctly."""
        # Arrange - the second row is mispredicted
        dataset = _rows(
            {"Outlook": "rainy", "Play": "yes"},
            {"Outlook": "sunny", "Play": "yes"},
            {"Outlook": "sunny", "Play": "no"},
            {"Outlook": "rainy", "Play": "yes"},
        )

        # Act
        score = _outlook_tree().accuracy(dataset)

        # Assert
        assert score == pytest.approx(0.75)

    def test_accuracy_on_empty_dataset_raises(self) -> None:
        """An empty dataset has no accuracy."""
        with pytest.raises(ValueError, match="empty dataset"):
            _outlook_tree().accuracy(Dataset([], outcome="Play"))


class TestTreeStructure:
    """Tests for `depth`, `leaf_count`, and `nodes`."""

    def test_single_leaf_tree(self) -> None:
        """A tree whose root is a leaf has depth 0 and one leaf."""
        tree = Tree(root=_leaf("yes"), purity_function=Entropy())

        with check:
            assert tree.depth == 0
        with check:
            assert tree.leaf_count == 1
        with check:
            assert list(tree.nodes()) == [tree.root]

    def test_nodes_are_yielded_depth_first_in_decision_order(self) -> None:
        """Traversal visits the root, then each decision's subtree in order."""
        # Arrange
        tree = _outlook_tree()

        # Act
        kinds_and_labels = [
            node.label if isinstance(node, TerminalNode) else node.attribute for node in tree.nodes()
        ]

        # Assert
        with check:
            assert kinds_and_labels == ["Outlook", "no", "yes"]
        with check:
            assert tree.depth == 1
        with check:
            assert tree.leaf_count == 2


class TestTreeRender:
    """Tests for `Tree.render`."""

    def test_categorical_render(self) -> None:
        """Each edge shows `name=value` and the child's purity; leaves end with `*`."""
        expected = "\n".join([
            "1) Outlook=sunny  purity=0.0000",
            "  2) Decision: no  purity=0.0000 *",
            "1) Outlook=rainy  purity=0.0000",
            "  2) Decision: yes  purity=0.0000 *",
        ])

        assert _outlook_tree().render() == expected

    def test_continuous_render_shows_threshold_as_value(self) -> None:
        """Both continuous edges render as `name=threshold`, the above edge first."""
        expected = "\n".join([
            "1) Elevation=250.0  purity=0.0000",
            "  2) Decision: 2  purity=0.0000 *",
            "1) Elevation=250.0  purity=0.0000",
            "  2) Decision: 1  purity=0.0000 *",
        ])

        assert _elevation_tree().render() == expected

    def test_single_leaf_render(self) -> None:
        """A single-leaf tree renders as one leaf line at level 1 with four decimals."""
        tree = Tree(root=_leaf("yes", purity=0.918295834), purity_function=Entropy())

        with check:
            assert tree.render() == "1) Decision: yes  purity=0.9183 *"
        with check:
            assert str(tree) == tree.render()
