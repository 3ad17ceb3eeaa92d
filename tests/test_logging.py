"""Tests for id3kit's opt-in loguru output."""

from __future__ import annotations

import contextlib
import io
import sys
import warnings
from collections.abc import Generator
from unittest import mock

import loguru
import pytest
from loguru import logger
from pytest_check import check

from id3kit.dataset import Dataset, Instance
from id3kit.logging import (
    PACKAGE_NAME,
    TRAINING_LEVEL,
    TRAINING_LEVEL_NUMBER,
    LoggingHandle,
    _register_training_level,
    enable_logging,
)
from id3kit.tree.building import train


@contextlib.contextmanager
def recorded(*, enable_package: bool = True) -> Generator[list[loguru.Record]]:
    """Collect every record loguru emits while the block runs.

    With `enable_package=False` the package logger is left as the code under
    test set it, so the block observes whether id3kit is still silenced.
    """
    records: list[loguru.Record] = []
    handler_id = logger.add(lambda message: records.append(message.record))
    if enable_package:
        logger.enable(PACKAGE_NAME)
    try:
        yield records
    finally:
        if enable_package:
            logger.disable(PACKAGE_NAME)
        logger.remove(handler_id)


@pytest.fixture(autouse=True)
def isolated_handles() -> Generator[None]:
    """Remove handlers that a test enabled but never disabled."""
    before = set(LoggingHandle._active_ids)
    yield
    for handler_id in LoggingHandle._active_ids - before:
        with contextlib.suppress(ValueError):
            logger.remove(handler_id)
    LoggingHandle._active_ids.intersection_update(before)


@pytest.fixture
def records() -> Generator[list[loguru.Record]]:
    with recorded() as captured:
        yield captured


def _weather() -> Dataset:
    rows = [
        {"Outlook": "sunny", "Wind": "weak", "Play": "yes"},
        {"Outlook": "sunny", "Wind": "strong", "Play": "no"},
        {"Outlook": "rainy", "Wind": "weak", "Play": "yes"},
        {"Outlook": "rainy", "Wind": "strong", "Play": "yes"},
    ]
    return Dataset([Instance.from_mapping(row) for row in rows], outcome="Play")


def _elevation() -> Dataset:
    pairs = [(100, "1"), (200, "1"), (300, "2"), (400, "2"), (500, "1"), (600, "1")]
    rows = [{"Elevation": value, "Cover_Type": label} for value, label in pairs]
    return Dataset(
        [Instance.from_mapping(row, continuous=["Elevation"]) for row in rows],
        outcome="Cover_Type",
        continuous=["Elevation"],
    )


def _from_id3kit(records: list[loguru.Record]) -> list[loguru.Record]:
    return [r for r in records if (r["name"] or "").startswith(PACKAGE_NAME)]


def _train_with_output(**kwargs: str) -> str:
    """Train the weather tree with logging enabled and return what was written."""
    stream = io.StringIO()
    with enable_logging(sink=stream, **kwargs):  # type: ignore[arg-type]
        train(_weather(), "Play")
    return stream.getvalue()


def test_logging_disabled_by_default() -> None:
    """Training and scoring emit nothing until logging is enabled."""
    # Arrange
    logger.disable(PACKAGE_NAME)

    # Act
    with recorded(enable_package=False) as captured:
        train(_weather(), "Play").accuracy(_weather())

    # Assert
    assert _from_id3kit(captured) == []


class TestTrainingRecords:
    """Tests for records emitted while training and scoring."""

    def test_train_logs_entry_and_summary(self, records: list[loguru.Record]) -> None:
        """`train` logs its start and its result at the TRAINING level with structured fields."""
        # Act
        train(_weather(), "Play")

        # Assert
        training = [r for r in records if r["level"].name == TRAINING_LEVEL]
        with check:
            assert [r["message"] for r in training] == ["Training decision tree", "Decision tree trained"]
        with check:
            assert training[0]["extra"]["rows"] == 4
        with check:
            assert training[0]["extra"]["builder"] == "baseline"
        with check:
            assert training[1]["extra"]["depth"] == 2

    def test_split_selection_logged_at_debug(self, records: list[loguru.Record]) -> None:
        """Each chosen split is logged at DEBUG with its attribute."""
        # Act
        train(_weather(), "Play")

        # Assert
        splits = [r for r in records if r["message"] == "Split selected"]
        with check:
            assert [r["extra"]["attribute"] for r in splits] == ["Outlook", "Wind"]
        with check:
            assert {r["level"].name for r in splits} == {"DEBUG"}

    def test_pre_pruning_logged(self, records: list[loguru.Record]) -> None:
        """A pre-pruned split is logged with the threshold that rejected it."""
        # Act
        train(_elevation(), "Cover_Type", output_classes=["1", "2"], pruning_threshold=0.5)

        # Assert
        pruned = [r for r in records if r["message"] == "Split pre-pruned"]
        with check:
            assert len(pruned) == 1
        with check:
            assert pruned[0]["extra"]["pruning_threshold"] == 0.5

    def test_discretization_logged(self, records: list[loguru.Record]) -> None:
        """Each discretized attribute is logged with its split point, root first."""
        # Act
        train(_elevation(), "Cover_Type", output_classes=["1", "2"], pruning_threshold=0.9)

        # Assert
        split_points = [r["extra"]["split_point"] for r in records if r["message"] == "Attribute discretized"]
        assert split_points[:2] == [250.0, 450.0]

    def test_degenerate_attribute_logged_when_skipped(self, records: list[loguru.Record]) -> None:
        """A constant continuous attribute is reported with the counts that made it unusable."""
        # Arrange
        rows = [
            {"Elevation": 150, "Soil": soil, "Cover_Type": label}
            for soil, label in [("loam", "1"), ("clay", "2"), ("loam", "1"), ("clay", "2")]
        ]
        dataset = Dataset(
            [Instance.from_mapping(row, continuous=["Elevation"]) for row in rows],
            outcome="Cover_Type",
            continuous=["Elevation"],
        )

        # Act
        train(dataset, "Cover_Type", output_classes=["1", "2"], pruning_threshold=0.5)

        # Assert
        skipped = [r for r in records if r["message"] == "Attribute left undiscretized"]
        assert skipped
        with check:
            assert skipped[0]["extra"]["attribute"] == "Elevation"
        with check:
            assert skipped[0]["extra"]["distinct_values"] == 1

    def test_accuracy_logged(self, records: list[loguru.Record]) -> None:
        """Scoring a tree logs the accuracy at the TRAINING level."""
        # Arrange
        tree = train(_weather(), "Play")
        records.clear()

        # Act
        tree.accuracy(_weather())

        # Assert
        scored = [r for r in records if r["message"] == "Tree scored"]
        assert len(scored) == 1
        with check:
            assert scored[0]["extra"]["accuracy"] == 1.0
        with check:
            assert scored[0]["level"].name == TRAINING_LEVEL


class TestTrainingLevel:
    """Tests for the custom TRAINING level."""

    def test_registered_between_info_and_warning(self) -> None:
        level = logger.level(TRAINING_LEVEL)

        with check:
            assert level.no == TRAINING_LEVEL_NUMBER
        with check:
            assert logger.level("INFO").no < level.no < logger.level("WARNING").no

    def test_conflicting_registration_warns(self) -> None:
        """A TRAINING level registered elsewhere with another number warns instead of raising."""
        # Arrange
        conflicting = mock.MagicMock(spec=["no"])
        conflicting.no = TRAINING_LEVEL_NUMBER + 1

        # Act
        with (
            mock.patch("id3kit.logging.logger.level", return_value=conflicting),
            warnings.catch_warnings(record=True) as caught,
        ):
            warnings.simplefilter("always")
            _register_training_level()

        # Assert
        assert len(caught) == 1
        with check:
            assert issubclass(caught[0].category, UserWarning)
        with check:
            assert str(TRAINING_LEVEL_NUMBER) in str(caught[0].message)


class TestLoggingHandle:
    """Tests for handle lifecycle and the package logger's enabled state."""

    def test_context_manager_lets_records_through(self, records: list[loguru.Record]) -> None:
        # Act
        with enable_logging() as handle:
            train(_weather(), "Play")

        # Assert
        with check:
            assert _from_id3kit(records) != []
        with check:
            assert handle.handler_id is None

    def test_disable_twice_is_harmless(self) -> None:
        # Arrange
        handle = enable_logging()

        # Act
        handle.disable()
        handle.disable()

        # Assert
        assert handle.handler_id is None

    @pytest.mark.parametrize("handle_count", [1, 2], ids=["single-handle", "two-handles"])
    def test_disabling_every_handle_silences_package(self, handle_count: int) -> None:
        # Arrange
        for handle in [enable_logging() for _ in range(handle_count)]:
            handle.disable()

        # Act
        with recorded(enable_package=False) as captured:
            train(_weather(), "Play")

        # Assert
        assert _from_id3kit(captured) == []

    def test_remaining_handle_keeps_package_enabled(self) -> None:
        # Arrange
        first = enable_logging(level="DEBUG", sink=io.StringIO())
        second = enable_logging(level="DEBUG", sink=io.StringIO())

        # Act
        with recorded(enable_package=False) as captured:
            first.disable()
            train(_weather(), "Play")
        second.disable()

        # Assert
        assert _from_id3kit(captured) != []

    def test_active_handle_count(self) -> None:
        # Arrange
        baseline = LoggingHandle.get_active_handle_count()

        # Act
        handle = enable_logging(sink=io.StringIO())
        during = LoggingHandle.get_active_handle_count()
        handle.disable()

        # Assert
        with check:
            assert during == baseline + 1
        with check:
            assert LoggingHandle.get_active_handle_count() == baseline


class TestEnableLoggingOutput:
    """Tests for what `enable_logging` writes to its sink."""

    @pytest.mark.parametrize(
        ("level", "present", "absent"),
        [
            ("TRAINING", ["Training decision tree"], ["Split selected"]),
            ("DEBUG", ["Training decision tree", "Split selected"], []),
            ("WARNING", [], ["Training decision tree", "Split selected"]),
        ],
        ids=["training", "debug", "warning"],
    )
    def test_level_filtering(self, level: str, present: list[str], absent: list[str]) -> None:
        output = _train_with_output(level=level)

        for message in present:
            with check:
                assert message in output, f"'{message}' should be written at level {level}"
        for message in absent:
            with check:
                assert message not in output, f"'{message}' should not be written at level {level}"

    @pytest.mark.parametrize(
        ("log_format", "location"),
        [("short", "| train - "), ("full", "| id3kit.tree.building:train:")],
        ids=["short", "full"],
    )
    def test_format_source_location(self, log_format: str, location: str) -> None:
        output = _train_with_output(log_format=log_format)

        assert location in output

    def test_structured_context_follows_message(self) -> None:
        """The fields passed with a record are printed after its message."""
        output = _train_with_output()

        first_line = output.splitlines()[0]
        with check:
            assert "Training decision tree" in first_line
        with check:
            assert "'builder': 'baseline'" in first_line
        with check:
            assert "'rows': 4" in first_line

    def test_default_sink_is_current_stderr(self, monkeypatch: pytest.MonkeyPatch) -> None:
        # Arrange
        captured_stderr = io.StringIO()
        monkeypatch.setattr(sys, "stderr", captured_stderr)

        # Act
        with enable_logging():
            train(_weather(), "Play")

        # Assert
        assert "Decision tree trained" in captured_stderr.getvalue()
