"""Demonstrates how to enable and configure logging while training with id3kit.

id3kit logging is disabled by default. Users opt in by calling ``enable_logging()``,
which returns a ``LoggingHandle``. The handle can be used as a context manager
(``with enable_logging(): ...``) or disabled manually via ``handle.disable()``.
When the last active handle is disabled, id3kit logging is automatically turned off.

Key concepts shown here:

- ``level``: controls the minimum log level. The custom ``TRAINING`` level
  (numeric value 25, between INFO and WARNING) surfaces ``train`` and
  ``Tree.accuracy`` calls and is the default. ``"DEBUG"`` adds every split,
  every discretized attribute, and every pre-pruned node.
- ``log_format``: ``"short"`` shows ``timestamp | level | function - message``;
  ``"full"`` adds the module and line number.
- Automatic cleanup: logging is re-disabled when the context manager exits.
"""

import polars as pl

from id3kit import Dataset, Instance, enable_logging, train

train_df = pl.DataFrame({
    "Elevation": [2596, 2590, 2804, 2785, 2595, 2579, 2606, 2605, 2617, 2612, 2886, 2742],
    "Soil_Type": ["29", "29", "12", "30", "29", "29", "29", "29", "29", "29", "30", "30"],
    "Cover_Type": ["2", "2", "1", "1", "2", "2", "2", "2", "2", "2", "1", "1"],
})
test_df = pl.DataFrame({
    "Elevation": [2600, 2850, 2580],
    "Soil_Type": ["29", "30", "29"],
    "Cover_Type": ["2", "1", "2"],
})

# Enable logging at DEBUG level with full log format to follow every split decision
with enable_logging(
    level="DEBUG",
    log_format="full",
):
    train_set = Dataset.from_frame(train_df, outcome="Cover_Type", continuous=["Elevation"])
    tree = train(train_set, "Cover_Type", output_classes=["2", "1"], pruning_threshold=0.5)

    print(f"\n{tree.render()}\n")

    test_set = Dataset.from_frame(test_df, outcome="Cover_Type", continuous=["Elevation"])
    tree.accuracy(test_set)

    # Predict a single unlabeled row
    label = tree.evaluate(Instance.from_mapping({"Elevation": "2700", "Soil_Type": "12"}))
    print(f"\nPredicted Cover_Type: {label}\n")

# Logging automatically disabled here
