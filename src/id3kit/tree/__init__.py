"""Decision tree sub-package: node models, training configuration, and builders."""

from __future__ import annotations

from id3kit.tree.building import build_extended_id3_tree, build_id3_tree, train
from id3kit.tree.config import TrainingConfig, load_training_config
from id3kit.tree.models import Decision, InnerNode, Node, TerminalNode, TerminalReason, Tree

__all__ = [
    "Decision",
    "InnerNode",
    "Node",
    "TerminalNode",
    "TerminalReason",
    "TrainingConfig",
    "Tree",
    "build_extended_id3_tree",
    "build_id3_tree",
    "load_training_config",
    "train",
]
