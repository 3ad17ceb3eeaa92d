"""id3kit: ID3 decision tree learning over tabular, string-valued data."""

from loguru import logger

from id3kit.confusion_matrix import ConfusionMatrix
from id3kit.dataset import Attribute, Dataset, Instance
from id3kit.discretizer import Discretizer
from id3kit.logging import PACKAGE_NAME, enable_logging
from id3kit.purity import Entropy, GiniImpurity, MisclassificationRate, PurityFunction
from id3kit.tree import Tree, train

__version__ = "0.1.0"

logger.disable(PACKAGE_NAME)  # noqa: RUF067 - Disable logging for the id3kit module by default

__all__ = [
    "Attribute",
    "ConfusionMatrix",
    "Dataset",
    "Discretizer",
    "Entropy",
    "GiniImpurity",
    "Instance",
    "MisclassificationRate",
    "PurityFunction",
    "Tree",
    "enable_logging",
    "train",
]
