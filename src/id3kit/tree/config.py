"""Pydantic training configuration and its conversion to library errors."""

from __future__ import annotations

from typing import Final

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

from id3kit.discretizer import validate_output_classes
from id3kit.exceptions import InvalidConfigurationError

PURITY_DECIMAL_PLACES: Final[int] = 4  # Decimal places for purity values in rendered trees.


class TrainingConfig(BaseModel):
    """Hyperparameters for one `train` call.

    The baseline (categorical-only) builder is used when `output_classes` is
    `None`; otherwise the extended builder discretizes continuous attributes
    into `output_classes` bins and pre-prunes any split whose purity is not
    below `pruning_threshold`.

    Attributes:
        outcome (str): Name of the outcome attribute to predict.
        output_classes (tuple[str, ...] | None): Ordered bin labels for
            continuous attributes, e.g. `("2", "1")`.
        pruning_threshold (float | None): A split is kept only when its purity
            score is strictly below this value. Required with `output_classes`.

    Examples:
        >>> TrainingConfig(outcome="Cover_Type", output_classes=("2", "1"), pruning_threshold=0.5).is_extended
        True
        >>> TrainingConfig(outcome="Play").is_extended
        False
    """

    model_config = ConfigDict(frozen=True)

    outcome: str = Field(
        min_length=1,
        description="Name of the outcome attribute to predict.",
    )
    output_classes: tuple[str, ...] | None = Field(
        default=None,
        description=(
            "Ordered bin labels for continuous attributes. Index 0 labels values below the "
            "chosen split point; index 1 labels values at or above it."
        ),
    )
    pruning_threshold: float | None = Field(
        default=None,
        gt=0.0,
        description="Splits whose purity score is not strictly below this value become leaves.",
    )

    @field_validator("output_classes", mode="after")
    @classmethod
    def _validate_output_classes(cls, value: tuple[str, ...] | None) -> tuple[str, ...] | None:
        """Validate that the bin labels are well formed.

        Args:
            value (tuple[str, ...] | None): The labels to validate.

        Returns:
            tuple[str, ...] | None: The validated labels, unchanged.
        """
        if value is not None:
            validate_output_classes(value)
        return value

    @model_validator(mode="after")
    def _validate_pruning_threshold_present(self) -> TrainingConfig:
        """Validate that the extended builder has a pruning threshold.

        Returns:
            TrainingConfig: The validated model instance.

        Raises:
            ValueError: If `output_classes` is set without `pruning_threshold`.
        """
        if self.output_classes is not None and self.pruning_threshold is None:
            raise ValueError("pruning_threshold is required when output_classes is given")
        return self

    @property
    def is_extended(self) -> bool:
        """Return whether the continuous-aware, pre-pruned builder applies."""
        return self.output_classes is not None


def load_training_config(
    *,
    outcome: str,
    output_classes: tuple[str, ...] | list[str] | None,
    pruning_threshold: float | None,
) -> TrainingConfig:
    """Validate training hyperparameters.

    Args:
        outcome (str): Name of the outcome attribute.
        output_classes (tuple[str, ...] | list[str] | None): Ordered bin labels,
            or `None` for the baseline builder.
        pruning_threshold (float | None): Pre-pruning threshold.

    Returns:
        TrainingConfig: The validated configuration.

    Raises:
        InvalidConfigurationError: If any hyperparameter is malformed.
    """
    try:
        return TrainingConfig(
            outcome=outcome,
            output_classes=tuple(output_classes) if output_classes is not None else None,
            pruning_threshold=pruning_threshold,
        )
    except ValidationError as exc:
        first_error = exc.errors()[0]
        location = first_error["loc"]
        parameter = str(location[0]) if location else None
        raise InvalidConfigurationError(
            f"Invalid training configuration: {first_error['msg']}", parameter=parameter
        ) from exc
