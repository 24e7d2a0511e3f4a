"""
Data Preprocessing Module
=========================

Handles the train/test split and feature vector assembly.

Functions:
    - validate_split_weights: Check split proportions and seed
    - split_data: Seeded random train/test split
    - FeatureAssembler: Transformer that concatenates columns into a vector
    - prepare_datasets: Split and assemble in one step
"""

import logging
from numbers import Integral, Real
from typing import Dict, Any, List, Sequence, Tuple

from pyspark import keyword_only
from pyspark.ml import Transformer
from pyspark.ml.feature import VectorAssembler
from pyspark.ml.param import Param, Params, TypeConverters
from pyspark.ml.param.shared import HasInputCols, HasOutputCol
from pyspark.sql import DataFrame

from .exceptions import InvalidArgumentError, SchemaError
from .schema import require_numeric

logger = logging.getLogger(__name__)

WEIGHT_TOLERANCE = 1e-6
HANDLE_INVALID_OPTIONS = ("error", "skip", "keep")


def validate_split_weights(weights: Sequence[float], seed: int) -> List[float]:
    """
    Check that ``weights`` is a (train, test) pair of non-negative proportions
    summing to 1.0 and that ``seed`` is an integer.

    Returns:
        The weights as a list of floats

    Raises:
        InvalidArgumentError: If either argument is malformed
    """
    if isinstance(seed, bool) or not isinstance(seed, Integral):
        raise InvalidArgumentError(f"Split seed must be an integer, got {seed!r}", stage="split")

    if not isinstance(weights, (list, tuple)):
        raise InvalidArgumentError(f"Split weights must be a [train, test] pair, got {weights!r}", stage="split")

    if len(weights) != 2:
        raise InvalidArgumentError(
            f"Split weights must have exactly two entries, got {len(weights)}", stage="split"
        )

    for w in weights:
        if isinstance(w, bool) or not isinstance(w, Real):
            raise InvalidArgumentError(f"Split weight {w!r} is not a number", stage="split")
        if w < 0:
            raise InvalidArgumentError(f"Split weights must be non-negative, got {list(weights)}", stage="split")

    total = float(sum(weights))
    if abs(total - 1.0) > WEIGHT_TOLERANCE:
        raise InvalidArgumentError(f"Split weights must sum to 1.0, got {total}", stage="split")

    return [float(w) for w in weights]


def split_data(
    df: DataFrame,
    weights: Sequence[float] = (0.8, 0.2),
    seed: int = 42,
    log_counts: bool = True
) -> Tuple[DataFrame, DataFrame]:
    """
    Randomly partition rows into train and test sets.

    Each row is assigned independently, so row counts only approximate the
    weights; no rounding to exact counts takes place. The same seed over the
    same source ordering and partitioning yields the same split.

    Args:
        df: Source DataFrame
        weights: (train_fraction, test_fraction), summing to 1.0
        seed: Random seed for reproducibility
        log_counts: Whether to count and log the rows of each side

    Returns:
        Tuple of (train_df, test_df)
    """
    weights = validate_split_weights(weights, seed)

    train_df, test_df = df.randomSplit(weights, seed=int(seed))

    if log_counts:
        logger.info(
            f"There are {train_df.count()} rows in the training set, "
            f"and {test_df.count()} in the test set (weights={weights}, seed={seed})"
        )

    return train_df, test_df


class FeatureAssembler(Transformer, HasInputCols, HasOutputCol):
    """
    Concatenates numeric input columns, in order, into a single vector column.

    Has no learned state: the output depends only on the input rows and the
    configured columns. Column presence and types are checked when
    ``transform`` is called, before any output is produced.
    """

    handleInvalid = Param(
        Params._dummy(),
        "handleInvalid",
        "How to handle null/NaN feature values: 'error', 'skip' or 'keep'",
        typeConverter=TypeConverters.toString
    )

    @keyword_only
    def __init__(self, *, inputCols=None, outputCol="features", handleInvalid="error"):
        super().__init__()
        self._setDefault(outputCol="features", handleInvalid="error")
        kwargs = self._input_kwargs
        self.setParams(**kwargs)

    @keyword_only
    def setParams(self, *, inputCols=None, outputCol="features", handleInvalid="error"):
        kwargs = self._input_kwargs
        if kwargs.get("handleInvalid", "error") not in HANDLE_INVALID_OPTIONS:
            raise InvalidArgumentError(
                f"handleInvalid must be one of {HANDLE_INVALID_OPTIONS}, got {kwargs['handleInvalid']!r}",
                stage="FeatureAssembler"
            )
        return self._set(**kwargs)

    def setInputCols(self, value: List[str]) -> "FeatureAssembler":
        return self._set(inputCols=value)

    def setOutputCol(self, value: str) -> "FeatureAssembler":
        return self._set(outputCol=value)

    def getHandleInvalid(self) -> str:
        return self.getOrDefault(self.handleInvalid)

    def _transform(self, dataset: DataFrame) -> DataFrame:
        stage = "FeatureAssembler"

        if not self.isDefined(self.inputCols) or not self.getInputCols():
            raise InvalidArgumentError("No input columns configured", stage=stage)

        input_cols = self.getInputCols()
        output_col = self.getOutputCol()

        require_numeric(dataset.schema, input_cols, stage, allow_vectors=True)
        if output_col in dataset.columns:
            raise SchemaError(f"Output column '{output_col}' already exists", stage=stage, column=output_col)

        assembler = VectorAssembler(
            inputCols=input_cols,
            outputCol=output_col,
            handleInvalid=self.getHandleInvalid()
        )
        return assembler.transform(dataset)


def prepare_datasets(df: DataFrame, settings: Dict[str, Any]) -> Dict[str, Any]:
    """
    Split the data and assemble the training features.

    Args:
        df: Loaded listing data
        settings: Resolved workflow settings (see pipeline.resolve_settings)

    Returns:
        Dictionary with 'train', 'test', 'assembler' and 'assembled_train'
    """
    train_df, test_df = split_data(df, settings['split_weights'], settings['split_seed'])

    assembler = FeatureAssembler(
        inputCols=settings['feature_columns'],
        outputCol=settings['output_feature_column'],
        handleInvalid=settings['handle_invalid']
    )
    assembled_train = assembler.transform(train_df)

    return {
        'train': train_df,
        'test': test_df,
        'assembler': assembler,
        'assembled_train': assembled_train
    }


def print_preprocessing_summary(result: Dict[str, Any], n: int = 10) -> None:
    """
    Print the split sizes and a sample of the assembled features.

    Args:
        result: Output of prepare_datasets
        n: Number of rows to show
    """
    assembler = result['assembler']
    columns = assembler.getInputCols() + [assembler.getOutputCol()]

    print("\n" + "=" * 50)
    print("PREPROCESSING SUMMARY")
    print("=" * 50)
    print(f"Training rows: {result['train'].count()}")
    print(f"Test rows: {result['test'].count()}")
    print(f"Feature columns: {assembler.getInputCols()} -> '{assembler.getOutputCol()}'")
    result['assembled_train'].select(*columns).show(n)
    print("=" * 50 + "\n")
