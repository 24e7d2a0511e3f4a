"""
Prediction Module
=================

Applies a fitted pipeline to new listings and inspects the results.
"""

import logging
from typing import List, Optional

import pandas as pd
from pyspark.ml import PipelineModel
from pyspark.sql import DataFrame

from .pipeline import apply_pipeline
from .schema import require_columns

logger = logging.getLogger(__name__)

INSPECT_COLUMNS = ["bedrooms", "features", "price", "prediction"]


def predict(pipeline_model: PipelineModel, df: DataFrame) -> DataFrame:
    """
    Run the fitted pipeline over ``df``.

    Args:
        pipeline_model: Fitted PipelineModel
        df: Listings sharing the training input schema

    Returns:
        DataFrame with features and prediction columns appended
    """
    predictions = apply_pipeline(pipeline_model, df)
    logger.info(f"Applied {len(pipeline_model.stages)}-stage pipeline to new listings")
    return predictions


def inspect_predictions(
    predictions: DataFrame,
    columns: Optional[List[str]] = None,
    n: int = 10
) -> pd.DataFrame:
    """
    Collect the first ``n`` rows of the selected columns.

    Args:
        predictions: DataFrame produced by predict
        columns: Columns to keep (defaults to INSPECT_COLUMNS)
        n: Number of rows

    Returns:
        pandas DataFrame with at most ``n`` rows
    """
    columns = columns or INSPECT_COLUMNS
    require_columns(predictions.schema, columns, stage="inspect")
    return predictions.select(*columns).limit(n).toPandas()


def show_predictions(predictions: DataFrame, columns: Optional[List[str]] = None, n: int = 10) -> None:
    """Print the first ``n`` predictions."""
    columns = columns or INSPECT_COLUMNS
    require_columns(predictions.schema, columns, stage="inspect")

    print("\n" + "=" * 50)
    print("PREDICTIONS")
    print("=" * 50)
    predictions.select(*columns).show(n, truncate=False)
    print("=" * 50 + "\n")
