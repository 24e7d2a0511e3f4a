"""
Pipeline Module
===============

Composes the feature assembler and the regression estimator into a Spark ML
Pipeline and runs the end-to-end workflow:

    Load -> Split -> Assemble(train) -> Fit(train) -> Compose -> Apply(test) -> Evaluate

Functions:
    - resolve_settings: Validate configuration and fill in defaults
    - build_pipeline: Create the unfitted [assembler, estimator] pipeline
    - fit_pipeline: Fit the pipeline on training data
    - apply_pipeline: Apply a fitted pipeline to new data
    - run_workflow: Execute the complete sequential run
"""

import logging
from typing import Dict, Any, Optional

from pyspark.ml import Pipeline, PipelineModel
from pyspark.sql import DataFrame, SparkSession

from .data_loader import load_data, validate_data
from .evaluation import evaluate_predictions
from .exceptions import InvalidArgumentError
from .model import build_estimator, describe_model, train_model
from .preprocessing import FeatureAssembler, HANDLE_INVALID_OPTIONS, prepare_datasets, validate_split_weights

logger = logging.getLogger(__name__)


def resolve_settings(config: Dict[str, Any]) -> Dict[str, Any]:
    """
    Flatten the YAML configuration into the workflow options record.

    Args:
        config: Configuration dictionary (see config/config.yaml)

    Returns:
        Dictionary of workflow settings with defaults filled in

    Raises:
        InvalidArgumentError: If any option is malformed
    """
    data_config = config.get('data', {})
    split_config = config.get('split', {})
    feature_config = config.get('features', {})
    model_config = config.get('model', {})
    output_config = config.get('output', {})

    settings = {
        'data_path': data_config.get('path'),
        'data_format': data_config.get('format') or 'parquet',
        'data_schema': data_config.get('schema'),
        'split_seed': split_config.get('seed', 42),
        'split_weights': split_config.get('weights', [0.8, 0.2]),
        'feature_columns': feature_config.get('input_columns', ['bedrooms']),
        'output_feature_column': feature_config.get('output_column', 'features'),
        'handle_invalid': feature_config.get('handle_invalid', 'error'),
        'label_column': model_config.get('label_column', 'price'),
        'output_prediction_column': model_config.get('prediction_column', 'prediction'),
        'max_iter': model_config.get('max_iter', 100),
        'reg_param': model_config.get('reg_param', 0.0),
        'elastic_net_param': model_config.get('elastic_net_param', 0.0),
        'solver': model_config.get('solver', 'auto'),
        'figures_path': output_config.get('figures_path'),
        'show_rows': output_config.get('show_rows', 10)
    }

    settings['split_weights'] = validate_split_weights(settings['split_weights'], settings['split_seed'])

    feature_columns = settings['feature_columns']
    if isinstance(feature_columns, str):
        feature_columns = [feature_columns]
    if not feature_columns or not all(isinstance(c, str) and c for c in feature_columns):
        raise InvalidArgumentError(
            f"features.input_columns must be a list of column names, got {feature_columns!r}", stage="settings"
        )
    if len(set(feature_columns)) != len(feature_columns):
        raise InvalidArgumentError(f"features.input_columns contains duplicates: {feature_columns}", stage="settings")
    settings['feature_columns'] = list(feature_columns)

    names = {
        'output_feature_column': settings['output_feature_column'],
        'label_column': settings['label_column'],
        'output_prediction_column': settings['output_prediction_column']
    }
    for key, value in names.items():
        if not isinstance(value, str) or not value:
            raise InvalidArgumentError(f"{key} must be a non-empty column name, got {value!r}", stage="settings")
    if len(set(names.values())) != len(names):
        raise InvalidArgumentError(f"Feature, label and prediction columns must differ: {names}", stage="settings")

    if settings['handle_invalid'] not in HANDLE_INVALID_OPTIONS:
        raise InvalidArgumentError(
            f"features.handle_invalid must be one of {HANDLE_INVALID_OPTIONS}, got {settings['handle_invalid']!r}",
            stage="settings"
        )

    return settings


def build_pipeline(settings: Dict[str, Any]) -> Pipeline:
    """
    Create the unfitted pipeline: feature assembler followed by the estimator.

    Args:
        settings: Resolved workflow settings

    Returns:
        Unfitted Pipeline with stages [FeatureAssembler, PriceRegression]
    """
    assembler = FeatureAssembler(
        inputCols=settings['feature_columns'],
        outputCol=settings['output_feature_column'],
        handleInvalid=settings['handle_invalid']
    )
    return Pipeline(stages=[assembler, build_estimator(settings)])


def fit_pipeline(pipeline: Pipeline, train_df: DataFrame) -> PipelineModel:
    """
    Fit every stage in order on the training data.

    Estimators are replaced by their fitted models; the returned PipelineModel
    holds only transformers. The pipeline itself is left unchanged, so fitting
    again produces a new, independent PipelineModel.

    Args:
        pipeline: Unfitted pipeline
        train_df: Raw (unassembled) training data

    Returns:
        Fitted PipelineModel
    """
    pipeline_model = pipeline.fit(train_df)
    logger.info(
        f"Fitted pipeline stages: {[type(stage).__name__ for stage in pipeline_model.stages]}"
    )
    return pipeline_model


def apply_pipeline(pipeline_model: PipelineModel, df: DataFrame) -> DataFrame:
    """
    Apply the fitted pipeline, appending the features and prediction columns.

    Args:
        pipeline_model: Fitted PipelineModel
        df: Data sharing the training input schema

    Returns:
        DataFrame with the original columns plus features and prediction
    """
    return pipeline_model.transform(df)


def run_workflow(
    spark: SparkSession,
    config: Dict[str, Any],
    data_path: Optional[str] = None,
    df: Optional[DataFrame] = None
) -> Dict[str, Any]:
    """
    Execute the complete workflow against an explicit Spark session.

    Each step consumes the previous step's output; the first failure aborts
    the run and propagates to the caller.

    Args:
        spark: Active SparkSession
        config: Configuration dictionary
        data_path: Overrides data.path from the configuration
        df: Already-loaded data; skips the loading step when given

    Returns:
        Dictionary containing every intermediate and final result
    """
    settings = resolve_settings(config)

    # Load
    if df is None:
        path = data_path or settings['data_path']
        if not path:
            raise InvalidArgumentError("No data path configured (data.path)", stage="load")
        df = load_data(spark, path, settings['data_format'], settings['data_schema'])

    required = settings['feature_columns'] + [settings['label_column']]
    _, validation_report = validate_data(df, required, strict=True)

    # Split + assemble the training set
    prepared = prepare_datasets(df, settings)

    # Fit a standalone model on the assembled training set
    model = train_model(prepared['assembled_train'], settings)
    description = describe_model(model, settings['feature_columns'], settings['label_column'])
    logger.info(f"The formula for the linear regression line is {description['formula']}")

    # Compose and apply the pipeline
    pipeline = build_pipeline(settings)
    pipeline_model = fit_pipeline(pipeline, prepared['train'])
    predictions = apply_pipeline(pipeline_model, prepared['test'])

    evaluation = evaluate_predictions(
        predictions,
        label_col=settings['label_column'],
        prediction_col=settings['output_prediction_column'],
        feature_col=settings['feature_columns'][0] if len(settings['feature_columns']) == 1 else None,
        output_dir=settings['figures_path']
    )

    return {
        'settings': settings,
        'validation': validation_report,
        'train': prepared['train'],
        'test': prepared['test'],
        'assembler': prepared['assembler'],
        'assembled_train': prepared['assembled_train'],
        'model': model,
        'model_description': description,
        'pipeline': pipeline,
        'pipeline_model': pipeline_model,
        'predictions': predictions,
        'evaluation': evaluation
    }
