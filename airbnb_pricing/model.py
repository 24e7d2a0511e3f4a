"""
Model Training Module
=====================

Handles linear regression training on assembled feature vectors.

Features:
    - Schema-checked estimator wrapping Spark's LinearRegression
    - Hyperparameter configuration via config file
    - Line formula and training summary reporting
"""

import logging
from datetime import datetime
from typing import Dict, Any, List

from pyspark import keyword_only
from pyspark.ml import Estimator
from pyspark.ml.functions import vector_to_array
from pyspark.ml.param import Param, Params, TypeConverters
from pyspark.ml.param.shared import (
    HasElasticNetParam,
    HasFeaturesCol,
    HasLabelCol,
    HasMaxIter,
    HasPredictionCol,
    HasRegParam,
)
from pyspark.ml.regression import LinearRegression, LinearRegressionModel
from pyspark.sql import DataFrame
from pyspark.sql import functions as F

from .exceptions import InvalidArgumentError
from .schema import require_numeric, require_vector

logger = logging.getLogger(__name__)

SOLVER_OPTIONS = ("auto", "normal", "l-bfgs")


class PriceRegression(
    Estimator,
    HasFeaturesCol,
    HasLabelCol,
    HasPredictionCol,
    HasMaxIter,
    HasRegParam,
    HasElasticNetParam
):
    """
    Linear regression estimator over a vector features column and a numeric label.

    ``fit`` checks the schema, leaves out rows with a null or NaN feature or
    label, and then delegates the optimisation to Spark's LinearRegression,
    returning its LinearRegressionModel. The model appends a
    prediction column computed as ``dot(coefficients, features) + intercept``.
    """

    solver = Param(
        Params._dummy(),
        "solver",
        "Optimization algorithm: 'auto', 'normal' or 'l-bfgs'",
        typeConverter=TypeConverters.toString
    )

    @keyword_only
    def __init__(
        self,
        *,
        featuresCol="features",
        labelCol="price",
        predictionCol="prediction",
        maxIter=100,
        regParam=0.0,
        elasticNetParam=0.0,
        solver="auto"
    ):
        super().__init__()
        self._setDefault(
            featuresCol="features",
            labelCol="price",
            predictionCol="prediction",
            maxIter=100,
            regParam=0.0,
            elasticNetParam=0.0,
            solver="auto"
        )
        kwargs = self._input_kwargs
        self.setParams(**kwargs)

    @keyword_only
    def setParams(
        self,
        *,
        featuresCol="features",
        labelCol="price",
        predictionCol="prediction",
        maxIter=100,
        regParam=0.0,
        elasticNetParam=0.0,
        solver="auto"
    ):
        kwargs = self._input_kwargs
        if kwargs.get("solver", "auto") not in SOLVER_OPTIONS:
            raise InvalidArgumentError(
                f"solver must be one of {SOLVER_OPTIONS}, got {kwargs['solver']!r}",
                stage="PriceRegression"
            )
        return self._set(**kwargs)

    def setFeaturesCol(self, value: str) -> "PriceRegression":
        return self._set(featuresCol=value)

    def setLabelCol(self, value: str) -> "PriceRegression":
        return self._set(labelCol=value)

    def setPredictionCol(self, value: str) -> "PriceRegression":
        return self._set(predictionCol=value)

    def getSolver(self) -> str:
        return self.getOrDefault(self.solver)

    def _fit(self, dataset: DataFrame) -> LinearRegressionModel:
        stage = "PriceRegression"
        features_col = self.getFeaturesCol()
        label_col = self.getLabelCol()

        require_vector(dataset.schema, features_col, stage)
        require_numeric(dataset.schema, [label_col], stage)

        # Rows kept by handleInvalid='keep' carry NaN features and cannot be fit
        usable = dataset.where(
            F.col(label_col).isNotNull()
            & ~F.isnan(F.col(label_col).cast("double"))
            & F.forall(vector_to_array(F.col(features_col)), lambda x: ~F.isnan(x))
        )
        n_total = dataset.count()
        n_usable = usable.count()
        if n_usable == 0:
            raise InvalidArgumentError(
                f"Training set has no usable rows ({n_total} rows before dropping null/NaN values)",
                stage=stage
            )
        if n_usable < n_total:
            logger.warning(f"Dropped {n_total - n_usable} training rows with a null or NaN feature or label")

        lr = LinearRegression(
            featuresCol=features_col,
            labelCol=label_col,
            predictionCol=self.getPredictionCol(),
            maxIter=self.getMaxIter(),
            regParam=self.getRegParam(),
            elasticNetParam=self.getElasticNetParam(),
            solver=self.getSolver()
        )

        start_time = datetime.now()
        model = lr.fit(usable)
        duration = (datetime.now() - start_time).total_seconds()

        logger.info(
            f"Fitted LinearRegression on '{features_col}' -> '{label_col}' in {duration:.2f}s: "
            f"coefficients={model.coefficients.toArray().tolist()}, intercept={model.intercept:.4f}"
        )
        return model


def build_estimator(settings: Dict[str, Any]) -> PriceRegression:
    """
    Create the regression estimator from resolved workflow settings.

    Args:
        settings: Resolved workflow settings (see pipeline.resolve_settings)

    Returns:
        Unfitted PriceRegression
    """
    return PriceRegression(
        featuresCol=settings['output_feature_column'],
        labelCol=settings['label_column'],
        predictionCol=settings['output_prediction_column'],
        maxIter=settings['max_iter'],
        regParam=settings['reg_param'],
        elasticNetParam=settings['elastic_net_param'],
        solver=settings['solver']
    )


def train_model(assembled_train: DataFrame, settings: Dict[str, Any]) -> LinearRegressionModel:
    """
    Fit a linear regression on an already-assembled training set.

    Args:
        assembled_train: Training data holding the features column
        settings: Resolved workflow settings

    Returns:
        Fitted LinearRegressionModel
    """
    logger.info("=" * 60)
    logger.info("STARTING MODEL TRAINING")
    logger.info("=" * 60)
    logger.info(f"Hyperparameters:")
    logger.info(f"  - max_iter: {settings['max_iter']}")
    logger.info(f"  - reg_param: {settings['reg_param']}")
    logger.info(f"  - elastic_net_param: {settings['elastic_net_param']}")
    logger.info(f"  - solver: {settings['solver']}")

    return build_estimator(settings).fit(assembled_train)


def format_line_formula(
    coefficients: List[float],
    intercept: float,
    feature_columns: List[str],
    label_column: str
) -> str:
    """Render the fitted line, e.g. ``price = 75.00*bedrooms + 16.67``."""
    terms = [f"{c:.2f}*{name}" for c, name in zip(coefficients, feature_columns)]
    return f"{label_column} = {' + '.join(terms + [f'{intercept:.2f}'])}"


def describe_model(
    model: LinearRegressionModel,
    feature_columns: List[str],
    label_column: str
) -> Dict[str, Any]:
    """
    Summarize a fitted model.

    Args:
        model: Fitted LinearRegressionModel
        feature_columns: Names of the assembled input columns, in order
        label_column: Name of the label column

    Returns:
        Dictionary with coefficients, intercept, formula and training metrics
    """
    coefficients = [float(c) for c in model.coefficients.toArray()]
    intercept = float(model.intercept)

    description = {
        'coefficients': dict(zip(feature_columns, coefficients)),
        'intercept': intercept,
        'formula': format_line_formula(coefficients, intercept, feature_columns, label_column),
        'num_features': model.numFeatures,
        'training': {}
    }

    if model.hasSummary:
        summary = model.summary
        description['training'] = {
            'rmse': float(summary.rootMeanSquaredError),
            'r2': float(summary.r2),
            'n_samples': int(summary.numInstances)
        }

    return description


def print_model_summary(description: Dict[str, Any]) -> None:
    """
    Print a summary of the trained model.

    Args:
        description: Output of describe_model
    """
    print("\n" + "=" * 50)
    print("MODEL SUMMARY")
    print("=" * 50)
    print(f"Model Type: LinearRegression")
    print(f"Number of input features: {description['num_features']}")
    print(f"\nThe formula for the linear regression line is")
    print(f"  {description['formula']}")

    training = description.get('training')
    if training:
        print(f"\nTraining Info:")
        print(f"  - Samples: {training['n_samples']}")
        print(f"  - RMSE: {training['rmse']:.4f}")
        print(f"  - R²: {training['r2']:.4f}")

    print("=" * 50 + "\n")
