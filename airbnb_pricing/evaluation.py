"""
Model Evaluation Module
=======================

Provides evaluation metrics and visualizations for the test-set predictions.

Features:
    - RMSE, MAE, R² calculation
    - Actual vs Predicted plot
    - Fitted regression line over the feature
    - Evaluation report printing
"""

import logging
from pathlib import Path
from typing import Dict, Any, List, Optional, Tuple

import numpy as np
import pandas as pd
import matplotlib.pyplot as plt
import seaborn as sns
from pyspark.sql import DataFrame
from sklearn.metrics import mean_squared_error, mean_absolute_error, r2_score

from .schema import require_columns

logger = logging.getLogger(__name__)


def calculate_metrics(y_true: np.ndarray, y_pred: np.ndarray) -> Dict[str, Any]:
    """
    Calculate regression metrics.

    Rows where either value is NaN are left out and counted in 'n_dropped'.

    Args:
        y_true: Ground truth labels
        y_pred: Predicted labels

    Returns:
        Dictionary of metrics; only 'n_samples' and 'n_dropped' when no rows remain
    """
    y_true = np.asarray(y_true, dtype=float)
    y_pred = np.asarray(y_pred, dtype=float)

    valid = ~(np.isnan(y_true) | np.isnan(y_pred))
    n_dropped = int(len(y_true) - valid.sum())
    if n_dropped:
        logger.warning(f"Skipping {n_dropped} rows with a missing label or prediction")
    y_true, y_pred = y_true[valid], y_pred[valid]

    if len(y_true) == 0:
        return {'n_samples': 0, 'n_dropped': n_dropped}

    errors = y_true - y_pred

    return {
        'rmse': float(np.sqrt(mean_squared_error(y_true, y_pred))),
        'mae': float(mean_absolute_error(y_true, y_pred)),
        # R² is undefined for a single sample
        'r2': float(r2_score(y_true, y_pred)) if len(y_true) > 1 else float('nan'),
        'mean_error': float(np.mean(errors)),
        'max_error': float(np.max(np.abs(errors))),
        'n_samples': int(len(y_true)),
        'n_dropped': n_dropped
    }


def plot_actual_vs_predicted(
    y_true: np.ndarray,
    y_pred: np.ndarray,
    label: str = "price",
    figsize: Tuple[int, int] = (8, 6),
    save_path: Optional[str] = None
) -> plt.Figure:
    """
    Create an actual vs predicted scatter plot.

    Args:
        y_true: Ground truth values
        y_pred: Predicted values
        label: Name of the label, used in titles
        figsize: Figure size
        save_path: Path to save the figure

    Returns:
        Matplotlib Figure object
    """
    fig, ax = plt.subplots(figsize=figsize)

    ax.scatter(y_true, y_pred, alpha=0.5, s=20)

    # Perfect prediction line
    min_val = min(np.min(y_true), np.min(y_pred))
    max_val = max(np.max(y_true), np.max(y_pred))
    ax.plot([min_val, max_val], [min_val, max_val], 'r--', linewidth=2, label='Perfect')

    ax.set_xlabel(f'Actual {label}')
    ax.set_ylabel(f'Predicted {label}')
    ax.set_title('Actual vs Predicted', fontsize=12, fontweight='bold')
    ax.legend(loc='upper left', fontsize=8)
    plt.tight_layout()

    if save_path:
        plt.savefig(save_path, dpi=150, bbox_inches='tight')
        logger.info(f"Actual vs Predicted plot saved to {save_path}")

    return fig


def plot_regression_line(
    data: pd.DataFrame,
    feature_col: str,
    label_col: str,
    prediction_col: str,
    figsize: Tuple[int, int] = (8, 6),
    save_path: Optional[str] = None
) -> plt.Figure:
    """
    Plot the observed points and the fitted line over a single feature.

    Args:
        data: Collected rows holding the feature, label and prediction columns
        feature_col: Feature on the x axis
        label_col: Observed label
        prediction_col: Model prediction
        figsize: Figure size
        save_path: Path to save the figure

    Returns:
        Matplotlib Figure object
    """
    fig, ax = plt.subplots(figsize=figsize)

    sns.scatterplot(data=data, x=feature_col, y=label_col, alpha=0.4, ax=ax, label='Observed')
    line = data.sort_values(feature_col)
    ax.plot(line[feature_col], line[prediction_col], 'r-', linewidth=2, label='Fitted')

    ax.set_title(f'{label_col} vs {feature_col}', fontsize=12, fontweight='bold')
    ax.legend(loc='upper left', fontsize=8)
    plt.tight_layout()

    if save_path:
        plt.savefig(save_path, dpi=150, bbox_inches='tight')
        logger.info(f"Regression line plot saved to {save_path}")

    return fig


def evaluate_predictions(
    predictions: DataFrame,
    label_col: str = "price",
    prediction_col: str = "prediction",
    feature_col: Optional[str] = None,
    output_dir: Optional[str] = None
) -> Dict[str, Any]:
    """
    Evaluate a DataFrame of predictions.

    The label and prediction columns are collected to the driver. Rows with a
    null or NaN label or prediction, as produced by handleInvalid='keep', are
    excluded from the metrics and plots.

    Args:
        predictions: Output of the fitted pipeline
        label_col: Observed label column
        prediction_col: Prediction column
        feature_col: Single feature to plot the fitted line against (optional)
        output_dir: Directory for figures; no figures are written when None

    Returns:
        Dictionary with 'metrics' and the list of saved 'figures'
    """
    columns = [label_col, prediction_col] + ([feature_col] if feature_col else [])
    require_columns(predictions.schema, columns, stage="evaluate")

    data = predictions.select(*columns).toPandas()
    # Nulls arrive as NaN in the float columns
    data[[label_col, prediction_col]] = data[[label_col, prediction_col]].astype(float)
    metrics = calculate_metrics(data[label_col].values, data[prediction_col].values)
    figures: List[str] = []

    data = data.dropna(subset=[label_col, prediction_col])

    if output_dir and metrics['n_samples'] > 0:
        output_dir = Path(output_dir)
        output_dir.mkdir(parents=True, exist_ok=True)

        path = str(output_dir / 'actual_vs_predicted.png')
        fig = plot_actual_vs_predicted(
            data[label_col].values, data[prediction_col].values, label=label_col, save_path=path
        )
        plt.close(fig)
        figures.append(path)

        if feature_col:
            path = str(output_dir / 'regression_line.png')
            fig = plot_regression_line(data, feature_col, label_col, prediction_col, save_path=path)
            plt.close(fig)
            figures.append(path)

    logger.info(f"Evaluation metrics: {metrics}")
    return {'metrics': metrics, 'figures': figures}


def print_evaluation_report(metrics: Dict[str, Any]) -> None:
    """
    Print a formatted evaluation report.

    Args:
        metrics: Output of calculate_metrics
    """
    print("\n" + "=" * 50)
    print("EVALUATION REPORT")
    print("=" * 50)
    print(f"Test samples: {metrics['n_samples']}")
    if metrics.get('n_dropped'):
        print(f"Skipped (missing label or prediction): {metrics['n_dropped']}")

    if metrics['n_samples'] == 0:
        print("No test rows to evaluate.")
    else:
        print(f"  - RMSE: {metrics['rmse']:.4f}")
        print(f"  - MAE:  {metrics['mae']:.4f}")
        print(f"  - R²:   {metrics['r2']:.4f}")
        print(f"  - Max absolute error: {metrics['max_error']:.4f}")

    print("=" * 50 + "\n")
