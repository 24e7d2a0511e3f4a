"""
Data Loader Module
==================

Handles columnar file ingestion, validation, and basic data quality checks.

Functions:
    - load_config: Load YAML configuration file
    - load_data: Read a Parquet/CSV file into a Spark DataFrame
    - validate_data: Check required columns, types and nulls
    - print_data_summary: Show a preview of the listing data
"""

import logging
from pathlib import Path
from typing import Dict, Any, List, Optional, Tuple
from urllib.parse import urlparse

import yaml
from py4j.protocol import Py4JJavaError
from pyspark.errors import PySparkException
from pyspark.sql import DataFrame, SparkSession
from pyspark.sql import functions as F

from .exceptions import DataLoadError, MissingColumnError, NonNumericColumnError
from .schema import is_numeric_field

logger = logging.getLogger(__name__)

SUPPORTED_FORMATS = ("parquet", "csv")

DISPLAY_COLUMNS = [
    "neighbourhood_cleansed",
    "room_type",
    "bedrooms",
    "bathrooms",
    "number_of_reviews",
    "price",
]


def load_config(config_path: str = "config/config.yaml") -> Dict[str, Any]:
    """
    Load configuration from YAML file.

    Args:
        config_path: Path to the configuration file

    Returns:
        Dictionary containing configuration parameters

    Raises:
        FileNotFoundError: If config file doesn't exist
        yaml.YAMLError: If config file is malformed
    """
    config_path = Path(config_path)

    if not config_path.exists():
        raise FileNotFoundError(f"Configuration file not found: {config_path}")

    with open(config_path, 'r') as f:
        config = yaml.safe_load(f) or {}

    logger.info(f"Loaded configuration from {config_path}")
    return config


def _is_local_path(file_path: str) -> bool:
    return urlparse(file_path).scheme in ("", "file")


def load_data(
    spark: SparkSession,
    file_path: str,
    file_format: str = "parquet",
    schema: Optional[str] = None
) -> DataFrame:
    """
    Load a columnar file into a Spark DataFrame.

    Args:
        spark: Active SparkSession used to read the file
        file_path: Path or URI of the file (or directory of part files)
        file_format: 'parquet' (default) or 'csv'
        schema: Optional DDL schema string, e.g. "bedrooms DOUBLE, price DOUBLE".
            When omitted the schema is inferred.

    Returns:
        DataFrame containing the loaded data

    Raises:
        DataLoadError: If the path is unreadable or the format is invalid
    """
    file_format = file_format.lower()
    if file_format not in SUPPORTED_FORMATS:
        raise DataLoadError(
            f"Unsupported format '{file_format}'. Choose from: {', '.join(SUPPORTED_FORMATS)}",
            stage="load"
        )

    if _is_local_path(file_path):
        local_path = Path(urlparse(file_path).path if file_path.startswith("file:") else file_path)
        if not local_path.exists():
            raise DataLoadError(f"Data file not found: {file_path}", stage="load")

    reader = spark.read
    if schema:
        reader = reader.schema(schema)

    try:
        if file_format == "csv":
            df = reader.csv(file_path, header=True, inferSchema=schema is None)
        else:
            df = reader.parquet(file_path)
        n_columns = len(df.columns)
    except (PySparkException, Py4JJavaError) as e:
        raise DataLoadError(f"Could not read {file_format} data from {file_path}: {e}", stage="load") from e

    logger.info(f"Loaded {file_format} data from {file_path}: {n_columns} columns")
    return df


def validate_data(
    df: DataFrame,
    required_columns: List[str],
    numeric_columns: Optional[List[str]] = None,
    strict: bool = True
) -> Tuple[bool, Dict[str, Any]]:
    """
    Validate the listing data before modelling.

    Checks:
        - All required columns are present
        - Feature and label columns are numeric
        - Null counts in the required columns

    Args:
        df: DataFrame to validate
        required_columns: Columns the workflow reads
        numeric_columns: Subset that must be numeric (defaults to required_columns)
        strict: If True, raise on missing or non-numeric columns

    Returns:
        Tuple of (is_valid, validation_report)
    """
    numeric_columns = required_columns if numeric_columns is None else numeric_columns
    schema = df.schema

    report = {
        "column_names": df.columns,
        "missing_columns": [c for c in required_columns if c not in df.columns],
        "non_numeric_columns": [],
        "null_counts": {},
        "issues": []
    }

    # Check 1: Required columns
    if report["missing_columns"]:
        issue = f"Missing required columns: {report['missing_columns']}"
        report["issues"].append(issue)
        logger.warning(issue)
        if strict:
            raise MissingColumnError(issue, stage="validate", column=report["missing_columns"][0])

    present = [c for c in required_columns if c in df.columns]

    # Check 2: Numeric types
    for col in numeric_columns:
        if col in df.columns and not is_numeric_field(schema, col):
            report["non_numeric_columns"].append(col)
    if report["non_numeric_columns"]:
        issue = f"Non-numeric columns found: {report['non_numeric_columns']}"
        report["issues"].append(issue)
        logger.warning(issue)
        if strict:
            raise NonNumericColumnError(issue, stage="validate", column=report["non_numeric_columns"][0])

    # Check 3: Nulls
    if present:
        row = df.select(
            [F.sum(F.col(c).isNull().cast("int")).alias(c) for c in present]
        ).first()
        report["null_counts"] = {c: int(row[c] or 0) for c in present}
        with_nulls = {c: n for c, n in report["null_counts"].items() if n > 0}
        if with_nulls:
            issue = f"Null values found: {with_nulls}"
            report["issues"].append(issue)
            logger.warning(issue)

    is_valid = len(report["issues"]) == 0
    report["is_valid"] = is_valid
    return is_valid, report


def print_data_summary(df: DataFrame, columns: Optional[List[str]] = None, n: int = 5) -> None:
    """
    Print the schema and a preview of the selected columns.

    Args:
        df: DataFrame to summarize
        columns: Columns to preview (defaults to DISPLAY_COLUMNS present in df)
        n: Number of rows to show
    """
    columns = [c for c in (columns or DISPLAY_COLUMNS) if c in df.columns]

    print("\n" + "=" * 60)
    print("DATASET SUMMARY")
    print("=" * 60)
    print(f"Rows: {df.count()} | Columns: {len(df.columns)}")
    print("\nSchema:")
    print("-" * 40)
    for field in df.schema.fields:
        print(f"  {field.name}: {field.dataType.simpleString()}")
    print("\nPreview:")
    print("-" * 40)
    df.select(*columns).show(n, truncate=False)
    print("=" * 60 + "\n")
