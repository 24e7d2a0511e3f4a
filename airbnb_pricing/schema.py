"""Column presence and type checks shared by the workflow stages."""

from typing import Iterable

from pyspark.ml.linalg import VectorUDT
from pyspark.sql.types import NumericType, StructType

from .exceptions import MissingColumnError, NonNumericColumnError, SchemaError


def is_numeric_field(schema: StructType, column: str) -> bool:
    """Return True if ``column`` holds a numeric Spark type."""
    return isinstance(schema[column].dataType, NumericType)


def is_vector_field(schema: StructType, column: str) -> bool:
    """Return True if ``column`` holds an ML vector."""
    return isinstance(schema[column].dataType, VectorUDT)


def require_columns(schema: StructType, columns: Iterable[str], stage: str) -> None:
    """
    Check that every column exists in the schema.

    Raises:
        MissingColumnError: On the first absent column
    """
    present = set(schema.fieldNames())
    for column in columns:
        if column not in present:
            raise MissingColumnError(
                f"Column '{column}' not found. Available columns: {schema.fieldNames()}",
                stage=stage,
                column=column
            )


def require_numeric(schema: StructType, columns: Iterable[str], stage: str, allow_vectors: bool = False) -> None:
    """
    Check that every column exists and is numeric (or a vector, if allowed).

    Raises:
        MissingColumnError: If a column is absent
        NonNumericColumnError: If a column has a non-numeric type
    """
    columns = list(columns)
    require_columns(schema, columns, stage)
    for column in columns:
        if is_numeric_field(schema, column):
            continue
        if allow_vectors and is_vector_field(schema, column):
            continue
        raise NonNumericColumnError(
            f"Column '{column}' has type {schema[column].dataType.simpleString()}, "
            f"expected a numeric type (no encoding is configured)",
            stage=stage,
            column=column
        )


def require_vector(schema: StructType, column: str, stage: str) -> None:
    """
    Check that ``column`` exists and holds ML vectors.

    Raises:
        MissingColumnError: If the column is absent
        SchemaError: If the column is not a vector column
    """
    require_columns(schema, [column], stage)
    if not is_vector_field(schema, column):
        raise SchemaError(
            f"Column '{column}' has type {schema[column].dataType.simpleString()}, expected vector",
            stage=stage,
            column=column
        )
