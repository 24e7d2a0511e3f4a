"""
Spark Session
=============

Builds the SparkSession that every stage runs against. The session is returned
to the caller and passed explicitly to the loader and the workflow.
"""

import logging
from typing import Dict, Any

from pyspark.sql import SparkSession

logger = logging.getLogger(__name__)


def create_spark_session(config: Dict[str, Any]) -> SparkSession:
    """
    Create (or reuse) a SparkSession from the ``spark`` config section.

    Args:
        config: Full configuration dictionary

    Returns:
        Active SparkSession
    """
    spark_config = config.get('spark', {})

    app_name = spark_config.get('app_name', 'airbnb-price-regression')
    master = spark_config.get('master', 'local[*]')
    shuffle_partitions = spark_config.get('shuffle_partitions', 8)

    spark = (
        SparkSession.builder
        .appName(app_name)
        .master(master)
        .config("spark.sql.shuffle.partitions", str(shuffle_partitions))
        .config("spark.ui.showConsoleProgress", "false")
        .getOrCreate()
    )

    spark.sparkContext.setLogLevel(spark_config.get('log_level', 'WARN'))

    logger.info(f"Spark session ready: app={app_name}, master={master}, version={spark.version}")
    return spark
