"""Shared fixtures: a local Spark session and small listing datasets."""

import matplotlib
matplotlib.use("Agg")

import numpy as np
import pytest

from airbnb_pricing.session import create_spark_session


@pytest.fixture(scope="session")
def spark():
    """Single-core local Spark session shared by the whole test run."""
    session = create_spark_session({
        'spark': {
            'app_name': 'airbnb-pricing-tests',
            'master': 'local[1]',
            'shuffle_partitions': 1,
            'log_level': 'ERROR'
        }
    })
    yield session
    session.stop()


@pytest.fixture
def toy_df(spark):
    """Three listings with an exact least-squares line price = 75*bedrooms + 16.67."""
    return spark.createDataFrame(
        [(1.0, 100.0), (2.0, 150.0), (3.0, 250.0)],
        "bedrooms DOUBLE, price DOUBLE"
    )


@pytest.fixture
def listings_df(spark):
    """One hundred synthetic listings with the columns of the SF Airbnb data."""
    rng = np.random.RandomState(42)
    neighbourhoods = ["Mission", "Nob Hill", "Outer Sunset", "SoMa"]
    room_types = ["Entire home/apt", "Private room"]

    rows = []
    for i in range(100):
        bedrooms = float(rng.randint(0, 6))
        rows.append((
            i,
            neighbourhoods[i % len(neighbourhoods)],
            room_types[i % len(room_types)],
            bedrooms,
            float(rng.randint(1, 4)),
            int(rng.randint(0, 300)),
            float(round(100.0 + 50.0 * bedrooms + rng.normal(0, 10), 2))
        ))

    return spark.createDataFrame(
        rows,
        "id INT, neighbourhood_cleansed STRING, room_type STRING, bedrooms DOUBLE, "
        "bathrooms DOUBLE, number_of_reviews INT, price DOUBLE"
    )
