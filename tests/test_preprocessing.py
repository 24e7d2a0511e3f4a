"""
Test Suite for Preprocessing Module
=====================================

Tests for the seeded train/test split and the FeatureAssembler transformer.
"""

import pytest

from airbnb_pricing.exceptions import (
    InvalidArgumentError,
    MissingColumnError,
    NonNumericColumnError,
    SchemaError,
)
from airbnb_pricing.preprocessing import (
    FeatureAssembler,
    prepare_datasets,
    split_data,
    validate_split_weights,
)


def _ids(df):
    return sorted(row['id'] for row in df.select('id').collect())


class TestSplitWeights:
    """Tests for split argument validation."""

    def test_valid_weights(self):
        """Test accepted weights and seeds."""
        assert validate_split_weights([0.8, 0.2], 42) == [0.8, 0.2]
        assert validate_split_weights((1, 0), 0) == [1.0, 0.0]

    @pytest.mark.parametrize("weights", [
        [0.5, 0.6],
        [-0.2, 1.2],
        [1.0],
        [0.3, 0.3, 0.4],
        "ab",
        [0.5, "0.5"],
    ])
    def test_invalid_weights(self, weights):
        """Test rejection of malformed weights."""
        with pytest.raises(InvalidArgumentError):
            validate_split_weights(weights, 42)

    @pytest.mark.parametrize("seed", ["42", 4.2, True, None])
    def test_invalid_seed(self, seed):
        """Test rejection of non-integer seeds."""
        with pytest.raises(InvalidArgumentError):
            validate_split_weights([0.8, 0.2], seed)

    def test_invalid_argument_is_value_error(self):
        """Test that InvalidArgumentError is a ValueError."""
        with pytest.raises(ValueError, match="sum to 1.0"):
            validate_split_weights([0.7, 0.2], 42)


class TestSplitData:
    """Tests for split_data."""

    @pytest.mark.parametrize("seed", [1, 7, 42])
    def test_partition_is_complete_and_disjoint(self, listings_df, seed):
        """Test every row lands in exactly one side."""
        train_df, test_df = split_data(listings_df, [0.8, 0.2], seed)
        train_ids, test_ids = _ids(train_df), _ids(test_df)

        assert not set(train_ids) & set(test_ids)
        assert sorted(train_ids + test_ids) == list(range(100))

    @pytest.mark.parametrize("seed", [1, 7, 42])
    def test_same_seed_same_split(self, listings_df, seed):
        """Test the split is reproducible for a seed."""
        first_train, first_test = split_data(listings_df, [0.8, 0.2], seed)
        second_train, second_test = split_data(listings_df, [0.8, 0.2], seed)

        assert _ids(first_train) == _ids(second_train)
        assert _ids(first_test) == _ids(second_test)

    def test_counts_are_approximate(self, listings_df):
        """Test split sizes roughly follow the weights."""
        # Rows are assigned independently: counts follow the weights only roughly
        train_df, test_df = split_data(listings_df, [0.8, 0.2], 42)

        assert train_df.count() + test_df.count() == 100
        assert 60 <= train_df.count() <= 95

    def test_all_rows_to_train(self, toy_df):
        """Test weights [1.0, 0.0] leave the test set empty."""
        train_df, test_df = split_data(toy_df, [1.0, 0.0], 42)

        assert train_df.count() == 3
        assert test_df.count() == 0

    def test_invalid_weights_raise(self, toy_df):
        """Test split_data validates its weights."""
        with pytest.raises(InvalidArgumentError):
            split_data(toy_df, [0.9, 0.2], 42)


class TestFeatureAssembler:
    """Tests for the FeatureAssembler transformer."""

    @pytest.fixture
    def assembler(self):
        """Create a bedrooms assembler."""
        return FeatureAssembler(inputCols=["bedrooms"], outputCol="features")

    def test_init(self, assembler):
        """Test assembler initialization."""
        assert assembler.getInputCols() == ["bedrooms"]
        assert assembler.getOutputCol() == "features"
        assert assembler.getHandleInvalid() == "error"

    def test_single_column_vector(self, assembler, listings_df):
        """Test assembling a single column."""
        result = assembler.transform(listings_df)

        for row in result.select("bedrooms", "features").collect():
            assert row["features"].toArray().tolist() == [row["bedrooms"]]

    def test_keeps_input_columns(self, assembler, listings_df):
        """Test that input columns and rows are kept."""
        result = assembler.transform(listings_df)

        assert result.columns == listings_df.columns + ["features"]
        assert result.count() == listings_df.count()

    def test_column_order(self, listings_df):
        """Test vector entries follow the input column order."""
        assembler = FeatureAssembler(inputCols=["bathrooms", "bedrooms"], outputCol="features")
        row = assembler.transform(listings_df).select("bedrooms", "bathrooms", "features").first()

        assert row["features"].toArray().tolist() == [row["bathrooms"], row["bedrooms"]]

    def test_integer_column_accepted(self, listings_df):
        """Test assembling an integer column."""
        assembler = FeatureAssembler(inputCols=["number_of_reviews"])
        row = assembler.transform(listings_df).select("number_of_reviews", "features").first()

        assert row["features"][0] == float(row["number_of_reviews"])

    def test_same_input_same_output(self, assembler, listings_df):
        """Test the assembler is deterministic."""
        first = assembler.transform(listings_df).orderBy("id").select("features").collect()
        second = assembler.transform(listings_df).orderBy("id").select("features").collect()

        assert first == second

    def test_missing_column(self, assembler, spark):
        """Test assembling a missing column."""
        df = spark.createDataFrame([(100.0,)], "price DOUBLE")

        with pytest.raises(MissingColumnError, match="bedrooms") as excinfo:
            assembler.transform(df)
        assert excinfo.value.column == "bedrooms"
        assert excinfo.value.stage == "FeatureAssembler"

    def test_non_numeric_column(self, assembler, spark):
        """Test assembling a string column."""
        df = spark.createDataFrame([("two", 100.0)], "bedrooms STRING, price DOUBLE")

        with pytest.raises(NonNumericColumnError):
            assembler.transform(df)
        with pytest.raises(TypeError):
            assembler.transform(df)

    def test_existing_output_column(self, assembler, listings_df):
        """Test assembling into an existing column."""
        assembled = assembler.transform(listings_df)

        with pytest.raises(SchemaError, match="already exists"):
            assembler.transform(assembled)

    def test_handle_invalid_skip(self, spark):
        """Test that handleInvalid='skip' drops null rows."""
        df = spark.createDataFrame([(1.0, 100.0), (None, 120.0)], "bedrooms DOUBLE, price DOUBLE")
        assembler = FeatureAssembler(inputCols=["bedrooms"], handleInvalid="skip")

        assert assembler.transform(df).count() == 1

    def test_invalid_handle_invalid(self):
        """Test rejection of unknown handleInvalid values."""
        with pytest.raises(InvalidArgumentError):
            FeatureAssembler(inputCols=["bedrooms"], handleInvalid="drop")

    def test_no_input_columns(self, listings_df):
        """Test transforming without input columns."""
        with pytest.raises(InvalidArgumentError):
            FeatureAssembler().transform(listings_df)


class TestPrepareDatasets:
    """Tests for the prepare_datasets function."""

    def test_returns_expected_keys(self, listings_df):
        """Test the prepare_datasets result."""
        settings = {
            'split_weights': [0.8, 0.2],
            'split_seed': 42,
            'feature_columns': ['bedrooms'],
            'output_feature_column': 'features',
            'handle_invalid': 'error'
        }
        result = prepare_datasets(listings_df, settings)

        for key in ['train', 'test', 'assembler', 'assembled_train']:
            assert key in result, f"Missing key: {key}"
        assert 'features' in result['assembled_train'].columns
        assert 'features' not in result['test'].columns
        assert result['assembled_train'].count() == result['train'].count()
