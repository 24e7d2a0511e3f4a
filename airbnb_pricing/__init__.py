"""
Airbnb Price Regression
=======================

A Spark ML workflow predicting nightly rental prices of San Francisco Airbnb
listings with linear regression.

Modules:
    - session: SparkSession construction
    - data_loader: Configuration and Parquet/CSV ingestion
    - preprocessing: Seeded train/test split and feature assembly
    - model: Linear regression estimator and model summary
    - pipeline: Pipeline composition and the end-to-end workflow
    - evaluation: Test-set metrics and plots
    - prediction: Applying and inspecting a fitted pipeline
"""

__version__ = "1.0.0"
__author__ = "Predictive Analytics Team"
