#!/usr/bin/env python3
"""
Airbnb Price Regression - Main Pipeline
=======================================

Runs the complete Spark ML workflow on the San Francisco Airbnb listings.

Phases:
    1. Loading - Read the Parquet file and preview it
    2. Preprocessing - Seeded 80/20 split and feature assembly
    3. Training - Linear regression of price on bedrooms
    4. Pipeline - Compose [assembler, regression] and apply it to the test set
    5. Evaluation - Test-set metrics and plots

Usage:
    python main.py
    python main.py --data data/raw/sf-airbnb-clean.parquet
    python main.py --config config/custom.yaml
"""

import argparse
import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import Dict, Any, Optional

from airbnb_pricing.data_loader import load_config, load_data, print_data_summary
from airbnb_pricing.evaluation import print_evaluation_report
from airbnb_pricing.exceptions import InvalidArgumentError
from airbnb_pricing.model import print_model_summary
from airbnb_pricing.pipeline import resolve_settings, run_workflow
from airbnb_pricing.prediction import show_predictions
from airbnb_pricing.preprocessing import print_preprocessing_summary
from airbnb_pricing.session import create_spark_session


def setup_logging(level: str = "INFO") -> None:
    """Configure logging for the pipeline."""
    logging.basicConfig(
        level=getattr(logging, level.upper()),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[
            logging.StreamHandler(sys.stdout),
            logging.FileHandler(f'pipeline_{datetime.now().strftime("%Y%m%d_%H%M%S")}.log')
        ]
    )


def run_full_pipeline(data_path: Optional[str] = None, config_path: str = "config/config.yaml") -> Dict[str, Any]:
    """
    Execute the complete workflow.

    Args:
        data_path: Path to the input file (overrides data.path)
        config_path: Path to configuration file

    Returns:
        Dictionary containing all phase results
    """
    print("\n" + "=" * 70)
    print("AIRBNB PRICE REGRESSION PIPELINE")
    print(f"Started at: {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}")
    print("=" * 70)

    config = load_config(config_path)
    setup_logging(config.get('logging', {}).get('level', 'INFO'))
    settings = resolve_settings(config)
    show_rows = settings['show_rows']

    spark = create_spark_session(config)
    try:
        data_path = data_path or settings['data_path']
        if not data_path:
            raise InvalidArgumentError("No data path given (--data or data.path)", stage="load")

        print("\n📊 Loading data...")
        df = load_data(
            spark,
            data_path,
            settings['data_format'],
            settings['data_schema']
        )
        print_data_summary(df, config.get('data', {}).get('display_columns'))

        results = run_workflow(spark, config, df=df)

        print_preprocessing_summary(results, n=show_rows)
        print_model_summary(results['model_description'])
        show_predictions(
            results['predictions'],
            settings['feature_columns'] + [
                settings['output_feature_column'],
                settings['label_column'],
                settings['output_prediction_column']
            ],
            n=show_rows
        )
        print_evaluation_report(results['evaluation']['metrics'])

        print("\n" + "=" * 70)
        print("PIPELINE COMPLETE")
        print("=" * 70)
        print(f"  • Model: {results['model_description']['formula']}")
        print(f"  • Figures: {results['evaluation']['figures'] or 'none'}")
        print(f"Completed at: {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}")
        print("=" * 70 + "\n")
    finally:
        spark.stop()

    return results


def main():
    """Main entry point with argument parsing."""
    parser = argparse.ArgumentParser(
        description="Linear regression of Airbnb nightly prices with Spark ML",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python main.py
  python main.py --data data/raw/sf-airbnb-clean.parquet
  python main.py --config config/custom.yaml
        """
    )

    parser.add_argument(
        '--data', '-d',
        type=str,
        default=None,
        help='Path to the input file (default: data.path from the config)'
    )

    parser.add_argument(
        '--config', '-c',
        type=str,
        default='config/config.yaml',
        help='Path to configuration file (default: config/config.yaml)'
    )

    args = parser.parse_args()

    if not Path(args.config).exists():
        print(f"Error: Config file not found: {args.config}")
        sys.exit(1)

    try:
        run_full_pipeline(args.data, args.config)
        return 0

    except Exception as e:
        logging.error(f"Pipeline failed: {e}", exc_info=True)
        print(f"\n❌ Pipeline failed: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
