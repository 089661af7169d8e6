#!/usr/bin/env python
"""
Command-line interface for running authorship attribution experiments.
"""

import argparse
import logging
import sys

from stylometry_api.api import AnalysisMode, Builder, Predicted
from stylometry_api.classification.registry import available_classifiers
from stylometry_api.config import load_experiment
from stylometry_api.errors import ConfigurationError, NotPreparedError, ReportingError

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description='Stylometry CLI: run authorship attribution experiments',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s --config experiment.yaml
  %(prog)s -p problem_set.yaml -f features.yaml -c svm --folds 5
  %(prog)s -p problem_set.yaml -f features.yaml -c naive_bayes --mode train_test_unknown
  %(prog)s --list-classifiers
        """
    )

    parser.add_argument('--config', help='Experiment YAML file (command-line options override it)')
    parser.add_argument('--problem-set', '-p', help='Problem set YAML file')
    parser.add_argument('--feature-driver', '-f', help='Feature driver YAML file')
    parser.add_argument('--classifier', '-c', help='Registered classifier name (see --list-classifiers)')
    parser.add_argument(
        '--mode', '-m',
        choices=[mode.value for mode in AnalysisMode],
        help='Analysis mode (default: cross_validation)'
    )
    parser.add_argument('--folds', type=int, help='Cross-validation folds (default: 10)')
    parser.add_argument('--threads', type=int, help='Feature extraction threads (default: 4)')
    parser.add_argument('--doc-titles', action='store_true', help='Add document titles as an attribute')
    parser.add_argument('--dense', action='store_true', help='Build dense instead of sparse feature tables')
    parser.add_argument('--load-contents', action='store_true', help='Read all documents up front')
    parser.add_argument('--info-gain', type=int, metavar='N',
                        help='Keep only the N attributes with the highest info gain')
    parser.add_argument('--show-info-gain', action='store_true',
                        help='Print attributes ranked by info gain')
    parser.add_argument('--stats', action='store_true', help='Print the full evaluation report')
    parser.add_argument('--export-train', metavar='PATH', help='Write the training table as ARFF')
    parser.add_argument('--export-test', metavar='PATH', help='Write the testing table as ARFF')
    parser.add_argument('--plot', metavar='PATH', help='Save a confusion matrix heatmap (PDF)')
    parser.add_argument('--list-classifiers', '-l', action='store_true',
                        help='List registered classifiers')
    parser.add_argument('--verbose', '-v', action='store_true', help='Debug logging')
    return parser


def _configure(args) -> tuple:
    if args.config:
        loaded = load_experiment(args.config)
        builder, info_gain = loaded['builder'], loaded['info_gain']
    else:
        builder, info_gain = Builder(), None

    if args.problem_set:
        builder.problem_set_path(args.problem_set)
    if args.feature_driver:
        builder.feature_driver_path(args.feature_driver)
    if args.classifier:
        builder.classifier_name(args.classifier)
    if args.mode:
        builder.analysis_mode(args.mode)
    if args.folds is not None:
        builder.num_folds(args.folds)
    if args.threads is not None:
        builder.num_threads(args.threads)
    if args.doc_titles:
        builder.use_doc_titles(True)
    if args.dense:
        builder.use_sparse(False)
    if args.load_contents:
        builder.load_doc_contents(True)
    if args.info_gain is not None:
        info_gain = args.info_gain

    return builder, info_gain


def main(argv=None):
    """Main CLI entry point."""
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format='%(asctime)s - %(levelname)s - %(message)s'
    )

    if args.list_classifiers:
        print("\nAvailable classifiers:")
        for name in available_classifiers():
            print(f"  {name}")
        return 0

    try:
        builder, info_gain = _configure(args)
        api = builder.build()
    except ConfigurationError as e:
        print(f"\nERROR: {e}")
        return 1

    report = api.prepare_instances()
    if not report.succeeded:
        print(f"\nERROR: feature preparation stopped at {report.failed_stage}: {report.failure}")
        return 1

    if not api.prepare_analyzer():
        print("\nERROR: could not prepare the analyzer")
        return 1

    if info_gain is not None or args.show_info_gain:
        api.calc_info_gain()
    if args.show_info_gain:
        print(api.get_readable_info_gain())
    if info_gain is not None and not api.apply_info_gain(info_gain):
        return 1

    if args.export_train:
        api.write_arff(args.export_train, api.get_training_table())
    if args.export_test and api.get_testing_table() is not None:
        api.write_arff(args.export_test, api.get_testing_table())

    try:
        outcome = api.run()
    except NotPreparedError as e:
        print(f"\nERROR: {e}")
        return 1

    if outcome is None:
        print("\nERROR: evaluation failed (see log)")
        return 1

    if isinstance(outcome, Predicted):
        print("\nPredictions:")
        for document, scores in outcome.predictions.items():
            best = max(scores, key=scores.get)
            details = ", ".join(f"{author}={score:.4f}" for author, score in sorted(scores.items()))
            print(f"  {document}: {best} ({details})")
        return 0

    print(f"\nAccuracy: {api.get_classification_accuracy()}%")
    if args.stats:
        print(api.get_stat_string())
    if args.plot:
        try:
            api.plot_confusion_matrix(args.plot)
            print(f"Confusion matrix saved to: {args.plot}")
        except ReportingError as e:
            print(f"\nERROR: {e}")
            return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
