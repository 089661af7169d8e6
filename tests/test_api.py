"""End-to-end tests for experiments (NO MOCKS - Real feature extraction and classifiers)."""

import logging

import pytest
from sklearn.dummy import DummyClassifier
from sklearn.naive_bayes import MultinomialNB

from stylometry_api import (
    AnalysisMode,
    CrossValidated,
    Document,
    NotPreparedError,
    Predicted,
    ProblemSet,
    ReportingError,
    StylometryAPI,
    TrainTestKnown,
)
from stylometry_api.core.constants import CLASS_ATTRIBUTE, PREPARATION_STAGES, UNKNOWN_AUTHOR
from stylometry_api.features import feature_columns


def build_api(problem_set, feature_driver, mode=AnalysisMode.CROSS_VALIDATION, classifier='knn', **settings):
    builder = (StylometryAPI.builder()
               .problem_set(problem_set)
               .feature_driver(feature_driver)
               .analysis_mode(mode)
               .num_folds(3))
    if isinstance(classifier, str):
        builder.classifier_name(classifier)
    else:
        builder.classifier(classifier)
    for name, value in settings.items():
        getattr(builder, name)(value)
    return builder.build()


def prepared(api):
    report = api.prepare_instances()
    assert report.succeeded, report.failure
    assert api.prepare_analyzer()
    return api


class TestPreparation:
    """Test prepare_instances and prepare_analyzer."""

    def test_all_stages_complete(self, problem_set_with_unknown, feature_driver):
        api = build_api(problem_set_with_unknown, feature_driver)
        report = api.prepare_instances()

        assert report.succeeded
        assert report.completed == PREPARATION_STAGES
        assert report.failed_stage is None
        assert api.get_training_table() is not None
        assert api.get_testing_table() is not None

    def test_partial_preparation(self, feature_driver, caplog):
        ps = ProblemSet("punctuation")
        ps.add_training_document('alice', Document("a", text="!!! ..."))
        ps.add_training_document('bob', Document("b", text="?? ;;"))

        api = build_api(ps, feature_driver)
        with caplog.at_level(logging.ERROR):
            report = api.prepare_instances()

        assert report.completed == ['extract_events', 'initialize_relevant_events']
        assert report.failed_stage == 'initialize_attributes'
        assert "Failed to prepare instances" in caplog.text
        assert api.get_training_table() is None

    def test_unknown_classifier_name(self, problem_set, feature_driver, caplog):
        api = build_api(problem_set, feature_driver, classifier='not_registered')
        with caplog.at_level(logging.ERROR):
            assert api.prepare_analyzer() is False
        assert api.get_analyzer() is None
        assert "not_registered" in caplog.text

    def test_direct_classifier_needs_no_resolution(self, problem_set, feature_driver):
        api = build_api(problem_set, feature_driver, classifier=DummyClassifier())
        assert api.prepare_analyzer() is True


class TestRunPreconditions:
    """Test that run() refuses to start before preparation."""

    def test_run_before_prepare_instances(self, problem_set, feature_driver):
        api = build_api(problem_set, feature_driver)
        api.prepare_analyzer()
        with pytest.raises(NotPreparedError, match="training table"):
            api.run()

    def test_run_without_analyzer(self, problem_set, feature_driver):
        api = build_api(problem_set, feature_driver)
        api.prepare_instances()
        with pytest.raises(NotPreparedError, match="No analyzer"):
            api.run()

    @pytest.mark.parametrize("mode", [AnalysisMode.TRAIN_TEST_UNKNOWN, AnalysisMode.TRAIN_TEST_KNOWN])
    def test_train_test_without_test_documents(self, mode, problem_set, feature_driver):
        api = prepared(build_api(problem_set, feature_driver, mode=mode))
        with pytest.raises(NotPreparedError, match="testing table"):
            api.run()


class TestCrossValidation:
    """Test CROSS_VALIDATION experiments."""

    def test_dummy_classifier(self, problem_set, feature_driver):
        api = prepared(build_api(problem_set, feature_driver, classifier=DummyClassifier()))
        outcome = api.run()

        assert isinstance(outcome, CrossValidated)
        assert api.get_outcome() is outcome
        evaluation = api.get_evaluation()
        assert evaluation.confusion_matrix.shape == (2, 2)
        assert evaluation.num_instances == 6

        accuracy = float(api.get_classification_accuracy())
        assert 0.0 <= accuracy <= 100.0
        assert api.get_train_test_results() is None

    def test_nearest_neighbour(self, problem_set, feature_driver):
        api = prepared(build_api(problem_set, feature_driver, classifier='knn'))
        api.run()
        # Vocabularies do not overlap much, so every held-out document is attributed correctly
        assert api.get_classification_accuracy() == "100.0000"
        assert "=== Confusion Matrix ===" in api.get_stat_string()

    def test_results_are_reproducible(self, problem_set, feature_driver):
        first = prepared(build_api(problem_set, feature_driver, classifier='nb_frequency')).run()
        second = prepared(build_api(problem_set, feature_driver, classifier='nb_frequency')).run()
        assert first.evaluation.to_dataframe().equals(second.evaluation.to_dataframe())

    def test_too_many_folds_is_logged(self, problem_set, feature_driver, caplog):
        api = prepared(build_api(problem_set, feature_driver, num_folds=10))
        with caplog.at_level(logging.ERROR):
            assert api.run() is None
        assert "Failed to run evaluation" in caplog.text
        assert api.get_outcome() is None


class TestTrainTestUnknown:
    """Test TRAIN_TEST_UNKNOWN experiments."""

    def test_prediction_map(self, problem_set_with_unknown, feature_driver):
        api = prepared(build_api(
            problem_set_with_unknown, feature_driver,
            mode=AnalysisMode.TRAIN_TEST_UNKNOWN, classifier='nb_frequency'
        ))
        outcome = api.run()

        assert isinstance(outcome, Predicted)
        predictions = api.get_train_test_results()
        assert list(predictions) == ['mystery']
        assert set(predictions['mystery']) == {'alice', 'bob'}
        assert max(predictions['mystery'], key=predictions['mystery'].get) == 'alice'

        # No evaluation for unknown authors
        assert api.get_evaluation() is None
        with pytest.raises(ReportingError):
            api.get_classification_accuracy()

    def test_document_ids_follow_testing_table(self, problem_set_with_unknown, feature_driver):
        api = prepared(build_api(
            problem_set_with_unknown, feature_driver, mode=AnalysisMode.TRAIN_TEST_UNKNOWN
        ))
        api.set_testing_table(api.get_testing_table().rename(index={'mystery': 'disputed_essay'}))

        api.run()
        assert list(api.get_train_test_results()) == ['disputed_essay']

    def test_feature_weights_through_analyzer(self, problem_set_with_unknown, feature_driver):
        api = prepared(build_api(
            problem_set_with_unknown, feature_driver,
            mode=AnalysisMode.TRAIN_TEST_UNKNOWN, classifier='nb_frequency'
        ))
        api.run()

        assert isinstance(api.get_underlying_classifier(), MultinomialNB)
        names = feature_columns(api.get_training_table())
        weights = api.get_analyzer().get_feature_weights(names)
        assert set(weights) == {'alice', 'bob', 'overall'}

    def test_rerun_replaces_outcome(self, problem_set_with_unknown, feature_driver):
        api = prepared(build_api(problem_set_with_unknown, feature_driver, mode='train_test_unknown'))
        first = api.run()
        second = api.run()
        assert first is not second
        assert api.get_outcome() is second


class TestTrainTestKnown:
    """Test TRAIN_TEST_KNOWN experiments."""

    def test_evaluation(self, problem_set_with_known_test, feature_driver):
        api = prepared(build_api(
            problem_set_with_known_test, feature_driver, mode=AnalysisMode.TRAIN_TEST_KNOWN
        ))
        outcome = api.run()

        assert isinstance(outcome, TrainTestKnown)
        evaluation = api.get_evaluation()
        assert evaluation.num_instances == 2
        assert evaluation.labels == ['alice', 'bob']
        assert api.get_classification_accuracy() == "100.0000"
        assert api.get_testing_table().columns[-1] == CLASS_ATTRIBUTE

    def test_unknown_label_removed(self, problem_set_with_known_test, feature_driver):
        problem_set = problem_set_with_known_test
        problem_set.add_training_document(UNKNOWN_AUTHOR, Document("stray", text="The cat purred."))
        api = prepared(build_api(problem_set, feature_driver, mode=AnalysisMode.TRAIN_TEST_KNOWN))

        assert UNKNOWN_AUTHOR in api.get_problem_set().labels
        assert api.run() is not None
        assert UNKNOWN_AUTHOR not in api.get_problem_set().labels
        assert 'stray' not in api.get_training_table().index

        # The sentinel stays removed, so running again is fine
        assert isinstance(api.run(), TrainTestKnown)

    def test_only_unknown_test_documents(self, problem_set_with_unknown, feature_driver, caplog):
        api = prepared(build_api(
            problem_set_with_unknown, feature_driver, mode=AnalysisMode.TRAIN_TEST_KNOWN
        ))
        with caplog.at_level(logging.ERROR):
            assert api.run() is None
        assert "No test documents with a known author" in caplog.text


class TestInfoGain:
    """Test info gain through the API."""

    def test_readable_info_gain(self, problem_set, feature_driver):
        api = prepared(build_api(problem_set, feature_driver))
        with pytest.raises(ReportingError):
            api.get_readable_info_gain()

        gain = api.calc_info_gain()
        assert gain is api.get_info_gain()

        text = api.get_readable_info_gain()
        assert text.startswith(">-----InfoGain information: \n\n")
        # Listed attributes are training table columns
        for line in text.splitlines()[2:]:
            assert line[2:52].rstrip() in api.get_training_table().columns

    def test_apply_info_gain_then_run(self, problem_set_with_unknown, feature_driver):
        api = prepared(build_api(
            problem_set_with_unknown, feature_driver, mode=AnalysisMode.TRAIN_TEST_UNKNOWN
        ))
        api.calc_info_gain()
        assert api.apply_info_gain(5)
        assert api.get_training_table().shape[1] == 6
        assert api.get_testing_table().shape[1] == 6
        assert isinstance(api.run(), Predicted)

    def test_apply_before_calc(self, problem_set, feature_driver, caplog):
        api = prepared(build_api(problem_set, feature_driver))
        with caplog.at_level(logging.ERROR):
            assert api.apply_info_gain(5) is False
        assert "Failed to apply info gain" in caplog.text

    def test_calc_before_prepare(self, problem_set, feature_driver):
        api = build_api(problem_set, feature_driver)
        assert api.calc_info_gain() is None


class TestTablesAndExport:
    """Test replacing tables and ARFF export through the API."""

    def test_set_tables(self, problem_set_with_known_test, feature_driver):
        source = prepared(build_api(
            problem_set_with_known_test, feature_driver, mode=AnalysisMode.TRAIN_TEST_KNOWN
        ))
        api = build_api(problem_set_with_known_test, feature_driver,
                        mode=AnalysisMode.TRAIN_TEST_KNOWN)
        api.prepare_analyzer()
        api.set_training_table(source.get_training_table())
        api.set_testing_table(source.get_testing_table())

        assert isinstance(api.run(), TrainTestKnown)

    def test_arff_round_trip(self, tmp_path, problem_set, feature_driver):
        api = prepared(build_api(problem_set, feature_driver))
        path = tmp_path / "train.arff"
        StylometryAPI.write_arff(path, api.get_training_table())

        loaded = StylometryAPI.read_arff(path)
        assert list(loaded.columns) == list(api.get_training_table().columns)
        assert len(loaded) == 6

    def test_plot_confusion_matrix(self, tmp_path, problem_set, feature_driver):
        api = prepared(build_api(problem_set, feature_driver))
        with pytest.raises(ReportingError):
            api.plot_confusion_matrix()

        api.run()
        output = tmp_path / "confusion.pdf"
        fig = api.plot_confusion_matrix(output)
        assert fig is not None
        assert output.exists()
        assert output.stat().st_size > 0
