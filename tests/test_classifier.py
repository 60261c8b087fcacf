"""Tests for the monitored-biased weighted k-NN classifier."""

import numpy as np
import pytest
from sklearn.exceptions import NotFittedError

from wa_knn import (
    DegenerateConfigurationError,
    MalformedInputError,
    WeightedKNNClassifier,
    classify,
)


class TestClassify:

    def test_nearest_monitored(self):
        pred = classify([[1, 0], [0, 1]], [[1, 0]], [0, 1], [1, 1], 1)
        np.testing.assert_array_equal(pred, [0.0])

    def test_nearest_non_monitored(self):
        X_train = [[1, 1], [5, 5]]
        pred = classify(X_train, [[5, 4.8]], [0, 1], [1, 1], 1)
        np.testing.assert_array_equal(pred, [1.0])

    def test_any_monitored_neighbor_wins(self):
        X_train = [[1, 1], [1.2, 1], [9, 9]]
        y_train = [1, 1, 0]
        np.testing.assert_array_equal(classify(X_train, [[1, 1]], y_train, [1, 1], 2), [1.0])
        np.testing.assert_array_equal(classify(X_train, [[1, 1]], y_train, [1, 1], 3), [0.0])

    def test_neighbor_num_equal_to_training_size(self):
        X_train = [[1, 1], [2, 2], [3, 3], [50, 50]]
        pred = classify(X_train, [[1, 1], [2, 3]], [1, 1, 1, 0], [1, 1], 4)
        np.testing.assert_array_equal(pred, [0.0, 0.0])
        pred = classify(X_train, [[1, 1]], [1, 1, 1, 2], [1, 1], 4)
        np.testing.assert_array_equal(pred, [1.0])

    def test_weights_change_the_neighbor(self):
        X_train = [[1, 4], [4, 1]]
        y_train = [0, 1]
        test = [[2, 2]]
        # feature 0 dominates: [1, 4] is 1 * 1 + 0.1 * 2 = 1.2 away, [4, 1] is 2.1
        np.testing.assert_array_equal(classify(X_train, test, y_train, [1, 0.1], 1), [0.0])
        np.testing.assert_array_equal(classify(X_train, test, y_train, [0.1, 1], 1), [1.0])

    def test_more_test_points_than_training_points(self):
        X_train = [[1, 0], [0, 1]]
        y_train = np.array([0.0, 1.0])
        X_test = [[1, 0], [0, 1], [2, 0], [0, 3], [1, 0.5]]
        pred = classify(X_train, X_test, y_train, [1, 1], 1)
        assert pred.shape == (5,)
        np.testing.assert_array_equal(y_train, [0.0, 1.0])

    def test_all_zero_test_point_ties_to_first(self):
        pred = classify([[1, 2], [3, 4]], [[0, 0]], [1, 0], [1, 1], 1)
        np.testing.assert_array_equal(pred, [1.0])

    def test_permutation_invariance(self):
        rng = np.random.RandomState(12)
        X_train = rng.uniform(1, 10, size=(30, 4))
        y_train = rng.randint(0, 2, size=30)
        X_test = rng.uniform(1, 10, size=(15, 4))
        weight = rng.uniform(0.5, 1.5, size=4)
        perm = rng.permutation(30)
        for k in (1, 3, 5):
            np.testing.assert_array_equal(
                classify(X_train, X_test, y_train, weight, k),
                classify(X_train[perm], X_test, y_train[perm], weight, k))

    def test_parallel_matches_serial(self):
        rng = np.random.RandomState(2)
        X_train = rng.randint(0, 4, size=(40, 5)).astype(float)
        y_train = rng.randint(0, 2, size=40)
        X_test = rng.randint(0, 4, size=(10, 5)).astype(float)
        weight = rng.uniform(0.5, 1.5, size=5)
        np.testing.assert_array_equal(classify(X_train, X_test, y_train, weight, 3, n_jobs=4),
                                      classify(X_train, X_test, y_train, weight, 3))


class TestWeightedKNNClassifier:

    def test_default_weight_is_uniform(self):
        clf = WeightedKNNClassifier().fit([[1, 0], [0, 1]], [0, 1])
        np.testing.assert_array_equal(clf.weight_, [1.0, 1.0])

    def test_score(self):
        clf = WeightedKNNClassifier(weight=[1, 1]).fit([[1, 1], [8, 8]], [0, 2])
        assert clf.score([[1, 2], [8, 7]], [0, 5]) == 1.0
        assert clf.score([[1, 2], [8, 7]], [3, 0]) == 0.0

    def test_predict_before_fit(self):
        with pytest.raises(NotFittedError):
            WeightedKNNClassifier().predict([[1, 0]])

    @pytest.mark.parametrize("k", [0, 3])
    def test_neighbor_num_out_of_range(self, k):
        with pytest.raises(DegenerateConfigurationError, match="neighbor_num"):
            WeightedKNNClassifier(neighbor_num=k).fit([[1, 0], [0, 1]], [0, 1])

    def test_weight_length_mismatch(self):
        with pytest.raises(MalformedInputError, match="weight has 3 entries"):
            WeightedKNNClassifier(weight=[1, 1, 1]).fit([[1, 0], [0, 1]], [0, 1])

    def test_test_feature_mismatch(self):
        clf = WeightedKNNClassifier().fit([[1, 0], [0, 1]], [0, 1])
        with pytest.raises(MalformedInputError, match="expected 2 features"):
            clf.predict([[1, 0, 1]])

    def test_empty_test_set(self):
        clf = WeightedKNNClassifier().fit([[1, 0], [0, 1]], [0, 1])
        with pytest.raises(DegenerateConfigurationError):
            clf.predict([])

    def test_zero_jobs(self):
        with pytest.raises(MalformedInputError, match="n_jobs"):
            WeightedKNNClassifier(n_jobs=0).fit([[1, 0], [0, 1]], [0, 1])

    def test_string_labels_rejected(self):
        with pytest.raises(MalformedInputError, match="not a numeric vector"):
            classify([[1, 0], [0, 1]], [[1, 0]], ["0", "1"], [1, 1], 1)
