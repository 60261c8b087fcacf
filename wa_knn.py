# -*- coding: utf-8 -*-
"""
WA-KNN: Weight-Adjusted K-Nearest Neighbors

A two-class (monitored vs. non-monitored) classifier built on a sparse,
weighted L1 distance. Feature weights are learned with Weight Learning by
Locally Collapsing Classes (WLLCC), then consumed by a k-NN vote that is
biased toward the monitored class.

A feature value of exactly zero means "absent" throughout this module.
"""

import argparse
import json
import logging
import sys
from typing import List

import numpy as np
import pandas as pd
from joblib import Parallel, delayed, effective_n_jobs
from pydantic import BaseModel, ConfigDict, Field, ValidationError
from scipy import sparse
from sklearn.base import BaseEstimator
from sklearn.model_selection import train_test_split
from sklearn.utils import check_random_state
from sklearn.utils.validation import check_array, check_is_fitted

__all__ = [
    'WAKNNError',
    'MalformedInputError',
    'DegenerateConfigurationError',
    'present_features',
    'weighted_l1_distance',
    'distance_row',
    'ClassIndexPartition',
    'WLLCCWeightLearner',
    'learn_weights',
    'WeightedKNNClassifier',
    'classify',
    'FitArgs',
    'PredictProbaArgs',
    'fit',
    'predict_proba',
    'run_wa_knn_classification',
    'main'
]

logger = logging.getLogger(__name__)

MONITORED = 0.0
NON_MONITORED = 1.0


class WAKNNError(Exception):
    """Base class for errors raised by this module."""


class MalformedInputError(WAKNNError, ValueError):
    """Input is structurally invalid: missing fields, ragged or non-numeric data."""


class DegenerateConfigurationError(WAKNNError, ValueError):
    """Input is well-formed but violates a numeric precondition."""


# ---------------------------------------------------------------------------
# Input validation
# ---------------------------------------------------------------------------

def _as_float_array(value, name, kind):
    # Strings and other objects are rejected rather than coerced
    try:
        raw = np.asarray(value)
    except (TypeError, ValueError, OverflowError) as exc:
        raise MalformedInputError(f"{name} is not a numeric {kind}: {exc}") from exc
    if raw.dtype.kind not in 'biuf':
        raise MalformedInputError(
            f"{name} is not a numeric {kind}: found values of dtype {raw.dtype}")
    return raw.astype(np.float64)


def _check_matrix(X, name='X'):
    """
    Convert a dataset to a dense float64 matrix.

    Raises
    ------
    DegenerateConfigurationError
        If the dataset has no rows or its rows have no features.
    MalformedInputError
        If the dataset is ragged, non-numeric, not 2-D, or not finite.
    """
    if sparse.issparse(X):
        X = X.toarray()
    arr = _as_float_array(X, name, 'matrix')

    if arr.ndim == 2 and arr.shape[0] > 0 and arr.shape[1] == 0:
        raise DegenerateConfigurationError(f"{name} has zero-length feature vectors")
    if arr.size == 0:
        raise DegenerateConfigurationError(f"{name} is empty")
    if arr.ndim != 2:
        raise MalformedInputError(f"{name} must be a 2D matrix, got {arr.ndim}D")

    try:
        return check_array(arr, dtype=np.float64)
    except ValueError as exc:
        raise MalformedInputError(f"{name}: {exc}") from exc


def _check_vector(v, name):
    arr = _as_float_array(v, name, 'vector')
    if arr.ndim != 1:
        raise MalformedInputError(f"{name} must be a 1D vector, got {arr.ndim}D")
    if not np.all(np.isfinite(arr)):
        raise MalformedInputError(f"{name} contains NaN or infinity")
    return arr


def _check_n_jobs(n_jobs):
    if n_jobs is None:
        return
    if not isinstance(n_jobs, (int, np.integer)) or isinstance(n_jobs, bool) or n_jobs == 0:
        raise MalformedInputError(
            f"n_jobs must be a non-zero integer or None, got {n_jobs!r}")


def _check_dataset(X, y, x_name='X', y_name='y'):
    X = _check_matrix(X, x_name)
    y = _check_vector(y, y_name)
    if len(y) != X.shape[0]:
        raise MalformedInputError(
            f"{x_name} and {y_name} must have the same number of samples. "
            f"Got {x_name}: {X.shape[0]}, {y_name}: {len(y)}"
        )
    return X, y


def _binarize_labels(y):
    """Map 0 to MONITORED and any non-zero label to NON_MONITORED."""
    return np.where(np.asarray(y) == 0, MONITORED, NON_MONITORED)


# ---------------------------------------------------------------------------
# Weighted L1 distance
# ---------------------------------------------------------------------------

def present_features(p):
    """Return the ascending indices of the non-zero entries of ``p``."""
    return np.flatnonzero(np.asarray(p))


def _block_distances(p_present, X_present, w_present):
    # Columns are already restricted to the reference point's present features;
    # the remaining zeros belong to the compared rows and contribute nothing.
    gaps = w_present * np.abs(X_present - p_present)
    return np.where(X_present != 0, gaps, 0.0).sum(axis=1)


def weighted_l1_distance(p1, p2, weight, present=None):
    """
    Weighted, sparsity-aware L1 distance between two feature vectors.

    Sums ``weight[j] * |p1[j] - p2[j]|`` over ``j`` in ``present`` where
    ``p2[j]`` is non-zero. ``present`` defaults to the present features of
    ``p1``.

    Parameters
    ----------
    p1 : array-like of shape (n_features,)
        Reference vector
    p2 : array-like of shape (n_features,)
        Compared vector
    weight : array-like of shape (n_features,)
        Per-feature weights
    present : array-like of int, optional
        Precomputed present features of ``p1``

    Returns
    -------
    float
        The distance (0.0 when no feature is present)
    """
    p1 = np.asarray(p1, dtype=np.float64)
    p2 = np.asarray(p2, dtype=np.float64)
    weight = np.asarray(weight, dtype=np.float64)
    if present is None:
        present = present_features(p1)
    present = np.asarray(present, dtype=np.intp)
    if len(present) == 0:
        return 0.0
    return float(_block_distances(p1[present], p2[present][np.newaxis, :], weight[present])[0])


def _distance_row(p_present, X_present, w_present, n_jobs=1):
    n_samples = X_present.shape[0]
    if X_present.shape[1] == 0:
        return np.zeros(n_samples)

    n_jobs = min(effective_n_jobs(n_jobs), n_samples)
    if n_jobs <= 1:
        return _block_distances(p_present, X_present, w_present)

    # Each task owns a contiguous, disjoint slice of the row; concatenation
    # in slice order is the join.
    bounds = np.linspace(0, n_samples, n_jobs + 1).astype(int)
    blocks = Parallel(n_jobs=n_jobs, backend='threading')(
        delayed(_block_distances)(p_present, X_present[start:stop], w_present)
        for start, stop in zip(bounds[:-1], bounds[1:])
    )
    return np.concatenate(blocks)


def distance_row(p, X, weight, present=None, n_jobs=1):
    """
    Compute the weighted L1 distance from ``p`` to every row of ``X``.

    Rows are split into contiguous chunks evaluated in parallel when
    ``n_jobs`` is not 1 (threading backend, ``-1`` uses all cores).

    Returns
    -------
    ndarray of shape (n_samples,)
        A freshly allocated distance row
    """
    _check_n_jobs(n_jobs)
    p = np.asarray(p, dtype=np.float64)
    X = np.asarray(X, dtype=np.float64)
    weight = np.asarray(weight, dtype=np.float64)
    if present is None:
        present = present_features(p)
    present = np.asarray(present, dtype=np.intp)
    return _distance_row(p[present], X[:, present], weight[present], n_jobs=n_jobs)


def _nearest(dist, candidates, k):
    """
    Select the ``k`` candidates closest to the reference point.

    Equivalent to extracting the minimum ``k`` times, each time excluding the
    extracted slot, with the lowest index winning ties.

    Returns
    -------
    tuple
        (selected indices, their distances), both ordered by distance
    """
    values = dist[candidates]
    order = np.argsort(values, kind='stable')[:k]
    return candidates[order], values[order]


# ---------------------------------------------------------------------------
# Weight learning
# ---------------------------------------------------------------------------

class ClassIndexPartition:
    """
    Read-only split of training indices into monitored and non-monitored sets.

    Parameters
    ----------
    monitored : array-like of int
        Indices of instances labeled 0
    non_monitored : array-like of int
        Indices of instances with a non-zero label
    """

    def __init__(self, monitored, non_monitored):
        self.monitored = np.array(monitored, dtype=np.intp)
        self.non_monitored = np.array(non_monitored, dtype=np.intp)
        self.monitored.setflags(write=False)
        self.non_monitored.setflags(write=False)

    @classmethod
    def from_labels(cls, y):
        y = np.asarray(y)
        return cls(np.flatnonzero(y == 0), np.flatnonzero(y != 0))

    def split(self, label):
        """Return (same-class indices, other-class indices) for ``label``."""
        if label == 0:
            return self.monitored, self.non_monitored
        return self.non_monitored, self.monitored

    @property
    def min_class_size(self):
        return min(len(self.monitored), len(self.non_monitored))

    def __repr__(self):
        return (f"ClassIndexPartition(monitored={len(self.monitored)}, "
                f"non_monitored={len(self.non_monitored)})")


def _adjust_weights(weight, p, good, bad, point_badness, reco_points_num, proportional):
    """
    Apply one WLLCC weight adjustment in place.

    Features that separate ``p`` from its closest opposite-class points worse
    than the best features do are shrunk; the separating distance lost this way
    is handed back to the best features.

    Parameters
    ----------
    weight : ndarray of shape (n_features,)
        Weights, modified in place
    p : ndarray of shape (n_features,)
        The training point being adjusted for
    good : ndarray of shape (reco_points_num, n_features)
        Closest same-class points
    bad : ndarray of shape (reco_points_num, n_features)
        Closest other-class points
    point_badness : int
        Number of ``bad`` points within the same-class margin
    reco_points_num : int
        Number of recommending points per class
    proportional : bool
        Scale the increase by each weight's size relative to the average

    Returns
    -------
    float
        ``totalfd``, the unweighted distance to ``bad`` over the features
        eligible for the increase. Zero means the increase was skipped.
    """
    p_present = p != 0

    good_mask = (good != 0) & p_present
    good_gap = weight * np.abs(good - p)
    max_good_feat_dist = np.max(np.where(good_mask, good_gap, 0.0), axis=0, initial=0.0)

    bad_mask = (bad != 0) & p_present
    bad_gap = np.abs(bad - p)
    bad_list = np.count_nonzero(bad_mask & (weight * bad_gap <= max_good_feat_dist), axis=0)
    feat_dist = np.where(bad_mask, bad_gap, 0.0).sum(axis=0)

    min_bad = bad_list.min()

    shrink = bad_list != min_bad
    delta = (weight[shrink] * 0.01 * bad_list[shrink] * (0.2 + point_badness)
             / reco_points_num ** 2)
    weight[shrink] -= delta
    c1 = float(np.dot(delta, feat_dist[shrink]))

    grow = (bad_list == min_bad) & (weight > 0)
    total_fd = float(feat_dist[grow].sum())
    if total_fd == 0:
        return total_fd

    if proportional:
        weight_average = weight[grow].sum() / len(weight)
        weight[grow] += (c1 / total_fd) * (weight[grow] / weight_average)
    else:
        weight[grow] += c1 / total_fd
    return total_fd


class WLLCCWeightLearner(BaseEstimator):
    """
    Weight Learning by Locally Collapsing Classes.

    For each training point, repeatedly pulls its closest same-class points
    closer while keeping the total distance to its closest other-class points
    unchanged, by moving weight from poorly separating features to the best
    separating ones.

    Parameters
    ----------
    rounds : int, default=1
        Adjustment rounds per training point
    reco_points_num : int, default=1
        Number of same-class and other-class points recommending each
        adjustment. Must not exceed the size of the smaller class.
    proportional : bool, default=False
        Increase useful weights proportionally to their current value instead
        of by an equal amount
    random_state : int, RandomState instance or None, default=None
        Source for the initial weights, drawn uniformly from [0.5, 1.5).
        The initial values have little effect on the learned weights.
    n_jobs : int, default=1
        Parallel jobs for computing distance rows
    strict : bool, default=False
        Raise instead of skipping a weight increase with no eligible distance
    verbose : bool, default=False
        Print progress

    Attributes
    ----------
    weight_ : ndarray of shape (n_features,)
        Learned feature weights
    partition_ : ClassIndexPartition
        Class split of the training set
    point_badness_ : ndarray of shape (n_samples,)
        Point badness of each training point in its last round
    n_degenerate_updates_ : int
        Adjustments whose weight increase was skipped
    """

    def __init__(self, rounds=1, reco_points_num=1, proportional=False,
                 random_state=None, n_jobs=1, strict=False, verbose=False):
        self.rounds = rounds
        self.reco_points_num = reco_points_num
        self.proportional = proportional
        self.random_state = random_state
        self.n_jobs = n_jobs
        self.strict = strict
        self.verbose = verbose

    def _check_params(self, partition):
        if not isinstance(self.rounds, (int, np.integer)) or isinstance(self.rounds, bool):
            raise MalformedInputError(f"rounds must be an integer, got {self.rounds!r}")
        if not isinstance(self.reco_points_num, (int, np.integer)) or isinstance(self.reco_points_num, bool):
            raise MalformedInputError(
                f"reco_points_num must be an integer, got {self.reco_points_num!r}")
        _check_n_jobs(self.n_jobs)
        if self.rounds < 1:
            raise DegenerateConfigurationError(f"rounds must be at least 1, got {self.rounds}")
        if partition.min_class_size == 0:
            raise DegenerateConfigurationError(
                f"both classes must be present in the training labels, got {partition!r}")
        if not 0 < self.reco_points_num <= partition.min_class_size:
            raise DegenerateConfigurationError(
                f"reco_points_num must be in [1, {partition.min_class_size}] "
                f"for {partition!r}, got {self.reco_points_num}")

    def fit(self, X, y):
        """
        Learn feature weights from labeled training data.

        Parameters
        ----------
        X : array-like or sparse matrix of shape (n_samples, n_features)
            Training feature matrix; zero means the feature is absent
        y : array-like of shape (n_samples,)
            Labels, 0 for monitored and non-zero for non-monitored

        Returns
        -------
        self : object
            Fitted estimator
        """
        X, y = _check_dataset(X, y)
        labels = _binarize_labels(y)
        partition = ClassIndexPartition.from_labels(labels)
        self._check_params(partition)

        n_samples, n_features = X.shape
        k = int(self.reco_points_num)
        rng = check_random_state(self.random_state)
        weight = rng.uniform(0.5, 1.5, size=n_features)

        logger.info("WLLCC: fitting %d samples x %d features, rounds=%d, reco_points_num=%d",
                    n_samples, n_features, self.rounds, k)

        point_badness = np.zeros(n_samples, dtype=np.int64)
        n_degenerate = 0

        for i in range(n_samples):
            p = X[i]
            present = present_features(p)
            X_present = X[:, present]
            same, other = partition.split(labels[i])

            for round_ in range(self.rounds):
                dist = _distance_row(p[present], X_present, weight[present], n_jobs=self.n_jobs)

                # Never pick the point itself unless it is tied with the farthest
                dist[i] = dist.max()

                reco_good, good_dists = _nearest(dist, same, k)
                max_good_dist = max(0.0, float(good_dists.max()))
                reco_bad, bad_dists = _nearest(dist, other, k)
                badness = int(np.count_nonzero(bad_dists <= max_good_dist))
                point_badness[i] = badness

                total_fd = _adjust_weights(weight, p, X[reco_good], X[reco_bad],
                                           badness, k, self.proportional)
                if total_fd == 0:
                    if self.strict:
                        raise DegenerateConfigurationError(
                            f"no separating distance to restore for sample {i} "
                            f"in round {round_}: totalfd is zero")
                    n_degenerate += 1
                    logger.debug("WLLCC: sample %d round %d: totalfd is zero, "
                                 "weight increase skipped", i, round_)

            if self.verbose and (i + 1) % 100 == 0:
                print(f"  {i + 1}/{n_samples} samples")

        if n_degenerate:
            logger.warning("WLLCC: weight increase skipped in %d of %d adjustments "
                           "(no separating distance to restore)",
                           n_degenerate, n_samples * self.rounds)

        self.weight_ = weight
        self.n_features_in_ = n_features
        self.partition_ = partition
        self.point_badness_ = point_badness
        self.n_degenerate_updates_ = n_degenerate
        logger.info("WLLCC: done, weight range [%.4g, %.4g]", weight.min(), weight.max())
        return self

    def get_weights(self):
        """Return the learned weight vector."""
        check_is_fitted(self, 'weight_')
        return self.weight_


def learn_weights(X, y, rounds, reco_points_num, proportional=False,
                  random_state=None, n_jobs=1):
    """Learn a WLLCC weight vector; see :class:`WLLCCWeightLearner`."""
    learner = WLLCCWeightLearner(rounds=rounds, reco_points_num=reco_points_num,
                                 proportional=proportional, random_state=random_state,
                                 n_jobs=n_jobs)
    return learner.fit(X, y).weight_


# ---------------------------------------------------------------------------
# Classification
# ---------------------------------------------------------------------------

class WeightedKNNClassifier(BaseEstimator):
    """
    Weighted k-NN classifier biased toward the monitored class.

    A test point is monitored (0) as soon as any of its ``neighbor_num``
    nearest training points is monitored, and non-monitored (1) otherwise.

    Parameters
    ----------
    neighbor_num : int, default=1
        Number of neighbors, at most the training set size
    weight : array-like of shape (n_features,), optional
        Feature weights, typically from :class:`WLLCCWeightLearner`.
        Defaults to all ones.
    n_jobs : int, default=1
        Parallel jobs for computing distance rows
    """

    def __init__(self, neighbor_num=1, weight=None, n_jobs=1):
        self.neighbor_num = neighbor_num
        self.weight = weight
        self.n_jobs = n_jobs

    def fit(self, X, y):
        """Store the training data and validate the configuration."""
        X, y = _check_dataset(X, y)
        n_samples, n_features = X.shape

        if self.weight is None:
            weight = np.ones(n_features)
        else:
            weight = _check_vector(self.weight, 'weight')
            if len(weight) != n_features:
                raise MalformedInputError(
                    f"Dimension mismatch: weight has {len(weight)} entries, "
                    f"training data has {n_features} features")

        if not isinstance(self.neighbor_num, (int, np.integer)) or isinstance(self.neighbor_num, bool):
            raise MalformedInputError(
                f"neighbor_num must be an integer, got {self.neighbor_num!r}")
        if not 1 <= self.neighbor_num <= n_samples:
            raise DegenerateConfigurationError(
                f"neighbor_num must be in [1, {n_samples}], got {self.neighbor_num}")
        _check_n_jobs(self.n_jobs)

        self.X_train_ = X
        self.y_train_ = y
        self.weight_ = weight
        self.n_features_in_ = n_features
        self._labels = _binarize_labels(y)
        return self

    def predict(self, X):
        """
        Predict monitored (0.0) or non-monitored (1.0) for each test point.

        Returns
        -------
        ndarray of shape (n_test,)
            Predicted labels, indexed by test position
        """
        check_is_fitted(self, 'X_train_')
        X = _check_matrix(X, 'X_test')
        if X.shape[1] != self.n_features_in_:
            raise MalformedInputError(
                f"Dimension mismatch: expected {self.n_features_in_} features, got {X.shape[1]}")

        logger.info("WA-KNN: classifying %d samples against %d, neighbor_num=%d",
                    X.shape[0], self.X_train_.shape[0], self.neighbor_num)

        all_indices = np.arange(self.X_train_.shape[0])
        predictions = np.full(X.shape[0], NON_MONITORED)
        for i, p in enumerate(X):
            dist = distance_row(p, self.X_train_, self.weight_, n_jobs=self.n_jobs)
            neighbors, _ = _nearest(dist, all_indices, self.neighbor_num)
            if np.any(self._labels[neighbors] == MONITORED):
                predictions[i] = MONITORED
        return predictions

    def score(self, X, y):
        """Accuracy of the predictions against binarized labels ``y``."""
        y = _binarize_labels(_check_vector(y, 'y'))
        return float(np.mean(self.predict(X) == y))


def classify(X_train, X_test, y_train, weight, neighbor_num, n_jobs=1):
    """Label ``X_test`` with a weighted k-NN; see :class:`WeightedKNNClassifier`."""
    clf = WeightedKNNClassifier(neighbor_num=neighbor_num, weight=weight, n_jobs=n_jobs)
    return clf.fit(X_train, y_train).predict(X_test)


# ---------------------------------------------------------------------------
# Request records
# ---------------------------------------------------------------------------

class _Record(BaseModel):
    model_config = ConfigDict(strict=True, allow_inf_nan=False,
                              populate_by_name=True, extra='ignore')

    @classmethod
    def from_record(cls, record):
        """Validate a decoded JSON object, raising MalformedInputError on failure."""
        if not isinstance(record, dict):
            raise MalformedInputError(
                f"request must be a JSON object, got {type(record).__name__}")
        try:
            return cls.model_validate(record)
        except (ValidationError, OverflowError) as exc:
            raise MalformedInputError(f"invalid {cls.__name__} request: {exc}") from exc


class FitArgs(_Record):
    """Fit request: labeled training data and WLLCC settings."""

    x_train: List[List[float]] = Field(alias='XTrain')
    y_train: List[float] = Field(alias='YTrain')
    rounds: int = Field(alias='Rounds')
    reco_points_num: int = Field(alias='RecoPointsNum')
    increase_weights_proportionally: bool = Field(default=False,
                                                  alias='IncreaseWeightsProportionally')


class PredictProbaArgs(_Record):
    """PredictProba request: training data, test data and a weight vector."""

    x_train: List[List[float]] = Field(alias='XTrain')
    y_train: List[float] = Field(alias='YTrain')
    x_test: List[List[float]] = Field(alias='XTest')
    weight: List[float] = Field(alias='Weight')
    neighbor_num: int = Field(alias='NeighborNum')


def fit(record, random_state=None, n_jobs=1):
    """Handle a Fit request; returns the learned weights as a list."""
    args = FitArgs.from_record(record)
    weight = learn_weights(args.x_train, args.y_train, args.rounds, args.reco_points_num,
                           proportional=args.increase_weights_proportionally,
                           random_state=random_state, n_jobs=n_jobs)
    return weight.tolist()


def predict_proba(record, n_jobs=1):
    """Handle a PredictProba request; returns one 0.0/1.0 label per test point."""
    args = PredictProbaArgs.from_record(record)
    labels = classify(args.x_train, args.x_test, args.y_train, args.weight,
                      args.neighbor_num, n_jobs=n_jobs)
    return labels.tolist()


# ---------------------------------------------------------------------------
# Evaluation pipeline
# ---------------------------------------------------------------------------

def run_wa_knn_classification(file_path, target_column='label', test_size=0.2,
                              rounds=1, reco_points_num=5, neighbor_num=1,
                              proportional=False, random_state=42, n_jobs=1,
                              verbose=False):
    """
    Run the complete WA-KNN pipeline on a CSV file.

    Parameters
    ----------
    file_path : str
        Path to the CSV data file
    target_column : str, default='label'
        Name of the target column; 0 is monitored, anything else is not
    test_size : float, default=0.2
        Proportion of data to use for testing
    rounds : int, default=1
        WLLCC rounds per training point
    reco_points_num : int, default=5
        WLLCC recommending points per class
    neighbor_num : int, default=1
        Number of neighbors for classification
    proportional : bool, default=False
        Use the proportional weight increase
    random_state : int, default=42
        Seed for the split and the initial weights
    n_jobs : int, default=1
        Parallel jobs for distance rows
    verbose : bool, default=False
        Whether to print per-instance results

    Returns
    -------
    dict
        Accuracy, true/false positive rates, learned weights and details
    """
    print("=" * 60)
    print("WA-KNN Classification")
    print("=" * 60)

    df = pd.read_csv(file_path)
    df = df.dropna()

    X = df.drop(columns=[target_column]).values
    y = _binarize_labels(df[target_column].values)

    print(f"Data shape: {X.shape}")
    print(f"Monitored: {int(np.sum(y == MONITORED))}, "
          f"Non-monitored: {int(np.sum(y == NON_MONITORED))}")

    X_train, X_test, y_train, y_test = train_test_split(
        X, y, test_size=test_size, random_state=random_state, stratify=y
    )
    print(f"Training: {X_train.shape[0]}, Test: {X_test.shape[0]}")

    print("\nLearning weights...")
    learner = WLLCCWeightLearner(rounds=rounds, reco_points_num=reco_points_num,
                                 proportional=proportional, random_state=random_state,
                                 n_jobs=n_jobs, verbose=verbose)
    learner.fit(X_train, y_train)

    print("Classifying...")
    clf = WeightedKNNClassifier(neighbor_num=neighbor_num, weight=learner.weight_,
                                n_jobs=n_jobs)
    predicted = clf.fit(X_train, y_train).predict(X_test)

    results = {'details': {}}
    for idx, (truth, pred) in enumerate(zip(y_test, predicted)):
        is_correct = bool(truth == pred)
        results['details'][idx] = {
            'true': truth,
            'predicted': pred,
            'correct': is_correct
        }
        if verbose:
            print(f"  {idx + 1}/{len(X_test)}: {'ok' if is_correct else 'miss'}")

    monitored = y_test == MONITORED
    correct_count = int(np.sum(predicted == y_test))
    true_positive_rate = (float(np.mean(predicted[monitored] == MONITORED))
                          if monitored.any() else 0.0)
    false_positive_rate = (float(np.mean(predicted[~monitored] == MONITORED))
                           if (~monitored).any() else 0.0)

    results['accuracy'] = correct_count / len(X_test)
    results['true_positive_rate'] = true_positive_rate
    results['false_positive_rate'] = false_positive_rate
    results['correct_count'] = correct_count
    results['total_count'] = len(X_test)
    results['weight'] = learner.weight_

    print(f"\nResults: {correct_count}/{len(X_test)} correct")
    print(f"Accuracy: {results['accuracy']:.4f} ({results['accuracy']*100:.2f}%)")
    print(f"TPR: {true_positive_rate:.4f}, FPR: {false_positive_rate:.4f}")

    return results


# ---------------------------------------------------------------------------
# Command line
# ---------------------------------------------------------------------------

def main(argv=None):
    """Read one JSON request from stdin and write the JSON result to stdout."""
    parser = argparse.ArgumentParser(
        prog='wa-knn',
        description='Learn WLLCC feature weights or classify with a weighted k-NN.')
    mode = parser.add_mutually_exclusive_group(required=True)
    mode.add_argument('--fit', action='store_true',
                      help='Learn weights based on labeled training data.')
    mode.add_argument('--predict-proba', action='store_true',
                      help='Predict testing data class labels using a weight vector.')
    parser.add_argument('--seed', type=int, default=None,
                        help='Seed for the initial weights (--fit only).')
    parser.add_argument('--n-jobs', type=int, default=1,
                        help='Parallel jobs for distance computation.')
    parser.add_argument('--verbose', action='store_true', help='Log debug output.')
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING,
                        stream=sys.stderr,
                        format='%(asctime)s %(name)s %(levelname)s %(message)s')

    try:
        record = json.load(sys.stdin)
    except ValueError as exc:
        print(f"MalformedInputError: invalid JSON: {exc}", file=sys.stderr)
        return 1

    try:
        if args.fit:
            result = fit(record, random_state=args.seed, n_jobs=args.n_jobs)
        else:
            result = predict_proba(record, n_jobs=args.n_jobs)
    except WAKNNError as exc:
        print(f"{type(exc).__name__}: {exc}", file=sys.stderr)
        return 1

    json.dump(result, sys.stdout)
    sys.stdout.write("\n")
    return 0


if __name__ == "__main__":
    sys.exit(main())
