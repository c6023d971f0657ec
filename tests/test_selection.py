"""Tests for index matching and boundary utilities."""

from __future__ import annotations

import numpy as np

from mswavelet import exclude_boundary_indices, find_nearest_index, group_nearby_peaks


class TestFindNearestIndex:
    """Closest-entry lookup."""

    def test_exact_match(self):
        assert find_nearest_index(20, np.array([10, 20, 30])) == 1

    def test_between_values(self):
        assert find_nearest_index(27, np.array([10, 20, 30])) == 2

    def test_tie_resolves_to_first(self):
        assert find_nearest_index(15, np.array([10, 20, 30])) == 0

    def test_unsorted_indices(self):
        assert find_nearest_index(95, np.array([300, 100, 10])) == 1

    def test_empty(self):
        assert find_nearest_index(5, np.array([], dtype=int)) == -1

    def test_single(self):
        assert find_nearest_index(-100, np.array([7])) == 0


class TestExcludeBoundaryIndices:
    """Rejection of indices close to either end."""

    def test_mask(self):
        mask = exclude_boundary_indices(np.array([0, 4, 5, 50, 94, 95, 99]), 100, 5)
        assert mask.tolist() == [False, False, True, True, True, False, False]

    def test_zero_size_keeps_all(self):
        mask = exclude_boundary_indices(np.array([0, 50, 99]), 100, 0)
        assert mask.all()

    def test_negative_size_treated_as_zero(self):
        mask = exclude_boundary_indices(np.array([0, 99]), 100, -3)
        assert mask.all()

    def test_size_larger_than_half(self):
        assert not exclude_boundary_indices(np.arange(10), 10, 6).any()


class TestGroupNearbyPeaks:
    """Assignment of candidates to the closest anchor."""

    def test_basic(self):
        owner = group_nearby_peaks(np.array([100, 400]), np.array([90, 250, 420]), 50)
        assert owner.tolist() == [0, -1, 1]

    def test_window_inclusive(self):
        owner = group_nearby_peaks(np.array([100]), np.array([150, 151]), 50)
        assert owner.tolist() == [0, -1]

    def test_closest_anchor_wins(self):
        owner = group_nearby_peaks(np.array([100, 160]), np.array([135]), 100)
        assert owner.tolist() == [1]

    def test_no_anchors(self):
        owner = group_nearby_peaks(np.array([], dtype=int), np.array([1, 2]), 10)
        assert owner.tolist() == [-1, -1]

    def test_no_candidates(self):
        owner = group_nearby_peaks(np.array([5]), np.array([], dtype=int), 10)
        assert owner.size == 0
