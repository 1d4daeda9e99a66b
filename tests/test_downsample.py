"""Tests for stride downsampling."""

from __future__ import annotations

import pytest

from emf_analyze.downsample import stride_downsample, stride_for, stride_indices


def test_450_to_200_keeps_every_third():
    data = list(range(450))
    out = stride_downsample(data, 200)
    assert stride_for(450, 200) == 3
    assert len(out) == 150
    assert out[:4] == [0, 3, 6, 9]
    assert out == sorted(out)


def test_small_input_unchanged():
    data = list(range(200))
    assert stride_downsample(data, 200) == data
    assert stride_downsample([], 200) == []


def test_just_over_target():
    out = stride_downsample(list(range(201)), 200)
    assert len(out) == 101
    assert out[0] == 0
    assert out[-1] == 200


def test_idempotent():
    data = list(range(1234))
    once = stride_downsample(data, 200)
    assert stride_downsample(once, 200) == once


def test_indices_match_samples():
    data = [f"s{i}" for i in range(999)]
    assert [data[i] for i in stride_indices(len(data), 200)] == stride_downsample(data, 200)


def test_invalid_target():
    with pytest.raises(ValueError):
        stride_downsample([1, 2, 3], 0)
