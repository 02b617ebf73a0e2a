import numpy as np
from conv_dbn.layers import MUTABLE_GLOBALS
from conv_dbn.layers.random_field import RandomUnitField


def test_sample_shape_and_range():
    field = RandomUnitField((2, 3, 4), seed=5)
    draws = field.sample()
    assert draws.shape == (2, 3, 4)
    assert draws.dtype == np.float32
    assert np.all(draws >= 0.) and np.all(draws < 1.)


def test_successive_samples_advance_each_stream():
    field = RandomUnitField((1, 3, 3), seed=5)
    first = field.sample()
    second = field.sample()
    assert not np.array_equal(first, second)


def test_units_draw_from_independent_streams():
    draws = RandomUnitField((1, 4, 4), seed=5).sample()
    assert len(np.unique(draws)) > 1


def test_reseed_restarts_every_stream():
    field = RandomUnitField((2, 2, 3), seed=11)
    first = field.sample()
    field.sample()
    field.reseed(11)
    np.testing.assert_array_equal(field.sample(), first)


def test_reseed_without_argument_reuses_current_seed():
    field = RandomUnitField((1, 2, 2), seed=3)
    first = field.sample()
    field.reseed()
    np.testing.assert_array_equal(field.sample(), first)


def test_same_seed_same_streams_different_seed_different_streams():
    a = RandomUnitField((1, 3, 3), seed=21).sample()
    b = RandomUnitField((1, 3, 3), seed=21).sample()
    c = RandomUnitField((1, 3, 3), seed=22).sample()
    np.testing.assert_array_equal(a, b)
    assert not np.array_equal(a, c)


def test_launch_shape_does_not_change_the_draws():
    wide = RandomUnitField((2, 3, 3), seed=8).sample()
    tpb, bpg = MUTABLE_GLOBALS.TPB, MUTABLE_GLOBALS.MAX_BPG
    # one block of two threads, each striding over nine units
    MUTABLE_GLOBALS.TPB, MUTABLE_GLOBALS.MAX_BPG = 2, 1
    try:
        narrow = RandomUnitField((2, 3, 3), seed=8).sample()
    finally:
        MUTABLE_GLOBALS.TPB, MUTABLE_GLOBALS.MAX_BPG = tpb, bpg
    np.testing.assert_array_equal(wide, narrow)
