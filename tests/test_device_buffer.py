import numpy as np
import pytest
from conv_dbn.errors import ShapeMismatchError, StaleBufferError
from conv_dbn.layers.device_buffer import DeviceVolume


def test_new_buffer_is_zeroed():
    vol = DeviceVolume((2, 3, 3))
    assert vol.shape == (2, 3, 3)
    assert vol.size == 18
    np.testing.assert_array_equal(vol.to_host(), np.zeros((2, 3, 3), np.float32))


def test_invalidated_buffer_refuses_reads():
    vol = DeviceVolume((1, 2, 2), "scratch")
    vol.invalidate()
    assert vol.is_discarded
    with pytest.raises(StaleBufferError):
        vol.readable()
    with pytest.raises(StaleBufferError):
        vol.to_host()


def test_writable_discards_until_commit():
    vol = DeviceVolume((1, 2, 2))
    vol.writable()
    with pytest.raises(StaleBufferError):
        vol.sync_from_device()
    vol.commit()
    vol.readable()


def test_set_host_replaces_contents(rng):
    vol = DeviceVolume((2, 2, 2))
    values = rng.standard_normal(8).astype(np.float32)
    vol.set_host(values)
    np.testing.assert_array_equal(vol.to_host(), values.reshape(2, 2, 2))
    vol.set_host(np.ones((2, 2, 2)))
    np.testing.assert_array_equal(vol.to_host(), np.ones((2, 2, 2), np.float32))


def test_set_host_rejects_wrong_size():
    vol = DeviceVolume((1, 2, 2))
    with pytest.raises(ShapeMismatchError):
        vol.set_host([1., 2., 3.])
    assert not vol.is_discarded


def test_copy_to_moves_device_contents(rng, small_launch):
    src = DeviceVolume((2, 3, 2), "src")
    dst = DeviceVolume((2, 3, 2), "dst")
    values = rng.random((2, 3, 2)).astype(np.float32)
    src.set_host(values)
    src.copy_to(dst)
    np.testing.assert_array_equal(dst.to_host(), values)


def test_copy_to_rejects_mismatched_shapes():
    with pytest.raises(ShapeMismatchError):
        DeviceVolume((1, 2, 2)).copy_to(DeviceVolume((1, 2, 3)))


def test_copy_from_discarded_buffer_fails():
    src = DeviceVolume((1, 2, 2))
    src.invalidate()
    with pytest.raises(StaleBufferError):
        src.copy_to(DeviceVolume((1, 2, 2)))
