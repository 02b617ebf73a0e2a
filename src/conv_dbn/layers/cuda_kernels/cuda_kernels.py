"""
Element-wise device functions and the utility kernels shared by the up, down and training passes.

keywords: cuda; gpu; restricted-boltzmann-machine; deep-belief-network; 3d-convolution; bernoulli-sampling

Every kernel in this package is written as a 1-d grid-stride loop over the flattened extent of whatever it writes,
then maps the flat index back onto (depth, width, height) coordinates. Each thread only ever writes the units its
flat indices land on, so there is no cross-thread synchronization inside a kernel.
"""

from numba import cuda
from numba.cuda.random import xoroshiro128p_uniform_float32
from conv_dbn.layers import GLOBAL_DTYPE
import numpy as np
from math import exp


########################################################################################################################
## element-wise device-only functions
########################################################################################################################
@cuda.jit(device=True)
def cuda_device_sigmoid(n:GLOBAL_DTYPE):
    """Accepts a single float for which we compute the logistic output as a float.

    :param n: the weighted sum of the unit's receptive field
    :type n: GLOBAL_DTYPE
    :return: 1/(1+e^-n), rounded to GLOBAL_DTYPE so the caller samples against exactly the stored probability
    :rtype: GLOBAL_DTYPE
    """
    # exp only ever sees a non-positive argument, so it can't overflow for large |n|
    e = exp(-abs(n))
    o = e + 1.
    if n >= 0:
        o = 1./o
    else:
        o = e/o
    return GLOBAL_DTYPE(o)


@cuda.jit(device=True)
def cuda_device_bernoulli(prob:GLOBAL_DTYPE, rng_states, unit_idx:int):
    """Draws one uniform [0,1) value from the unit's own random stream and returns 1. if it is <= prob, else 0."""
    draw = xoroshiro128p_uniform_float32(rng_states, unit_idx)
    return GLOBAL_DTYPE(draw <= prob)


########################################################################################################################
## utility kernels
########################################################################################################################
@cuda.jit(fastmath=True)
def cuda_copy_dhw(src:np.ndarray, dst:np.ndarray):
    strt = cuda.grid(1)
    step = cuda.gridsize(1)
    d_len,w,h = dst.shape
    wh = w*h
    ttote = d_len*wh
    for v in range(strt,ttote,step):
        y = v%h
        x = (v//h)%w
        d = (v//wh)%d_len
        dst[d, x, y] = src[d, x, y]


@cuda.jit
def cuda_uniform_dhw(rng_states, out:np.ndarray):
    """Writes one fresh uniform [0,1) draw per unit of `out`, each taken from that unit's own stream."""
    strt = cuda.grid(1)
    step = cuda.gridsize(1)
    d_len,w,h = out.shape
    ttote = d_len*w*h
    for v in range(strt,ttote,step):
        y = v%h
        x = (v//h)%w
        d = v//(w*h)
        out[d, x, y] = xoroshiro128p_uniform_float32(rng_states, v)
