"""Plain numpy versions of the layer passes, used as ground truth by the tests."""
import numpy as np


def sigmoid(x):
    return 1. / (1. + np.exp(-x))


def conv_up_sums(bottom, W):
    n_len, kd, kw, kh = W.shape
    _, bw, bh = bottom.shape
    tw, th = bw - kw + 1, bh - kh + 1
    out = np.zeros((n_len, tw, th))
    for n in range(n_len):
        for x in range(tw):
            for y in range(th):
                out[n, x, y] = np.sum(bottom[:, x:x+kw, y:y+kh].astype(np.float64) * W[n])
    return out


def conv_down_sums(top, W, bottom_shape):
    n_len, kd, kw, kh = W.shape
    _, tw, th = top.shape
    out = np.zeros(bottom_shape)
    for n in range(n_len):
        for x in range(tw):
            for y in range(th):
                out[:, x:x+kw, y:y+kh] += W[n].astype(np.float64) * top[n, x, y]
    return out


def cd_delta(bottom_pos, top_pos, bottom_neg, top_neg, kernel_shape, learning_rate):
    n_len, kd, kw, kh = kernel_shape
    _, tw, th = top_pos.shape
    delta = np.zeros(kernel_shape)
    for n in range(n_len):
        for x in range(tw):
            for y in range(th):
                delta[n] += bottom_pos[:, x:x+kw, y:y+kh] * top_pos[n, x, y]
                delta[n] -= bottom_neg[:, x:x+kw, y:y+kh] * top_neg[n, x, y]
    return delta * learning_rate / (tw * th)
