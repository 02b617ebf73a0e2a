from conv_dbn.layers.cuda_kernels.cuda_kernels import *

########################################################################################################################
## update kernels
########################################################################################################################
def update_weights_cd_kernel(scale:GLOBAL_DTYPE,
                             bottom_pos:np.ndarray, top_pos:np.ndarray,
                             bottom_neg:np.ndarray, top_neg:np.ndarray,
                             weights:np.ndarray):
    """Updates the layer's weights array conforming to the contrastive divergence rule:
        W_new = W_old + scale * (<bottom_pos * top_pos> - <bottom_neg * top_neg>)

    Because every top position shares the same kernel, the co-activation for weights[n,d,u,v] is summed over all
    top positions (x,y) before it is applied. One thread owns each weight, so no atomics are needed.

    :param scale: the learning rate divided by the number of top positions sharing each weight
    :type scale: GLOBAL_DTYPE
    :param bottom_pos: data driven bottom state
    :type bottom_pos: np.ndarray[GLOBAL_DTYPE]
    :param top_pos: top activation probabilities given bottom_pos
    :type top_pos: np.ndarray[GLOBAL_DTYPE]
    :param bottom_neg: reconstructed bottom state
    :type bottom_neg: np.ndarray[GLOBAL_DTYPE]
    :param top_neg: top activation probabilities given bottom_neg
    :type top_neg: np.ndarray[GLOBAL_DTYPE]
    :param weights: updated in place
    :type weights: np.ndarray[GLOBAL_DTYPE]
    """
    start = cuda.grid(1)
    step = cuda.gridsize(1)
    n_len,kd,kw,kh = weights.shape
    tw,th = top_pos.shape[1:]
    khw = kw*kh
    dkhw = kd*khw
    total = n_len*dkhw
    for v in range(start,total,step):
        kv = v%kh
        ku = (v//kh)%kw
        d = (v//khw)%kd
        n = (v//dkhw)%n_len
        pos = 0.
        neg = 0.
        for x in range(tw):
            for y in range(th):
                pos += bottom_pos[d, x+ku, y+kv] * top_pos[n, x, y]
                neg += bottom_neg[d, x+ku, y+kv] * top_neg[n, x, y]
        tmp = pos - neg
        if tmp!=0:
            weights[n, d, ku, kv] += scale * tmp
