from conv_dbn.layers.cuda_kernels.cuda_kernels import *


########################################################################################################################
## generative (downward) pass kernels
########################################################################################################################
def pass_down_wrapper(tfunc = cuda_device_sigmoid, sampler = cuda_device_bernoulli):
    def pass_down_kernel(top:np.ndarray, weights:np.ndarray,
                         bottom_prob:np.ndarray, bottom_sample:np.ndarray, rng_states):
        """Transposed convolution of the top volume back onto the bottom volume. The mirror image of pass_up_kernel:
        every top unit whose receptive field covers the bottom unit (d,x,y) contributes through the kernel weight that
        links the two.

        In simplest terms::

            bottom_prob[d,x,y]   = tfunc( sum_{n,u,v} weights[n,d,u,v] * top[n,x-u,y-v] )
            bottom_sample[d,x,y] = 1 if draw(d,x,y) <= bottom_prob[d,x,y] else 0

        Offsets where x-u or y-v falls outside the top volume contribute nothing; there is no wrap around.

        NOTE: bottom_prob and bottom_sample are treated as write only; nothing in them is read.
        """
        start = cuda.grid(1)
        step = cuda.gridsize(1)
        d_len,bw,bh = bottom_prob.shape
        n_len,kd,kw,kh = weights.shape
        tw,th = top.shape[1:]
        bwh = bw*bh
        total_out = d_len*bwh
        for v in range(start,total_out,step):
            y = v%bh
            x = (v//bh)%bw
            d = (v//bwh)%d_len
            tmp = 0.
            for n in range(n_len):
                for i in range(kw):
                    tx = x-i
                    if 0<=tx<tw:
                        for j in range(kh):
                            ty = y-j
                            if 0<=ty<th:
                                tmp += weights[n, d, i, j] * top[n, tx, ty]
            prob = tfunc(tmp)
            bottom_prob[d, x, y] = prob
            bottom_sample[d, x, y] = sampler(prob, rng_states, v)

    ret = {"pass_down": pass_down_kernel}
    return ret
