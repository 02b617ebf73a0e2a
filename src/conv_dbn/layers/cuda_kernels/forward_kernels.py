from conv_dbn.layers.cuda_kernels.cuda_kernels import *

########################################################################################################################
## recognition (upward) pass kernels
########################################################################################################################
def pass_up_wrapper(tfunc = cuda_device_sigmoid, sampler = cuda_device_bernoulli):
    def pass_up_kernel(bottom:np.ndarray, weights:np.ndarray,
                       top_prob:np.ndarray, top_sample:np.ndarray, rng_states):
        """Valid (unpadded) convolution of each neuron's kernel against the bottom volume, followed by the transfer
        function and a bernoulli draw per output unit.

        In simplest terms::

            top_prob[n,x,y]   = tfunc( sum_{d,u,v} weights[n,d,u,v] * bottom[d,x+u,y+v] )
            top_sample[n,x,y] = 1 if draw(n,x,y) <= top_prob[n,x,y] else 0

        where::

            bottom      has dims ( D  : W      : H      )
            weights     has dims ( N  : D      : KW     : KH )
            top_prob    has dims ( N  : <=W-KW+1 : <=H-KH+1 )
            top_sample  has dims same as top_prob

        The top unit (n,x,y) is anchored at the top-left corner (0,x,y) of its receptive field in the bottom volume,
        not at its center.

        :param bottom: the layer state being recognized; read only
        :type bottom: np.ndarray[GLOBAL_DTYPE]

        :param weights: one 3d kernel per neuron; read only
        :type weights: np.ndarray[GLOBAL_DTYPE]

        :param top_prob: receives the activation probability of each top unit; write only
        :type top_prob: np.ndarray[GLOBAL_DTYPE]

        :param top_sample: receives the sampled binary state of each top unit; write only
        :type top_sample: np.ndarray[GLOBAL_DTYPE]

        :param rng_states: one xoroshiro128p state per top unit, flattened in (n,x,y) order

        :return: Cuda kernels have no return value; however, the results of the operations done in this function are
                 stored in the top_prob and top_sample arguments.
        :rtype: None
        """
        start = cuda.grid(1)
        step = cuda.gridsize(1)
        n_len,tw,th = top_prob.shape
        kd,kw,kh = weights.shape[1:]
        twh = tw*th
        total_out = n_len*twh
        # by flattening the output, we ensure the most even distribution of work across our threads.
        for v in range(start,total_out,step):
            y = v%th
            x = (v//th)%tw
            n = (v//twh)%n_len
            tmp = 0.
            for d in range(kd):
                for i in range(kw):
                    for j in range(kh):
                        tmp += bottom[d, x+i, y+j] * weights[n, d, i, j]
            prob = tfunc(tmp)
            top_prob[n, x, y] = prob
            top_sample[n, x, y] = sampler(prob, rng_states, v)

    ret = {"pass_up": pass_up_kernel}
    return ret
