from numba import cuda
from numba.cuda.random import create_xoroshiro128p_states, init_xoroshiro128p_states
import numpy as np
from conv_dbn import root_info_logger
from conv_dbn.layers import GLOBAL_DTYPE, MUTABLE_GLOBALS, launch_dims
from conv_dbn.layers.cuda_kernels.cuda_kernels import cuda_uniform_dhw


class RandomUnitField:
    """One independent uniform random stream per unit of a 3d volume.

    The streams are xoroshiro128+ generators. Unit i (in flattened depth:width:height order) gets the seed's
    generator advanced by i jumps of 2**64 steps, so no two units ever share state and a kernel thread only ever
    advances the states of the units it writes. The sequence a unit sees depends on the seed and its coordinate,
    never on the order threads happen to run in.
    """

    def __init__(self, shape, seed:int=None) -> None:
        self.shape = tuple(int(s) for s in shape)
        self.size = int(np.prod(self.shape))
        self.seed = MUTABLE_GLOBALS.DEFAULT_SEED if seed is None else int(seed)
        self.states = create_xoroshiro128p_states(self.size, seed=self.seed)

    def reseed(self, seed:int=None):
        """Restarts every unit's stream. Without a seed, the field's current seed is reused."""
        if seed is not None:
            self.seed = int(seed)
        init_xoroshiro128p_states(self.states, self.seed)
        cuda.synchronize()
        root_info_logger(f"reseeded random field {self.shape} with seed {self.seed}")

    def sample(self):
        """Draws one uniform [0,1) value per unit and returns them as a host volume."""
        out = cuda.device_array(self.shape, dtype=GLOBAL_DTYPE)
        cuda_uniform_dhw[launch_dims(self.size)](self.states, out)
        cuda.synchronize()
        return out.copy_to_host()

    def __repr__(self) -> str:
        return f"RandomUnitField:{{shape:{self.shape}; seed:{self.seed}}}"
