import numpy as np
from conv_dbn import launch_cfg

GLOBAL_DTYPE = np.float32

class MUTABLE_GLOBALS:
    TPB = int(launch_cfg["threads_per_block"])
    MAX_BPG = int(launch_cfg["max_blocks_per_grid"])
    MEMORY_SIZE = int(launch_cfg["memory_size"]) # capacity of each DataLayer's memory ring
    DEFAULT_SEED = int(launch_cfg["default_rng_seed"])


def launch_dims(total:int):
    """Returns the (blocks per grid, threads per block) pair for a 1-d, grid-stride kernel covering `total` units."""
    tpb = MUTABLE_GLOBALS.TPB
    bpg = (total + tpb - 1) // tpb
    bpg = max(1, min(bpg, MUTABLE_GLOBALS.MAX_BPG))
    return bpg, tpb
