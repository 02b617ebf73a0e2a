import os

# the kernels run on numba's cuda simulator unless a caller already chose otherwise; this has to happen before
# anything imports numba
os.environ.setdefault("NUMBA_ENABLE_CUDASIM", "1")

import numpy as np
import pytest
from conv_dbn.layers import MUTABLE_GLOBALS


@pytest.fixture
def rng():
    return np.random.default_rng(1234)


@pytest.fixture
def small_launch():
    """Forces several blocks, each striding over more than one unit, so grid-stride bookkeeping gets exercised."""
    tpb, bpg = MUTABLE_GLOBALS.TPB, MUTABLE_GLOBALS.MAX_BPG
    MUTABLE_GLOBALS.TPB, MUTABLE_GLOBALS.MAX_BPG = 4, 2
    yield
    MUTABLE_GLOBALS.TPB, MUTABLE_GLOBALS.MAX_BPG = tpb, bpg
