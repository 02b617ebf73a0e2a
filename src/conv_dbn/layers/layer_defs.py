from conv_dbn.layers.cuda_kernels.forward_kernels import *
from conv_dbn.layers.cuda_kernels.generative_kernels import *
from conv_dbn.layers.cuda_kernels.update_kernels import *
from conv_dbn.layers import MUTABLE_GLOBALS, launch_dims
from conv_dbn.layers.device_buffer import DeviceVolume
from conv_dbn.layers.random_field import RandomUnitField
from conv_dbn.errors import ShapeMismatchError
from conv_dbn import root_info_logger, root_error_logger
from collections import deque


def _shape_mismatch(msg:str, expected, received):
    err = ShapeMismatchError(msg)
    err.args += expected, received
    root_error_logger(f"{type(err)}: {err.args}")
    return err


class DataLayer:

    def __init__(self, depth:int, width:int, height:int, seed:int=None, name:str="data") -> None:
        """
        :param depth: number of channels (the neuron count of the convolve layer writing into this layer, if any)
        :type depth: int

        :param width:
        :type width: int

        :param height:
        :type height: int

        :param seed: [OPTIONAL] seed for this layer's random unit field.
        :type seed: int
        """
        self.name = name
        self._shape = (int(depth), int(width), int(height))
        self.activations = DeviceVolume(self._shape, f"{name}.activations")
        self.activation_probs = DeviceVolume(self._shape, f"{name}.activation_probs")
        self.generated = DeviceVolume(self._shape, f"{name}.generated")
        self.generated_probs = DeviceVolume(self._shape, f"{name}.generated_probs")
        self.memory = deque(maxlen=MUTABLE_GLOBALS.MEMORY_SIZE)
        for i in range(MUTABLE_GLOBALS.MEMORY_SIZE):
            slot = DeviceVolume(self._shape, f"{name}.memory")
            slot.invalidate() # nothing has been remembered yet
            self.memory.append(slot)
        self.remembered = 0
        self.rng_field = RandomUnitField(self._shape, seed)

    @property
    def shape(self):
        return self._shape

    @property
    def size(self):
        return self._shape[0]*self._shape[1]*self._shape[2]

    def set_data(self, values):
        """Replaces this layer's activations with `values`, a flat sequence (or any array) of depth*width*height floats.
        The previous contents are discarded before the new values land on the device."""
        values = np.asarray(values, dtype=GLOBAL_DTYPE)
        if values.size != self.size:
            raise _shape_mismatch(f"{self.name} expects {self.size} values, received {values.size}",
                                  self.size, values.size)
        self.activations.set_host(values)

    def remember(self, source:DeviceVolume=None):
        """Copies `source` (the generated buffer by default) over the oldest memory entry, which then becomes the
        newest."""
        if source is None:
            source = self.generated
        # the oldest slot only moves to the newest end once the copy into it has succeeded
        source.copy_to(self.memory[0])
        self.memory.rotate(-1)
        self.remembered = min(self.remembered+1, self.memory.maxlen)

    def recall(self) -> DeviceVolume:
        """Returns the newest memory entry; reading it raises if nothing has been remembered yet."""
        return self.memory[-1]

    def dump_to_host(self):
        """A diagnostic debugging function that snapshots every readable buffer from the gpu and "dumps" the data to
        host (cpu) memory for inspection."""
        keys = ["activations", "activation_probs", "generated", "generated_probs"]
        ret = {k:getattr(self,k).to_host() for k in keys if not getattr(self,k).is_discarded}
        ret["memory"] = [slot.to_host() for slot in self.memory if not slot.is_discarded]
        return ret

    @property
    def layer_type(self):
        return "DataLayer"

    def __str__(self) -> str:
        return f"{self.layer_type}/{self.name}:{{shape:{self._shape}; memory:{self.remembered}/{self.memory.maxlen}}}"

    def __repr__(self) -> str:
        return f"{self.layer_type}/{self.name}:{{shape:{self._shape}; memory:{self.remembered}/{self.memory.maxlen}}}"


class ConvolveLayer:

    def __init__(self, num_neuron:int, neuron_depth:int, neuron_width:int, neuron_height:int,
                 name:str="convolve") -> None:
        """
        :param num_neuron: number of kernels, which is also the depth of the data layer above this one
        :type num_neuron: int

        :param neuron_depth: depth of every kernel, which must match the depth of the data layer below this one
        :type neuron_depth: int

        :param neuron_width: width of each kernel's receptive field
        :type neuron_width: int

        :param neuron_height: height of each kernel's receptive field
        :type neuron_height: int
        """
        self.name = name
        self.W = DeviceVolume((int(num_neuron), int(neuron_depth), int(neuron_width), int(neuron_height)),
                              f"{name}.W")
        self.pass_up_kernel = None
        self.pass_down_kernel = None
        self.update_weights = None
        self._compile_kernels()

    @property
    def neuron_num(self):
        return self.W.shape[0]

    @property
    def neuron_depth(self):
        return self.W.shape[1]

    @property
    def neuron_width(self):
        return self.W.shape[2]

    @property
    def neuron_height(self):
        return self.W.shape[3]

    @property
    def trainable_parameter_count(self):
        return self.W.size

    def _compile_kernels(self):
        self.pass_up_kernel = cuda.jit(func_or_sig=pass_up_wrapper()["pass_up"], fastmath=True)
        self.pass_down_kernel = cuda.jit(func_or_sig=pass_down_wrapper()["pass_down"], fastmath=True)
        self.update_weights = cuda.jit(func_or_sig=update_weights_cd_kernel, fastmath=True)

    def randomize_params(self, seed:int):
        """Draws every weight from a zero-mean, unit-variance normal distribution. The same seed always yields the same
        weights."""
        rng = np.random.default_rng(seed)
        self.W.invalidate()
        self.W.host[...] = rng.standard_normal(self.W.shape, dtype=GLOBAL_DTYPE)
        self.W.sync_to_device()
        root_info_logger(f"{self.name}: randomized {self.trainable_parameter_count} weights with seed {seed}")

    def set_weights(self, values):
        self.W.set_host(values)

    def get_weights(self):
        return self.W.to_host()

    def _check_outputs(self, prob:DeviceVolume, sample:DeviceVolume, rng:RandomUnitField, depth:int, role:str):
        if prob.shape[0] != depth:
            raise _shape_mismatch(f"{self.name}: {role} depth must be {depth}", depth, prob.shape[0])
        if sample.shape != prob.shape:
            raise _shape_mismatch(f"{self.name}: {role} sample and probability extents differ", prob.shape,
                                  sample.shape)
        if rng.shape != prob.shape:
            raise _shape_mismatch(f"{self.name}: random field doesn't match the {role} extent", prob.shape, rng.shape)

    def check_shapes(self, bottom_shape, top_shape):
        """Raises ShapeMismatchError unless a bottom volume of `bottom_shape` and a top volume of `top_shape` can be
        joined by this layer: depths must match the kernels and every top unit's receptive field must fit inside the
        bottom."""
        if top_shape[0] != self.neuron_num:
            raise _shape_mismatch(f"{self.name}: top depth must be {self.neuron_num}", self.neuron_num, top_shape[0])
        if bottom_shape[0] != self.neuron_depth:
            raise _shape_mismatch(f"{self.name}: bottom depth must be {self.neuron_depth}", self.neuron_depth,
                                  bottom_shape[0])
        bw, bh = bottom_shape[1:]
        tw, th = top_shape[1:]
        if tw+self.neuron_width-1 > bw or th+self.neuron_height-1 > bh:
            raise _shape_mismatch(f"{self.name}: top extent reaches past the bottom volume",
                                  (bw-self.neuron_width+1, bh-self.neuron_height+1), (tw, th))

    def pass_up(self, bottom:DeviceVolume, top_prob:DeviceVolume, top_sample:DeviceVolume, rng:RandomUnitField):
        """Recognition pass: convolves every kernel over `bottom`, writing activation probabilities into `top_prob` and
        bernoulli samples of them into `top_sample`. Both outputs are fully overwritten."""
        self._check_outputs(top_prob, top_sample, rng, self.neuron_num, "top")
        self.check_shapes(bottom.shape, top_prob.shape)
        # readonly
        bottom_arr = bottom.readable()
        weights = self.W.readable()
        # writeonly
        prob_arr = top_prob.writable()
        sample_arr = top_sample.writable()
        self.pass_up_kernel[launch_dims(top_prob.size)](bottom_arr, weights, prob_arr, sample_arr, rng.states)
        cuda.synchronize()
        top_prob.commit()
        top_sample.commit()

    def pass_down(self, top:DeviceVolume, bottom_prob:DeviceVolume, bottom_sample:DeviceVolume,
                  rng:RandomUnitField):
        """Generative pass: projects `top` back through the transposed kernels, writing probabilities into
        `bottom_prob` and bernoulli samples of them into `bottom_sample`. Both outputs are fully overwritten."""
        self._check_outputs(bottom_prob, bottom_sample, rng, self.neuron_depth, "bottom")
        self.check_shapes(bottom_prob.shape, top.shape)
        # readonly
        top_arr = top.readable()
        weights = self.W.readable()
        # writeonly
        prob_arr = bottom_prob.writable()
        sample_arr = bottom_sample.writable()
        self.pass_down_kernel[launch_dims(bottom_prob.size)](top_arr, weights, prob_arr, sample_arr, rng.states)
        cuda.synchronize()
        bottom_prob.commit()
        bottom_sample.commit()

    def train(self, bottom:DataLayer, top:DataLayer, learning_rate:float):
        """Applies one contrastive divergence update.

        The positive statistics pair `bottom.activations` with `top.activation_probs`; the negative statistics pair
        `bottom.generated_probs` with `top.generated_probs`. Both phases must already have been computed. Every kernel
        weight is shared by all top positions, so its gradient is summed over them and averaged.
        """
        self.check_shapes(bottom.shape, top.shape)
        tw, th = top.shape[1:]
        scale = GLOBAL_DTYPE(learning_rate/(tw*th))
        args = (bottom.activations.readable(), top.activation_probs.readable(),
                bottom.generated_probs.readable(), top.generated_probs.readable())
        weights = self.W.readable()
        self.update_weights[launch_dims(self.W.size)](scale, *args, weights)
        cuda.synchronize()
        self.W.commit()

    @property
    def layer_type(self):
        return "ConvolveLayer"

    def __str__(self) -> str:
        return f"{self.layer_type}/{self.name}:{{weights shape:{self.W.shape}}}"

    def __repr__(self) -> str:
        return f"{self.layer_type}/{self.name}:{{weights shape:{self.W.shape}}}"
