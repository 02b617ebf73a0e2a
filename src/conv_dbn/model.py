from conv_dbn.layers import MUTABLE_GLOBALS
from conv_dbn.layers.layer_defs import DataLayer, ConvolveLayer
from conv_dbn.errors import StructuralInconsistencyError
from conv_dbn import root_info_logger, root_error_logger


class DeepModel:
    """An ordered stack of data layers joined by convolve layers, where convolve_layers[i] connects
    data_layers[i] (bottom) to data_layers[i+1] (top).

    Layers are created through the add_* methods and belong to the model; shapes of neighbouring layers are only
    checked when a pass is invoked, for every pair at once.
    """

    def __init__(self, name:str="deep_model") -> None:
        self.name = name
        self._data_layers = []
        self._convolve_layers = []

    @property
    def data_layers(self):
        return tuple(self._data_layers)

    @property
    def convolve_layers(self):
        return tuple(self._convolve_layers)

    def add_data_layer(self, depth:int, width:int, height:int, seed:int=None):
        idx = len(self._data_layers)
        if seed is None:
            seed = MUTABLE_GLOBALS.DEFAULT_SEED + idx
        self._data_layers.append(DataLayer(depth, width, height, seed, name=f"data_{idx}"))

    def add_convolve_layer(self, num_neuron:int, neuron_depth:int, neuron_width:int, neuron_height:int, seed:int):
        idx = len(self._convolve_layers)
        layer = ConvolveLayer(num_neuron, neuron_depth, neuron_width, neuron_height, name=f"convolve_{idx}")
        layer.randomize_params(seed)
        self._convolve_layers.append(layer)

    def _check_structure(self):
        n_data = len(self._data_layers)
        n_conv = len(self._convolve_layers)
        if n_data == 0 or n_data != n_conv+1:
            err = StructuralInconsistencyError(f"{self.name}: {n_data} data layers can't be joined by "
                                               f"{n_conv} convolve layers")
            err.args += n_data, n_conv
            root_error_logger(f"{type(err)}: {err.args}")
            raise err
        # every pair is validated before the first kernel launch so a bad pair never leaves a half finished pass
        for conv, bottom, top in self._layer_triples():
            conv.check_shapes(bottom.shape, top.shape)

    def _layer_triples(self, descending:bool=False):
        idxs = range(len(self._convolve_layers))
        if descending:
            idxs = reversed(idxs)
        for i in idxs:
            yield self._convolve_layers[i], self._data_layers[i], self._data_layers[i+1]

    def pass_up(self, data):
        """Loads `data` into the bottom layer and runs the recognition pass through every layer pair, bottom to top.
        Each top layer ends up holding its activation probabilities and a sampled state."""
        self._check_structure()
        self._data_layers[0].set_data(data)
        for conv, bottom, top in self._layer_triples():
            conv.pass_up(bottom.activations, top.activation_probs, top.activations, top.rng_field)

    def pass_down(self):
        """Runs the generative pass from the top layer's current state down to the bottom layer, filling every
        layer's generated buffers."""
        self._check_structure()
        roof = self._data_layers[-1]
        roof.activations.copy_to(roof.generated)
        for conv, bottom, top in self._layer_triples(descending=True):
            conv.pass_down(top.generated, bottom.generated_probs, bottom.generated, bottom.rng_field)

    def train(self, data, learning_rate:float, persistent:bool=False):
        """One contrastive divergence step on every layer pair.

        After the data-driven pass up, each pair runs a single Gibbs step top -> bottom -> top into the generated
        buffers and then updates its weights. With `persistent`, the chain for each pair starts from the top layer's
        newest memory entry instead of the data-driven sample, and the chain's new top sample is remembered for the
        next call.

        :param data: observed values for the bottom layer
        :type data: sequence of float

        :param learning_rate:
        :type learning_rate: float

        :param persistent: use persistent contrastive divergence
        :type persistent: bool
        """
        self.pass_up(data)
        for conv, bottom, top in self._layer_triples():
            chain_start = top.activations
            if persistent and top.remembered:
                chain_start = top.recall()
            conv.pass_down(chain_start, bottom.generated_probs, bottom.generated, bottom.rng_field)
            conv.pass_up(bottom.generated_probs, top.generated_probs, top.generated, top.rng_field)
            conv.train(bottom, top, learning_rate)
            if persistent:
                top.remember(top.generated)
        root_info_logger(f"{self.name}: trained {len(self._convolve_layers)} convolve layers with "
                         f"{learning_rate=} {persistent=}")

    def __str__(self) -> str:
        layers = [str(l) for l in self._data_layers] + [str(l) for l in self._convolve_layers]
        return f"DeepModel/{self.name}:{{{'; '.join(layers)}}}"
