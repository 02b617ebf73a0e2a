class ShapeMismatchError(ValueError):
    """Raised when data, a layer or a kernel does not have the extent the receiving buffer expects."""


class StructuralInconsistencyError(RuntimeError):
    """Raised when a DeepModel's data layers and convolve layers can't be paired up."""


class StaleBufferError(RuntimeError):
    """Raised when a buffer is read after its contents were discarded and before anything rewrote them."""
