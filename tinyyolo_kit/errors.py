class ShapeMismatch(ValueError):
    """Raw output buffer does not match the declared anchor/class layout."""


class InvalidClassIndex(IndexError):
    """A class index has no entry in the label store (or exceeds num_classes)."""
