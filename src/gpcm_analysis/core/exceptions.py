"""
Exceptions raised by item response models.

Both kinds are precondition violations on the caller's side. They are never
retried inside the models; estimation and equating drivers report them as
configuration errors.
"""


class InvalidParameterShapeError(ValueError):
    """A parameter array does not fit the item's fixed category count."""


class UnsupportedParameterError(NotImplementedError):
    """
    A parameter family that the item model does not have.

    Attributes:
        model_type: Name of the item model family.
        parameter: Name of the requested parameter.
    """

    def __init__(self, model_type: str, parameter: str) -> None:
        self.model_type = model_type
        self.parameter = parameter
        super().__init__(
            f"Parameter '{parameter}' is not applicable to {model_type} items"
        )
