class GradingError(Exception):
    """Base class for failures inside the grading pipeline"""


class ConversionError(GradingError):
    """The uploaded document could not be rasterized"""


class InferenceError(GradingError):
    """A call to the inference service failed or returned an unusable response"""


class ParseError(GradingError):
    """The model's final answer was not the expected JSON evaluation"""
