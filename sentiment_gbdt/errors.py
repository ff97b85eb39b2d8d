"""
Error Taxonomy

All failures raised by the sentiment pipeline are synchronous and surface to
the caller immediately. Every error derives from ValueError so callers that
already guard model code with ``except ValueError`` keep working.
"""


class SentimentError(ValueError):
    """Base class for all pipeline errors"""


class FeaturizationError(SentimentError):
    """Text input is missing or malformed, or the featurizer is not fitted"""


class TrainingError(SentimentError):
    """Invalid trainer configuration or inconsistent training data"""


class ModelLoadError(SentimentError):
    """Serialized model bytes are corrupt, truncated or incompatible"""


class DimensionMismatchError(SentimentError):
    """Feature width at inference differs from the width the model was trained on"""

    def __init__(self, expected: int, actual: int):
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"Feature vector has {actual} entries, but model was trained on {expected}"
        )
