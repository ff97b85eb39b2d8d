"""
Pipeline stage interface

Every stage of the sentiment pipeline (featurizer, tree ensemble, calibrator)
implements the same small capability set: ``fit`` estimates parameters from
training data and ``transform`` applies them to new items. A model is an
ordered sequence of fitted stages whose outputs feed the next stage.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict


class PipelineStage(ABC):
    """
    Abstract interface of a fit/transform pipeline stage

    Attributes:
    -----------
    is_fitted : bool
        Whether ``fit`` has completed; fitted stages are read-only
    """

    is_fitted: bool = False

    @abstractmethod
    def fit(self, X, y=None, **kwargs) -> 'PipelineStage':
        """
        Estimate the stage parameters

        Parameters:
        -----------
        X : array-like
            Stage input
        y : array-like, optional
            Binary labels, for supervised stages

        Returns:
        --------
        self : PipelineStage
            Fitted stage
        """
        pass

    @abstractmethod
    def transform(self, X):
        """
        Apply the fitted stage to new input

        Parameters:
        -----------
        X : array-like
            Stage input

        Returns:
        --------
        output : array-like
            Input of the next stage
        """
        pass

    @abstractmethod
    def get_params(self) -> Dict[str, Any]:
        """
        Stage parameters as plain JSON-serializable values

        Returns:
        --------
        params : dict
            Hyperparameters of the stage
        """
        pass

    def set_params(self, **params) -> 'PipelineStage':
        """
        Update hyperparameters of an unfitted stage

        Parameters:
        -----------
        **params : dict
            Parameters to set

        Returns:
        --------
        self : PipelineStage
            Stage with updated parameters
        """
        if self.is_fitted:
            raise ValueError(f"{type(self).__name__} is fitted and can no longer be modified")
        for key, value in params.items():
            if key in self.get_params():
                setattr(self, key, value)
            else:
                raise ValueError(f"Invalid parameter: {key}")
        return self
