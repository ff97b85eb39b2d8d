"""
Sentiment Model

The trained, composed prediction unit: text featurizer -> tree ensemble ->
Platt calibration -> 0.5 threshold. A model is read-only after training and
can be used from several threads at once.

Serialized models are ZIP archives with a JSON manifest and an ``.npz`` of
the numeric arrays (IDF weights and tree arenas).
"""

import io
import json
import zipfile
import zlib
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Union

import numpy as np

from .calibrator import CalibrationParams, apply_calibration
from .text_featurizer import TextFeaturizer
from .tree_components.ensemble_core import TrainerConfig, TreeEnsemble
from .tree_components.tree_node import RegressionTree
from ..data.dataset import SentimentExample
from ..errors import FeaturizationError, ModelLoadError


FORMAT_NAME = "sentiment-gbdt-model"
FORMAT_VERSION = 1
MANIFEST_FILE = "manifest.json"
ARRAYS_FILE = "arrays.npz"
DECISION_THRESHOLD = 0.5


@dataclass(frozen=True)
class Prediction:
    """
    Attributes:
    -----------
    label : bool
        True for positive sentiment; ``probability >= 0.5``
    score : float
        Raw ensemble score
    probability : float
        Calibrated probability of positive sentiment
    """
    label: bool
    score: float
    probability: float


def _text_of(item, position: int) -> str:
    if isinstance(item, SentimentExample):
        item = item.text
    if item is None:
        raise FeaturizationError(
            f"Text at position {position} is None; pass an empty string for empty input"
        )
    if not isinstance(item, str):
        raise FeaturizationError(
            f"Item at position {position} must be str or SentimentExample, got {type(item).__name__}"
        )
    return item


class SentimentModel:
    """
    Featurizer, ensemble and calibration bundled into one predictor

    Attributes:
    -----------
    featurizer : TextFeaturizer
        Fitted featurizer, applied identically at inference
    ensemble : TreeEnsemble
        Trained trees
    calibration : CalibrationParams
        Platt scaling parameters
    trainer_config : TrainerConfig or None
        Hyperparameters the ensemble was trained with
    """

    def __init__(
        self,
        featurizer: TextFeaturizer,
        ensemble: TreeEnsemble,
        calibration: CalibrationParams,
        trainer_config: Optional[TrainerConfig] = None
    ):
        if not featurizer.is_fitted:
            raise ValueError("Featurizer must be fitted")
        if featurizer.n_features != ensemble.n_features:
            raise ValueError(
                f"Featurizer width {featurizer.n_features} differs from ensemble width {ensemble.n_features}"
            )
        self.featurizer = featurizer
        self.ensemble = ensemble
        self.calibration = calibration
        self.trainer_config = trainer_config

    @property
    def n_features(self) -> int:
        return self.ensemble.n_features

    def _predictions(self, scores: np.ndarray) -> List[Prediction]:
        probabilities = np.atleast_1d(apply_calibration(scores, self.calibration))
        return [
            Prediction(label=bool(p >= DECISION_THRESHOLD), score=float(s), probability=float(p))
            for s, p in zip(scores, probabilities)
        ]

    def predict_features(self, X) -> List[Prediction]:
        """
        Predict from already featurized vectors

        Parameters:
        -----------
        X : array-like or sparse matrix, shape=(n_samples, n_features)
            Feature vectors of the trained width

        Returns:
        --------
        predictions : list of Prediction
        """
        return self._predictions(self.ensemble.score(X))

    def score(self, items: Iterable[Union[str, SentimentExample]]) -> np.ndarray:
        texts = [_text_of(item, position) for position, item in enumerate(items)]
        if not texts:
            return np.zeros(0)
        return self.ensemble.score(self.featurizer.transform(texts, sparse=True))

    def predict_proba(self, items: Iterable[Union[str, SentimentExample]]) -> np.ndarray:
        scores = self.score(items)
        return np.atleast_1d(apply_calibration(scores, self.calibration))

    def predict_batch(self, items: Iterable[Union[str, SentimentExample]]) -> List[Prediction]:
        """
        Predict a batch of items

        Every item is validated before any prediction is made; a single
        invalid item fails the whole call.

        Parameters:
        -----------
        items : iterable of str or SentimentExample
            Texts to classify

        Returns:
        --------
        predictions : list of Prediction
            One prediction per item, in input order
        """
        return self._predictions(self.score(items))

    def predict(self, item: Union[str, SentimentExample]) -> Prediction:
        """
        Predict a single item

        Parameters:
        -----------
        item : str or SentimentExample
            Text to classify

        Returns:
        --------
        prediction : Prediction
        """
        return self.predict_batch([item])[0]

    def save(self) -> bytes:
        """
        Serialize the model

        Returns:
        --------
        data : bytes
            ZIP archive accepted by ``SentimentModel.load``
        """
        manifest = {
            'format': FORMAT_NAME,
            'format_version': FORMAT_VERSION,
            'featurizer': self.featurizer.get_params(),
            'n_documents': int(self.featurizer.n_documents_),
            'ensemble': {
                'base_score': self.ensemble.base_score,
                'n_features': self.ensemble.n_features,
                'n_trees': self.ensemble.n_trees,
            },
            'calibration': {
                'slope': self.calibration.slope,
                'intercept': self.calibration.intercept,
            },
            'trainer_config': self.trainer_config.to_dict() if self.trainer_config else None,
        }

        arrays = {'idf': self.featurizer.idf_}
        for tree_idx, tree in enumerate(self.ensemble.trees):
            for name, array in tree.to_arrays().items():
                arrays[f'tree_{tree_idx}_{name}'] = array

        array_buffer = io.BytesIO()
        np.savez(array_buffer, **arrays)

        buffer = io.BytesIO()
        with zipfile.ZipFile(buffer, 'w', compression=zipfile.ZIP_DEFLATED) as archive:
            archive.writestr(MANIFEST_FILE, json.dumps(manifest, indent=2))
            archive.writestr(ARRAYS_FILE, array_buffer.getvalue())
        return buffer.getvalue()

    @classmethod
    def load(cls, data: bytes) -> 'SentimentModel':
        """
        Deserialize a model produced by ``save``

        Parameters:
        -----------
        data : bytes
            Serialized model

        Returns:
        --------
        model : SentimentModel

        Raises:
        -------
        ModelLoadError
            The bytes are corrupt, truncated, of another format or of an
            unsupported version
        """
        if not isinstance(data, (bytes, bytearray, memoryview)):
            raise ModelLoadError(f"Expected bytes, got {type(data).__name__}")

        try:
            with zipfile.ZipFile(io.BytesIO(bytes(data))) as archive:
                manifest = json.loads(archive.read(MANIFEST_FILE).decode('utf-8'))
                array_bytes = archive.read(ARRAYS_FILE)
        except (zipfile.BadZipFile, zlib.error, KeyError, UnicodeDecodeError,
                json.JSONDecodeError, EOFError, OSError, ValueError) as exc:
            raise ModelLoadError(f"Corrupt model archive: {exc}") from exc

        if not isinstance(manifest, dict) or manifest.get('format') != FORMAT_NAME:
            raise ModelLoadError("Not a sentiment model archive")
        if manifest.get('format_version') != FORMAT_VERSION:
            raise ModelLoadError(
                f"Unsupported model version {manifest.get('format_version')!r}, expected {FORMAT_VERSION}"
            )

        try:
            with np.load(io.BytesIO(array_bytes), allow_pickle=False) as npz:
                arrays = {name: npz[name] for name in npz.files}
        except (zipfile.BadZipFile, zlib.error, EOFError, OSError, ValueError) as exc:
            raise ModelLoadError(f"Corrupt model arrays: {exc}") from exc

        try:
            return cls._from_state(manifest, arrays)
        except (KeyError, TypeError, ValueError) as exc:
            raise ModelLoadError(f"Inconsistent model contents: {exc}") from exc

    @classmethod
    def _from_state(cls, manifest: Dict[str, Any], arrays: Dict[str, np.ndarray]) -> 'SentimentModel':
        featurizer = TextFeaturizer.from_state(
            manifest['featurizer'], arrays['idf'], manifest.get('n_documents', 0)
        )

        ensemble_info = manifest['ensemble']
        n_trees = int(ensemble_info['n_trees'])
        if n_trees < 0:
            raise ValueError(f"Negative tree count {n_trees}")
        stored_trees = {int(name.split('_')[1]) for name in arrays if name.startswith('tree_')}
        if stored_trees != set(range(n_trees)):
            raise ValueError(
                f"Manifest lists {n_trees} trees, archive holds arrays for {len(stored_trees)}"
            )

        trees = []
        for tree_idx in range(n_trees):
            trees.append(RegressionTree.from_arrays({
                name: arrays[f'tree_{tree_idx}_{name}'] for name in RegressionTree.ARRAY_FIELDS
            }))
        ensemble = TreeEnsemble(
            base_score=float(ensemble_info['base_score']),
            trees=trees,
            n_features=int(ensemble_info['n_features']),
        )

        calibration = CalibrationParams(
            slope=float(manifest['calibration']['slope']),
            intercept=float(manifest['calibration']['intercept']),
        )
        if not (np.isfinite(calibration.slope) and np.isfinite(calibration.intercept)) or calibration.slope < 0:
            raise ValueError("Invalid calibration parameters")

        trainer_config = manifest.get('trainer_config')
        if trainer_config is not None:
            trainer_config = TrainerConfig(**trainer_config)

        return cls(featurizer, ensemble, calibration, trainer_config)

    def __repr__(self) -> str:
        return (f"SentimentModel(n_features={self.n_features}, trees={self.ensemble.n_trees}, "
                f"slope={self.calibration.slope:.4f}, intercept={self.calibration.intercept:.4f})")


def load_model(data: bytes) -> SentimentModel:
    return SentimentModel.load(data)


def save_model_to_file(model: SentimentModel, path: Union[str, Path]) -> Path:
    """
    Write a serialized model to disk

    Parameters:
    -----------
    model : SentimentModel
    path : str or Path
        Destination file; parent directories are created

    Returns:
    --------
    path : Path
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(model.save())
    return path


def load_model_from_file(path: Union[str, Path]) -> SentimentModel:
    try:
        data = Path(path).read_bytes()
    except OSError as exc:
        raise ModelLoadError(f"Cannot read model file {path}: {exc}") from exc
    return SentimentModel.load(data)
