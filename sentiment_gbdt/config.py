"""
Project configuration settings.

Paths and default hyperparameters for the sentiment pipeline live here so the
console program, the experiments and the tests share a single source of
truth. Paths can be overridden with environment variables.
"""

from pathlib import Path
import os

# Base directory of the repository
BASE_DIR: Path = Path(__file__).resolve().parents[1]

###############################################################################
# Paths
###############################################################################

DATA_DIR: Path = BASE_DIR / "Data"

# Headerless tab separated file: <text>\t<label>
DATA_PATH: Path = Path(os.getenv("SENTIMENT_DATA_PATH", DATA_DIR / "yelp_labelled.txt"))

# Where the trained model archive is written and read back
MODEL_PATH: Path = Path(os.getenv("SENTIMENT_MODEL_PATH", DATA_DIR / "Model.zip"))

# Experiment outputs (comparison tables, figures)
RESULTS_DIR: Path = BASE_DIR / "results"

###############################################################################
# Featurizer
###############################################################################

N_FEATURES: int = 2 ** 12
NGRAM_RANGE = (1, 2)
USE_IDF: bool = True

###############################################################################
# Trainer
###############################################################################

NUM_TREES: int = 50
NUM_LEAVES: int = 50
MIN_EXAMPLES_PER_LEAF: int = 20
LEARNING_RATE: float = 0.2
MAX_BINS: int = 255

###############################################################################
# Data split
###############################################################################

# 80% of the data is used for training, 20% is held out
TEST_FRACTION: float = 0.2
RANDOM_SEED: int = 0

###############################################################################
# Console samples
###############################################################################

SINGLE_SAMPLE: str = "This was a very bad steak"
BATCH_SAMPLES = ("This was a horrible meal", "I love this spaghetti.")
