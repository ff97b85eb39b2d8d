"""
Console program

Loads the labelled reviews, trains and evaluates a model, saves it, and
shows predictions for a single sample, a batch scored by the reloaded model,
and comments typed by the user.

Usage:
    python -m sentiment_gbdt --data Data/yelp_labelled.txt --model Data/Model.zip
"""

import argparse
import sys
from pathlib import Path
from typing import List, Optional

from . import config
from .data import SentimentExample, load_examples, train_test_split
from .models import (
    Prediction,
    SentimentModel,
    SentimentPipeline,
    TrainerConfig,
    evaluate,
    load_model_from_file,
    save_model_to_file
)


def format_prediction(text: str, prediction: Prediction) -> str:
    sentiment = "Positive" if prediction.label else "Negative"
    return f"Sentiment: {text} | Prediction: {sentiment} | Probability: {prediction.probability:.6f} "


def build_and_train_model(train_set: List[SentimentExample], args) -> SentimentModel:
    trainer_config = TrainerConfig(
        num_trees=args.num_trees,
        num_leaves=args.num_leaves,
        min_examples_per_leaf=args.min_examples_per_leaf,
        learning_rate=config.LEARNING_RATE,
        max_bins=config.MAX_BINS,
    )
    pipeline = SentimentPipeline(
        n_features=config.N_FEATURES,
        ngram_range=config.NGRAM_RANGE,
        use_idf=config.USE_IDF,
        trainer_config=trainer_config,
        verbose=args.verbose,
    )

    print("=== Create and train the model ===")
    model = pipeline.fit(train_set)
    print("=== End of training ===")
    print()
    return model


def evaluate_model(model: SentimentModel, test_set: List[SentimentExample], model_path: Path) -> None:
    print("=== Evaluating model accuracy with test data ===")
    metrics = evaluate(model, test_set)

    print()
    print("Model quality metrics evaluation")
    print("--------------------------------")
    print(f"Accuracy: {metrics.accuracy:.2%}")
    print(f"Auc: {metrics.auc:.2%}")
    print(f"F1Score: {metrics.f1:.2%}")
    print("=== End of model evaluation ===")

    save_model_to_file(model, model_path)
    print(f"The model is saved to {model_path}")


def use_model_with_single_item(model: SentimentModel) -> None:
    prediction = model.predict(config.SINGLE_SAMPLE)
    print()
    print("=== Prediction test of model with a single sample and test dataset ===")
    print()
    print(format_prediction(config.SINGLE_SAMPLE, prediction))
    print("=== End of predictions ===")
    print()


def use_loaded_model_with_batch_items(model_path: Path) -> None:
    loaded_model = load_model_from_file(model_path)
    samples = list(config.BATCH_SAMPLES)
    predictions = loaded_model.predict_batch(samples)

    print()
    print("=== Prediction test of loaded model with a multiple samples ===")
    print()
    for text, prediction in zip(samples, predictions):
        print(format_prediction(text, prediction))
    print("=== End of predictions ===")


def use_loaded_model_with_user_input(model_path: Path, n_comments: int = 2) -> None:
    loaded_model = load_model_from_file(model_path)

    print()
    print("=== Prediction test of model with user input ===")
    for _ in range(n_comments):
        print()
        print("Please enter your comment here:")
        comment = sys.stdin.readline()
        if not comment:
            break
        comment = comment.rstrip("\n")
        print(format_prediction(comment, loaded_model.predict(comment)))
    print("=== End of predictions with user data ===")
    print()


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Train and use a boosted-tree sentiment classifier")
    parser.add_argument("--data", type=Path, default=config.DATA_PATH,
                        help="Tab separated file of <text>\\t<label> rows, no header")
    parser.add_argument("--model", type=Path, default=config.MODEL_PATH,
                        help="Where the trained model archive is written")
    parser.add_argument("--num-trees", type=int, default=config.NUM_TREES)
    parser.add_argument("--num-leaves", type=int, default=config.NUM_LEAVES)
    parser.add_argument("--min-examples-per-leaf", type=int, default=config.MIN_EXAMPLES_PER_LEAF)
    parser.add_argument("--test-fraction", type=float, default=config.TEST_FRACTION)
    parser.add_argument("--seed", type=int, default=config.RANDOM_SEED)
    parser.add_argument("--no-interactive", action="store_true",
                        help="Skip the prompts for user comments")
    parser.add_argument("--verbose", action="store_true", help="Print training progress")
    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)

    examples = load_examples(args.data)
    train_set, test_set = train_test_split(examples, test_fraction=args.test_fraction, seed=args.seed)

    model = build_and_train_model(train_set, args)
    evaluate_model(model, test_set, args.model)
    use_model_with_single_item(model)
    use_loaded_model_with_batch_items(args.model)
    if not args.no_interactive:
        use_loaded_model_with_user_input(args.model)

    print()
    print("=== End of process ===")
    print()
    return 0


if __name__ == "__main__":
    sys.exit(main())
