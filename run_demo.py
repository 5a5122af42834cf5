#!/usr/bin/env python3
"""
Decoder Forward Pass Demo

Tokenizes a string into code points, runs one forward pass through the
untrained decoder and prints what comes out of each stage.

Usage:
    python run_demo.py [text] [options]

Example:
    python run_demo.py "hello" --seed 0 --eval --num-layers 2
"""

import argparse
import os
import sys

import numpy as np

sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from tinydecoder.config import DecoderConfig
from tinydecoder.errors import TinyDecoderError
from tinydecoder.model import DecoderModel
from tinydecoder.random_source import NumpyRandomSource
from tinydecoder.tokenizer import CharacterTokenizer

DEFAULT_TEXT = "สวัสดี! มีอะไรให้ฉันช่วยไหม?"


def print_header(text: str):
    """Print a formatted header."""
    print()
    print("=" * 60)
    print(text)
    print("=" * 60)
    print()


def print_section(text: str):
    """Print a section divider."""
    print()
    print("-" * 40)
    print(text)
    print("-" * 40)


def build_config(args: argparse.Namespace) -> DecoderConfig:
    """Reference configuration with any command-line overrides applied."""
    values = DecoderConfig.reference().to_dict()
    for name in values:
        override = getattr(args, name, None)
        if override is not None:
            values[name] = override
    return DecoderConfig.from_dict(values)


def describe_output(
    probabilities: np.ndarray, tokenizer: CharacterTokenizer, top_k: int
):
    """Print the most probable tokens at each position."""
    for position, row in enumerate(probabilities):
        top_ids = np.argsort(row)[::-1][:top_k]
        choices = ", ".join(
            f"{token_id} {tokenizer.decode([token_id])!r}: {row[token_id]:.3f}"
            for token_id in top_ids
        )
        print(f"  Position {position:3d} (sum={row.sum():.6f}): {choices}")


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Untrained decoder forward pass")
    parser.add_argument(
        "text", nargs="?", default=DEFAULT_TEXT, help="Text to run through the model"
    )
    parser.add_argument("--seed", type=int, default=None, help="Random seed")
    parser.add_argument(
        "--eval",
        action="store_true",
        help="Disable dropout (inference mode)",
    )
    parser.add_argument(
        "--top-k", type=int, default=3, help="Tokens to show per position"
    )
    parser.add_argument("--num-layers", dest="num_layers", type=int)
    parser.add_argument("--num-heads", dest="num_heads", type=int)
    parser.add_argument("--embedding-dim", dest="embedding_dim", type=int)
    parser.add_argument("--ffn-hidden-dim", dest="ffn_hidden_dim", type=int)
    parser.add_argument("--max-sequence-length", dest="max_sequence_length", type=int)
    parser.add_argument("--vocab-size", dest="vocab_size", type=int)
    parser.add_argument("--dropout-prob", dest="dropout_prob", type=float)
    return parser.parse_args(argv)


def main(argv=None) -> int:
    args = parse_args(argv)

    try:
        config = build_config(args)
    except TinyDecoderError as error:
        print(f"Error: {error}")
        return 1

    print_header("Untrained Decoder - Forward Pass Demo")

    print_section("Configuration")
    for name, value in config.to_dict().items():
        print(f"  {name}: {value}")

    tokenizer = CharacterTokenizer()
    tokens = tokenizer.encode(args.text)

    print_section("Tokens")
    print(f"Text: {args.text!r}")
    print(f"Token IDs ({len(tokens)}): {tokens}")
    if len(tokens) > config.max_sequence_length:
        print(f"Truncated to the first {config.max_sequence_length} tokens")

    model = DecoderModel(config, NumpyRandomSource(seed=args.seed))
    print(f"Sampled parameters: {model.num_parameters():,}")

    probabilities = model.forward(tokens, training=not args.eval)

    print_section("Output")
    print(f"Probability matrix shape: {probabilities.shape}")
    describe_output(probabilities, tokenizer, args.top_k)

    print("\nDone!")
    return 0


if __name__ == "__main__":
    sys.exit(main())
