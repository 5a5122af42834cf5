"""
Decoder Forward Pipeline

This module assembles the components into a complete decoder-only
transformer that maps a token sequence to a next-token probability
distribution at every position.

The weights are never trained. In this untrained reference mode a
DecoderModel samples all of its weights when it is constructed, and
forward_pass builds a new model on every call, so the output illustrates
the computation rather than making a meaningful prediction.

Architecture Overview:
    Input Token IDs (truncated to max_sequence_length)
           |
    [Token Embedding] (id % vocab_size) + [Positional Encoding]
           |
    [Transformer Layer] x N
       - Causal Multi-Head Self-Attention
       - Residual Connection + LayerNorm
       - Feed-Forward Network
       - Residual Connection + LayerNorm
       - Dropout
           |
    [LayerNorm]
           |
    [Linear Projection] -> Vocabulary Logits
           |
    [Softmax] -> Token Probabilities

Classes:
    DecoderModel: Decoder with weights sampled at construction

Functions:
    forward_pass: Token IDs -> probabilities with freshly sampled weights
"""

from typing import Optional, Sequence

import numpy as np

from tinydecoder.activations import softmax
from tinydecoder.config import DecoderConfig
from tinydecoder.layers import Embedding, LayerNorm, Linear, PositionalEncoding
from tinydecoder.random_source import NumpyRandomSource, RandomSource
from tinydecoder.transformer import TransformerStack

__all__ = ["DecoderConfig", "DecoderModel", "forward_pass"]


class DecoderModel:
    """
    Decoder-only Transformer.

    Example usage:
        config = DecoderConfig(
            num_layers=1, num_heads=2, embedding_dim=4, ffn_hidden_dim=8,
            max_sequence_length=16, vocab_size=5, dropout_prob=0.0,
        )
        model = DecoderModel(config, NumpyRandomSource(seed=0))
        probabilities = model.forward([1, 2, 3])  # Shape: (3, 5)

    Reusing one model reuses its weights, so with training=False repeated
    calls on the same tokens return identical results.

    Attributes:
        config: Model configuration
        token_embedding: Token ID -> vector embedding
        positional_encoding: Position -> encoding vector
        transformer_stack: Stack of transformer layers
        final_layer_norm: LayerNorm before output projection
        output_projection: Projects to vocabulary size, without bias
    """

    def __init__(
        self, config: DecoderConfig, random_source: Optional[RandomSource] = None
    ):
        """
        Initialize the model and sample all of its weights.

        Args:
            config: DecoderConfig with model hyperparameters
            random_source: Source of weight draws and dropout masks
                           (fresh unseeded NumpyRandomSource if None)
        """
        self.config = config
        self.random_source = random_source or NumpyRandomSource()

        # Shape: (vocab_size, embedding_dim)
        self.token_embedding = Embedding(
            vocabulary_size=config.vocab_size,
            embedding_dimension=config.embedding_dim,
            random_source=self.random_source,
        )

        # Shape: (max_seq_len, embedding_dim)
        self.positional_encoding = PositionalEncoding(
            max_sequence_length=config.max_sequence_length,
            embedding_dimension=config.embedding_dim,
        )

        self.transformer_stack = TransformerStack(config, self.random_source)

        self.final_layer_norm = LayerNorm()

        # Shape: (embedding_dim, vocab_size)
        self.output_projection = Linear(
            input_features=config.embedding_dim,
            output_features=config.vocab_size,
            random_source=self.random_source,
            use_bias=False,
        )

    def truncate(self, input_tokens: Sequence[int]) -> list:
        """Keep at most max_sequence_length tokens from the start."""
        return list(input_tokens)[: self.config.max_sequence_length]

    def compute_logits(
        self, input_tokens: Sequence[int], training: bool = True
    ) -> np.ndarray:
        """
        Forward pass up to the vocabulary projection.

        Args:
            input_tokens: Non-negative integer token IDs
            training: Apply dropout inside the transformer layers

        Returns:
            Logits over vocabulary, shape (sequence_length, vocab_size) where
            sequence_length = min(len(input_tokens), max_sequence_length)
        """
        tokens = self.truncate(input_tokens)

        # Nothing to attend over; an empty row has no softmax
        if not tokens:
            return np.zeros((0, self.config.vocab_size))

        # Step 1: Token embedding
        # (seq_len,) -> (seq_len, embedding_dim)
        hidden_states = self.token_embedding.forward(tokens)

        # Step 2: Add positional encoding
        hidden_states = self.positional_encoding.forward(hidden_states)

        # Step 3: Pass through transformer stack
        hidden_states = self.transformer_stack.forward(
            hidden_states, training=training
        )

        # Step 4: Final layer normalization
        hidden_states = self.final_layer_norm.forward(hidden_states)

        # Step 5: Project to vocabulary size
        # (seq_len, embedding_dim) -> (seq_len, vocab_size)
        return self.output_projection.forward(hidden_states)

    def forward(self, input_tokens: Sequence[int], training: bool = True) -> np.ndarray:
        """
        Forward pass: token IDs -> per-position probability distributions.

        Args:
            input_tokens: Non-negative integer token IDs
            training: Apply dropout inside the transformer layers

        Returns:
            Probabilities of shape (sequence_length, vocab_size); every row
            sums to 1
        """
        logits = self.compute_logits(input_tokens, training=training)

        if logits.shape[0] == 0:
            return logits

        return softmax(logits, axis=-1)

    def predict_next_token(
        self, input_tokens: Sequence[int], training: bool = False
    ) -> int:
        """
        Most probable token after the (truncated) input.

        Raises:
            ValueError: If input_tokens is empty
        """
        probabilities = self.forward(input_tokens, training=training)

        if probabilities.shape[0] == 0:
            raise ValueError("Cannot predict from an empty token sequence")

        return int(np.argmax(probabilities[-1]))

    def get_parameters(self) -> dict:
        """Return every sampled weight, keyed by name."""
        params = {}
        params.update(
            {f"token_{k}": v for k, v in self.token_embedding.get_parameters().items()}
        )
        params.update(self.transformer_stack.get_parameters())
        params.update(
            {
                f"output_{k}": v
                for k, v in self.output_projection.get_parameters().items()
            }
        )
        return params

    def num_parameters(self) -> int:
        """Total number of sampled weight values."""
        return sum(p.size for p in self.get_parameters().values())


def forward_pass(
    input_tokens: Sequence[int],
    config: DecoderConfig,
    random_source: Optional[RandomSource] = None,
    training: bool = True,
) -> np.ndarray:
    """
    Run the decoder once with weights sampled for this call only.

    Args:
        input_tokens: Non-negative integer token IDs; IDs at or above
                      vocab_size wrap around
        config: Model configuration
        random_source: Source of weight draws and dropout masks; pass a
                       seeded NumpyRandomSource for reproducible output
        training: Apply dropout (the reference behaviour) when True

    Returns:
        Probabilities of shape (min(len(input_tokens), max_sequence_length),
        vocab_size)

    Raises:
        DimensionMismatchError: If an intermediate shape check fails
    """
    model = DecoderModel(config, random_source)
    return model.forward(input_tokens, training=training)


# =============================================================================
# EDUCATIONAL DEMO
# Run with: python -m tinydecoder.model
# =============================================================================
if __name__ == "__main__":
    print("=" * 70)
    print("DECODER FORWARD PASS DEMO")
    print("=" * 70)
    print()

    demo_config = DecoderConfig(
        num_layers=1,
        num_heads=2,
        embedding_dim=4,
        ffn_hidden_dim=8,
        max_sequence_length=16,
        vocab_size=5,
        dropout_prob=0.0,
    )
    probabilities = forward_pass([1, 2, 3], demo_config, NumpyRandomSource(seed=0))

    print(f"Tokens [1, 2, 3] -> probabilities of shape {probabilities.shape}")
    for position, row in enumerate(probabilities):
        print(f"  Position {position}: {row.round(3)}  (sum={row.sum():.6f})")
    print()
    print("The weights are random, so the distribution carries no meaning.")
