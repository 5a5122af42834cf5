"""
Neural Network Layers for the Decoder

This module implements the building blocks the decoder stacks together.
There is no training: every layer with weights samples them once, at
construction, from an injected RandomSource.

All implementations are forward-only NumPy.

Functions:
    layer_norm: Per-row standardisation to zero mean and unit variance
    sinusoidal_encoding: Deterministic position table
    apply_dropout: Inverted dropout with an explicit training flag

Classes:
    Linear: Affine projection (y = x @ W + b)
    LayerNorm: Layer normalization without learnable scale/shift
    Embedding: Token ID to dense vector lookup table (IDs wrap modulo vocab)
    PositionalEncoding: Sinusoidal position embeddings
    Dropout: Stochastic regularisation layer

Reference:
    - "Attention Is All You Need" (Vaswani et al., 2017)
    - "Layer Normalization" (Ba et al., 2016)
"""

from typing import Iterable, Optional

import numpy as np

from tinydecoder.errors import DimensionMismatchError
from tinydecoder.linalg import add, as_matrix, multiply
from tinydecoder.random_source import NumpyRandomSource, RandomSource, random_matrix


class Linear:
    """
    Fully Connected (Linear) Layer.

    Computes the affine transformation: y = x @ W + b

    In the decoder it is used for:
    - Both projections of the feed-forward sublayer
    - Output projection to vocabulary

    Attributes:
        weights: Weight matrix of shape (input_features, output_features)
        bias: Bias vector of shape (output_features,) or None

    Weight Initialization:
        Uniform in [-1, 1) scaled by 1/sqrt(output_features); biases start at 0.
    """

    def __init__(
        self,
        input_features: int,
        output_features: int,
        random_source: Optional[RandomSource] = None,
        use_bias: bool = True,
    ):
        """
        Initialize Linear layer with freshly sampled weights.

        Args:
            input_features: Size of input dimension (fan_in)
            output_features: Size of output dimension (fan_out)
            random_source: Source of the weight draws (fresh unseeded one if None)
            use_bias: Whether to include a bias term
        """
        self.input_features = input_features
        self.output_features = output_features
        self.use_bias = use_bias

        random_source = random_source or NumpyRandomSource()
        self.weights = random_matrix(input_features, output_features, random_source)

        if use_bias:
            self.bias = np.zeros(output_features)
        else:
            self.bias = None

    def forward(self, input_tensor: np.ndarray) -> np.ndarray:
        """
        Forward pass: y = x @ W + b

        Args:
            input_tensor: Input of shape (sequence_length, input_features)

        Returns:
            output_tensor: Output of shape (sequence_length, output_features)

        Raises:
            DimensionMismatchError: If the input width is not input_features
        """
        output_tensor = multiply(input_tensor, self.weights)

        # Bias is broadcast across rows
        if self.use_bias:
            output_tensor = output_tensor + self.bias

        return output_tensor

    def get_parameters(self) -> dict:
        """Return dictionary of weights."""
        params = {"weight": self.weights}
        if self.use_bias:
            params["bias"] = self.bias
        return params


def layer_norm(input_tensor: np.ndarray, epsilon: float = 1e-5) -> np.ndarray:
    """
    Standardise every row independently.

    Formula:
        y = (x - mean) / sqrt(var + eps)

    The variance is the biased one (divide by N). Epsilon keeps constant rows
    finite: they come out as all zeros.

    Args:
        input_tensor: Matrix of shape (rows, features)
        epsilon: Small constant for numerical stability

    Returns:
        Matrix of the same shape with per-row mean ~0 and variance ~1
    """
    input_tensor = np.asarray(input_tensor, dtype=np.float64)

    mean = np.mean(input_tensor, axis=-1, keepdims=True)
    variance = np.var(input_tensor, axis=-1, keepdims=True)

    return (input_tensor - mean) / np.sqrt(variance + epsilon)


class LayerNorm:
    """
    Layer Normalization.

    Pure standardisation over the feature dimension: unlike the usual
    formulation there are no learnable gamma/beta parameters, since nothing
    here is ever trained.

    Reference: "Layer Normalization" (Ba et al., 2016)
    """

    def __init__(self, epsilon: float = 1e-5):
        self.epsilon = epsilon

    def forward(self, input_tensor: np.ndarray) -> np.ndarray:
        return layer_norm(input_tensor, self.epsilon)


class Embedding:
    """
    Embedding Layer (Lookup Table).

    Converts discrete token IDs into dense vector representations by looking up
    rows in a randomly sampled embedding matrix.

    Token IDs have no upper bound (the character tokenizer emits raw code
    points), so lookups wrap: row = token_id % vocabulary_size.

    Reference: "Attention Is All You Need" Section 3.4
    """

    def __init__(
        self,
        vocabulary_size: int,
        embedding_dimension: int,
        random_source: Optional[RandomSource] = None,
    ):
        """
        Initialize Embedding layer.

        Args:
            vocabulary_size: Number of rows in the table
            embedding_dimension: Size of embedding vectors
            random_source: Source of the table draws (fresh unseeded one if None)
        """
        self.vocabulary_size = vocabulary_size
        self.embedding_dimension = embedding_dimension

        random_source = random_source or NumpyRandomSource()
        self.embedding_table = random_matrix(
            vocabulary_size, embedding_dimension, random_source
        )

    def forward(self, token_ids: Iterable[int]) -> np.ndarray:
        """
        Look up embeddings for a sequence of token IDs.

        Args:
            token_ids: Sequence of non-negative integer IDs

        Returns:
            embeddings: Float array of shape (sequence_length, embedding_dimension)
        """
        # Reduce with Python ints first so huge IDs never overflow int64
        rows = [int(token) % self.vocabulary_size for token in token_ids]
        indices = np.array(rows, dtype=np.int64)

        return self.embedding_table[indices]

    def get_parameters(self) -> dict:
        """Return dictionary of weights."""
        return {"embedding_table": self.embedding_table}


def sinusoidal_encoding(sequence_length: int, embedding_dimension: int) -> np.ndarray:
    """
    Build the sinusoidal positional encoding table.

    Formula (for even i):
        PE(pos, i)   = sin(pos / 10000^(i / d_model))
        PE(pos, i+1) = cos(pos / 10000^(i / d_model))

    With an odd embedding dimension the last column is a sine with no cosine
    partner.

    Args:
        sequence_length: Number of positions (rows)
        embedding_dimension: Width of the table (columns)

    Returns:
        encoding_table: Array of shape (sequence_length, embedding_dimension)

    Example:
        >>> sinusoidal_encoding(2, 4)[0]
        array([0., 1., 0., 1.])
    """
    # Shape: (seq, 1)
    positions = np.arange(sequence_length)[:, np.newaxis]
    # Shape: (1, d)
    dimension_indices = np.arange(embedding_dimension)[np.newaxis, :]

    # 2 * (i // 2) gives the [0, 0, 2, 2, 4, 4, ...] exponent pattern
    angle_rates = 1 / np.power(
        10000.0, (2 * (dimension_indices // 2)) / embedding_dimension
    )
    angles = positions * angle_rates

    encoding_table = np.zeros((sequence_length, embedding_dimension))
    encoding_table[:, 0::2] = np.sin(angles[:, 0::2])
    encoding_table[:, 1::2] = np.cos(angles[:, 1::2])

    return encoding_table


class PositionalEncoding:
    """
    Sinusoidal Positional Encoding.

    Adds position information to embeddings using fixed sinusoidal patterns.
    The table depends only on its shape, so it is computed once for
    max_sequence_length rows and sliced per call.

    Reference: "Attention Is All You Need" Section 3.5
    """

    def __init__(self, max_sequence_length: int, embedding_dimension: int):
        self.max_sequence_length = max_sequence_length
        self.embedding_dimension = embedding_dimension
        self.encoding_table = sinusoidal_encoding(
            max_sequence_length, embedding_dimension
        )

    def get_encoding(self, sequence_length: int) -> np.ndarray:
        """
        Get positional encoding for a specific sequence length.

        Raises:
            DimensionMismatchError: If sequence_length exceeds max_sequence_length
        """
        if sequence_length > self.max_sequence_length:
            raise DimensionMismatchError(
                "positional_encoding",
                f"sequence length {sequence_length} exceeds maximum "
                f"{self.max_sequence_length}",
                (sequence_length, self.embedding_dimension),
                self.encoding_table.shape,
            )

        return self.encoding_table[:sequence_length]

    def forward(self, embeddings: np.ndarray) -> np.ndarray:
        """
        Add positional encoding to embedded tokens.

        Args:
            embeddings: Array of shape (sequence_length, embedding_dimension)

        Returns:
            Output with positional encoding added, same shape as input

        Raises:
            DimensionMismatchError: If the embeddings have more rows or a
                different width than the table
        """
        embeddings = as_matrix(embeddings, "positional_encoding")
        position_encoding = self.get_encoding(embeddings.shape[0])

        return add(embeddings, position_encoding)


def apply_dropout(
    input_tensor: np.ndarray,
    dropout_rate: float,
    random_source: Optional[RandomSource] = None,
    training: bool = True,
) -> np.ndarray:
    """
    Inverted dropout.

    Each entry is zeroed with probability dropout_rate; survivors are scaled
    by 1 / (1 - dropout_rate) so the expected value is unchanged.

    Args:
        input_tensor: Array of any shape
        dropout_rate: Probability of zeroing an entry, in [0, 1)
        random_source: Source of the keep-mask (fresh unseeded one if None)
        training: When False the input is returned unchanged

    Returns:
        Array of same shape as input
    """
    # Identity without drawing any randomness
    if not training or dropout_rate == 0.0:
        return input_tensor

    random_source = random_source or NumpyRandomSource()
    input_tensor = np.asarray(input_tensor, dtype=np.float64)

    keep_mask = random_source.bernoulli(input_tensor.shape, 1.0 - dropout_rate)

    return np.where(keep_mask, input_tensor / (1.0 - dropout_rate), 0.0)


class Dropout:
    """Dropout layer bound to a rate and a random source."""

    def __init__(
        self, dropout_rate: float, random_source: Optional[RandomSource] = None
    ):
        self.dropout_rate = dropout_rate
        self.random_source = random_source or NumpyRandomSource()

    def forward(self, input_tensor: np.ndarray, training: bool = True) -> np.ndarray:
        return apply_dropout(
            input_tensor, self.dropout_rate, self.random_source, training=training
        )


# =============================================================================
# EDUCATIONAL DEMO
# Run with: python -m tinydecoder.layers
# =============================================================================
if __name__ == "__main__":
    print("=" * 70)
    print("DECODER LAYERS DEMO")
    print("=" * 70)
    print()

    source = NumpyRandomSource(seed=0)

    print("-" * 70)
    print("1. EMBEDDING - token IDs wrap around the table")
    print("-" * 70)
    embedding = Embedding(vocabulary_size=8, embedding_dimension=4, random_source=source)
    vectors = embedding.forward([3, 11])
    print("Token 3 and token 11 share row 3 of an 8-row table:")
    print(f"  {vectors[0].round(3)}")
    print(f"  {vectors[1].round(3)}")
    print()

    print("-" * 70)
    print("2. POSITIONAL ENCODING")
    print("-" * 70)
    table = sinusoidal_encoding(4, 6)
    for position in range(4):
        print(f"  Position {position}: {table[position].round(3)}")
    print()

    print("-" * 70)
    print("3. LAYER NORMALIZATION")
    print("-" * 70)
    x = np.array([[100.0, 200.0, 300.0, 400.0], [0.001, 0.002, 0.003, 0.004]])
    normalized = layer_norm(x)
    for row in normalized:
        print(f"  {row.round(3)}  mean={row.mean():.3f} var={row.var():.3f}")
    print()

    print("-" * 70)
    print("4. DROPOUT")
    print("-" * 70)
    ones = np.ones((2, 6))
    print("Training (rate=0.5):")
    print(apply_dropout(ones, 0.5, source))
    print("Inference:")
    print(apply_dropout(ones, 0.5, source, training=False))
