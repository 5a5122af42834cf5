"""
Causal Multi-Head Self-Attention

This module implements the attention mechanism of the decoder: scaled
dot-product attention with a causal mask, split across several heads that
each see a contiguous slice of the embedding columns.

There are no query/key/value or output projections: each head attends
directly over its slice of the input, and the head outputs are concatenated
back to the input width.

Reference: "Attention Is All You Need" (Vaswani et al., 2017) Section 3.2
           https://arxiv.org/abs/1706.03762

Functions:
    create_causal_mask: Lower-triangular mask of allowed positions
    scaled_dot_product_attention: Core attention computation
    multi_head_self_attention: Head split, attention and concatenation

Classes:
    MultiHeadSelfAttention: Layer form bound to a number of heads
"""

from typing import Optional, Tuple

import numpy as np

from tinydecoder.activations import softmax
from tinydecoder.errors import DimensionMismatchError
from tinydecoder.linalg import as_matrix


def create_causal_mask(sequence_length: int) -> np.ndarray:
    """
    Create a causal (autoregressive) attention mask.

    Each position can only attend to itself and previous positions.

    Args:
        sequence_length: Length of the sequence

    Returns:
        mask: Boolean mask of shape (sequence_length, sequence_length)
              True where attention is allowed, False where masked

    Example:
        For sequence_length=3:
        [[True, False, False],
         [True, True,  False],
         [True, True,  True ]]
    """
    return np.tril(np.ones((sequence_length, sequence_length), dtype=bool))


def scaled_dot_product_attention(
    query: np.ndarray,
    key: np.ndarray,
    value: np.ndarray,
    mask: Optional[np.ndarray] = None,
) -> Tuple[np.ndarray, np.ndarray]:
    """
    Compute Scaled Dot-Product Attention.

    Mathematical Formula:
        Attention(Q, K, V) = softmax(Q @ K^T / sqrt(d_k)) @ V

    Step-by-step:
        1. Compute attention scores: Q @ K^T
        2. Scale by sqrt(d_k)
        3. Set masked scores to -inf, so their softmax weight is exactly 0
        4. Apply softmax along the key axis
        5. Multiply by V to get weighted combination of values

    Args:
        query: Shape (..., seq_len_q, d_k); leading axes (e.g. heads) are batched
        key: Shape (..., seq_len_k, d_k)
        value: Shape (..., seq_len_k, d_v)
        mask: Optional boolean mask of shape (seq_len_q, seq_len_k),
              True = position can be attended to

    Returns:
        output: Attention output of shape (..., seq_len_q, d_v)
        attention_weights: Attention weights of shape (..., seq_len_q, seq_len_k)
    """
    d_k = query.shape[-1]

    # (..., seq_q, d_k) @ (..., d_k, seq_k) -> (..., seq_q, seq_k)
    attention_scores = np.matmul(query, np.swapaxes(key, -1, -2))
    scaled_attention_scores = attention_scores / np.sqrt(d_k)

    if mask is not None:
        scaled_attention_scores = np.where(mask, scaled_attention_scores, -np.inf)

    attention_weights = softmax(scaled_attention_scores, axis=-1)

    # (..., seq_q, seq_k) @ (..., seq_k, d_v) -> (..., seq_q, d_v)
    attention_output = np.matmul(attention_weights, value)

    return attention_output, attention_weights


def _split_heads(matrix: np.ndarray, num_heads: int, head_dimension: int) -> np.ndarray:
    """(seq, d) -> (heads, seq, head_dim), dropping columns past num_heads * head_dim."""
    sequence_length = matrix.shape[0]
    used_columns = matrix[:, : num_heads * head_dimension]
    return used_columns.reshape(sequence_length, num_heads, head_dimension).transpose(
        1, 0, 2
    )


def multi_head_self_attention(
    query: np.ndarray,
    key: np.ndarray,
    value: np.ndarray,
    num_heads: int,
    causal: bool = True,
) -> np.ndarray:
    """
    Causal multi-head attention over one sequence.

    Head h works on columns [h * d_k, (h + 1) * d_k) of Q, K and V, where
    d_k = embedding_dim // num_heads. When embedding_dim is not a multiple of
    num_heads the trailing remainder columns belong to no head and are not
    part of the output; DecoderConfig rejects such shapes before they get
    here.

    Args:
        query: Matrix of shape (seq_len, embedding_dim)
        key: Matrix of shape (seq_len, embedding_dim)
        value: Matrix of shape (seq_len, embedding_dim)
        num_heads: Number of attention heads
        causal: Mask out future positions (the decoder always does)

    Returns:
        Concatenated head outputs, shape (seq_len, num_heads * d_k)

    Raises:
        DimensionMismatchError: If Q, K, V shapes disagree or
            embedding_dim < num_heads
    """
    query = as_matrix(query, "self_attention")
    key = as_matrix(key, "self_attention")
    value = as_matrix(value, "self_attention")

    if not (query.shape == key.shape == value.shape):
        raise DimensionMismatchError(
            "self_attention",
            f"query, key and value shapes differ: {query.shape}, {key.shape}, {value.shape}",
            query.shape,
            key.shape,
            value.shape,
        )

    sequence_length, embedding_dimension = query.shape
    if num_heads <= 0 or embedding_dimension < num_heads:
        raise DimensionMismatchError(
            "self_attention",
            f"cannot split {embedding_dimension} columns across {num_heads} heads",
            query.shape,
        )

    head_dimension = embedding_dimension // num_heads

    # An empty sequence has no rows to attend over; softmax cannot reduce it
    if sequence_length == 0:
        return np.zeros((0, num_heads * head_dimension))

    # All heads in one batched matmul: (heads, seq, head_dim)
    query_heads = _split_heads(query, num_heads, head_dimension)
    key_heads = _split_heads(key, num_heads, head_dimension)
    value_heads = _split_heads(value, num_heads, head_dimension)

    mask = create_causal_mask(sequence_length) if causal else None
    head_outputs, _ = scaled_dot_product_attention(
        query_heads, key_heads, value_heads, mask=mask
    )

    # (heads, seq, head_dim) -> (seq, heads, head_dim) -> (seq, heads * head_dim)
    return head_outputs.transpose(1, 0, 2).reshape(
        sequence_length, num_heads * head_dimension
    )


class MultiHeadSelfAttention:
    """
    Multi-Head Self-Attention Layer.

    Self-attention uses the same matrix as query, key and value. The layer
    owns no weights; it only fixes the number of heads.

    Attributes:
        num_heads: Number of attention heads (h)
    """

    def __init__(self, num_heads: int):
        self.num_heads = num_heads

    def forward(self, input_tensor: np.ndarray) -> np.ndarray:
        """
        Args:
            input_tensor: Sequence representation, shape (seq_len, embedding_dim)

        Returns:
            Attention output of the same shape (for evenly divisible widths)
        """
        return multi_head_self_attention(
            input_tensor, input_tensor, input_tensor, self.num_heads
        )


# =============================================================================
# EDUCATIONAL DEMO
# Run with: python -m tinydecoder.attention
# =============================================================================
if __name__ == "__main__":
    print("=" * 70)
    print("CAUSAL MULTI-HEAD ATTENTION DEMO")
    print("=" * 70)
    print()

    generator = np.random.default_rng(42)
    seq_len = 4
    x = generator.uniform(-1.0, 1.0, size=(seq_len, 8))

    mask = create_causal_mask(seq_len)
    print("Causal mask (Y = can attend):")
    for i in range(seq_len):
        print("  Pos {}:  {}".format(i, "  ".join("Y" if m else "-" for m in mask[i])))
    print()

    _, weights = scaled_dot_product_attention(x, x, x, mask=mask)
    print("Attention weights with the mask applied:")
    for i in range(seq_len):
        print("  Pos {}:  {}".format(i, "  ".join(f"{w:.3f}" for w in weights[i])))
    print()
    print("Every weight above the diagonal is exactly 0.")
    print()

    output = multi_head_self_attention(x, x, x, num_heads=2)
    print(f"Two heads of width 4 each: input {x.shape} -> output {output.shape}")
