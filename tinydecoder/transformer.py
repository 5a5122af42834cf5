"""
Transformer Architecture Components

This module implements the feed-forward sublayer and the transformer layer
that combines it with attention, residual connections and normalization.

The transformer layer is the repeating unit that gets stacked to create the
full decoder. It uses the Post-LayerNorm arrangement of the 2017 paper:

    x -> Attention -> + x -> LayerNorm -> FFN -> + -> LayerNorm -> Dropout

Reference: "Attention Is All You Need" (Vaswani et al., 2017) Section 3.1, 3.3

Functions:
    feed_forward: One feed-forward pass with freshly sampled weights
    transformer_layer: One transformer layer pass with freshly sampled weights

Classes:
    FeedForwardNetwork: Position-wise feed-forward network
    TransformerLayer: Single transformer decoder layer
    TransformerStack: Stack of transformer layers
"""

from typing import List, Optional

import numpy as np

from tinydecoder.activations import relu
from tinydecoder.attention import MultiHeadSelfAttention
from tinydecoder.config import DecoderConfig
from tinydecoder.layers import Dropout, LayerNorm, Linear
from tinydecoder.linalg import add
from tinydecoder.random_source import NumpyRandomSource, RandomSource


class FeedForwardNetwork:
    """
    Position-wise Feed-Forward Network.

    Applied independently to each position in the sequence:

        FFN(x) = ReLU(x @ W_1 + b_1) @ W_2 + b_2

    W_1 is (embedding_dim, hidden_dim), W_2 is (hidden_dim, embedding_dim),
    and both biases start at zero.

    Reference: "Attention Is All You Need" Section 3.3

    Attributes:
        embedding_dimension: Input/output dimension (d_model)
        hidden_dimension: Inner dimension (d_ff)
        linear_1: First linear transformation (expansion)
        linear_2: Second linear transformation (compression)
    """

    def __init__(
        self,
        embedding_dimension: int,
        hidden_dimension: int,
        random_source: Optional[RandomSource] = None,
    ):
        self.embedding_dimension = embedding_dimension
        self.hidden_dimension = hidden_dimension

        random_source = random_source or NumpyRandomSource()

        # Expand from d_model to d_ff
        self.linear_1 = Linear(embedding_dimension, hidden_dimension, random_source)
        # Compress from d_ff back to d_model
        self.linear_2 = Linear(hidden_dimension, embedding_dimension, random_source)

    def forward(self, input_tensor: np.ndarray) -> np.ndarray:
        """
        Forward pass through the feed-forward network.

        Args:
            input_tensor: Input of shape (seq_len, embedding_dim)

        Returns:
            Output of shape (seq_len, embedding_dim)
        """
        hidden = relu(self.linear_1.forward(input_tensor))
        return self.linear_2.forward(hidden)

    def get_parameters(self) -> dict:
        """Return all weights."""
        params = {}
        params.update(
            {f"ffn_linear1_{k}": v for k, v in self.linear_1.get_parameters().items()}
        )
        params.update(
            {f"ffn_linear2_{k}": v for k, v in self.linear_2.get_parameters().items()}
        )
        return params


def feed_forward(
    input_tensor: np.ndarray,
    ffn_hidden_dim: int,
    random_source: Optional[RandomSource] = None,
) -> np.ndarray:
    """
    Run the feed-forward sublayer with weights sampled for this call only.

    Two calls on the same input generally differ, since each call samples
    new W_1 and W_2.
    """
    input_tensor = np.asarray(input_tensor, dtype=np.float64)
    network = FeedForwardNetwork(input_tensor.shape[-1], ffn_hidden_dim, random_source)
    return network.forward(input_tensor)


class TransformerLayer:
    """
    Single Transformer Decoder Layer.

    Architecture (Post-LN):
        1. attended = LayerNorm(x + SelfAttention(x))
        2. output   = LayerNorm(attended + FFN(attended))
        3. output   = Dropout(output)

    Attention has no weights of its own here, so the only sampled weights
    are the two feed-forward projections.
    """

    def __init__(
        self,
        embedding_dimension: int,
        num_heads: int,
        ffn_hidden_dimension: int,
        dropout_rate: float = 0.0,
        random_source: Optional[RandomSource] = None,
    ):
        """
        Initialize a Transformer Layer.

        Args:
            embedding_dimension: Model dimension (d_model)
            num_heads: Number of attention heads
            ffn_hidden_dimension: FFN hidden dimension
            dropout_rate: Dropout rate applied to the layer output
            random_source: Source of FFN weights and dropout masks
        """
        self.embedding_dimension = embedding_dimension
        self.num_heads = num_heads

        random_source = random_source or NumpyRandomSource()

        self.self_attention = MultiHeadSelfAttention(num_heads)
        self.attention_layer_norm = LayerNorm()
        self.feed_forward = FeedForwardNetwork(
            embedding_dimension, ffn_hidden_dimension, random_source
        )
        self.ffn_layer_norm = LayerNorm()
        self.dropout = Dropout(dropout_rate, random_source)

    def forward(self, input_tensor: np.ndarray, training: bool = True) -> np.ndarray:
        """
        Forward pass through the transformer layer.

        Args:
            input_tensor: Input of shape (seq_len, embedding_dim)
            training: Apply dropout (the reference behaviour) when True

        Returns:
            Output of shape (seq_len, embedding_dim)
        """
        # ============ Attention Sub-block ============
        attention_output = self.self_attention.forward(input_tensor)
        attention_output = add(input_tensor, attention_output)
        attention_output = self.attention_layer_norm.forward(attention_output)

        # ============ Feed-Forward Sub-block ============
        ffn_output = self.feed_forward.forward(attention_output)
        ffn_output = add(attention_output, ffn_output)
        ffn_output = self.ffn_layer_norm.forward(ffn_output)

        return self.dropout.forward(ffn_output, training=training)

    def get_parameters(self) -> dict:
        """Return all weights."""
        return self.feed_forward.get_parameters()


def transformer_layer(
    input_tensor: np.ndarray,
    config: DecoderConfig,
    random_source: Optional[RandomSource] = None,
    training: bool = True,
) -> np.ndarray:
    """Run one transformer layer with weights sampled for this call only."""
    layer = TransformerLayer(
        embedding_dimension=config.embedding_dim,
        num_heads=config.num_heads,
        ffn_hidden_dimension=config.ffn_hidden_dim,
        dropout_rate=config.dropout_prob,
        random_source=random_source,
    )
    return layer.forward(input_tensor, training=training)


class TransformerStack:
    """
    Stack of Transformer Layers.

    Each layer's output is the next layer's input. A stack of zero layers
    passes its input through unchanged.

    Attributes:
        layers: List of TransformerLayer instances
        num_layers: Number of transformer layers
    """

    def __init__(
        self, config: DecoderConfig, random_source: Optional[RandomSource] = None
    ):
        self.num_layers = config.num_layers

        random_source = random_source or NumpyRandomSource()

        self.layers: List[TransformerLayer] = []
        for _ in range(config.num_layers):
            layer = TransformerLayer(
                embedding_dimension=config.embedding_dim,
                num_heads=config.num_heads,
                ffn_hidden_dimension=config.ffn_hidden_dim,
                dropout_rate=config.dropout_prob,
                random_source=random_source,
            )
            self.layers.append(layer)

    def forward(self, input_tensor: np.ndarray, training: bool = True) -> np.ndarray:
        hidden_states = input_tensor

        for layer in self.layers:
            hidden_states = layer.forward(hidden_states, training=training)

        return hidden_states

    def get_parameters(self) -> dict:
        """Return all weights from all layers."""
        params = {}
        for i, layer in enumerate(self.layers):
            layer_params = layer.get_parameters()
            params.update({f"layer_{i}_{k}": v for k, v in layer_params.items()})
        return params
