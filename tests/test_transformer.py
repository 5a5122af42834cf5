"""
Tests for transformer module (FeedForwardNetwork, TransformerLayer, stack).

Tests cover:
- Feed-forward network (FFN) with ReLU and zero biases
- Transformer layer: attention + residual/norm + FFN + residual/norm + dropout
- Stacking layers
"""

import numpy as np
import pytest

from tinydecoder.config import DecoderConfig
from tinydecoder.random_source import NumpyRandomSource


@pytest.fixture
def small_config():
    return DecoderConfig(
        num_layers=2,
        num_heads=2,
        embedding_dim=8,
        ffn_hidden_dim=16,
        max_sequence_length=10,
        vocab_size=20,
        dropout_prob=0.0,
    )


class TestFeedForwardNetwork:
    """
    FFN(x) = ReLU(x @ W1 + b1) @ W2 + b2

    Reference: "Attention Is All You Need" Section 3.3
    """

    def test_ffn_output_shape(self):
        from tinydecoder.transformer import FeedForwardNetwork

        ffn = FeedForwardNetwork(embedding_dimension=16, hidden_dimension=64)

        output = ffn.forward(np.random.randn(5, 16))

        assert output.shape == (5, 16)

    def test_ffn_weight_shapes(self):
        from tinydecoder.transformer import FeedForwardNetwork

        ffn = FeedForwardNetwork(embedding_dimension=4, hidden_dimension=8)
        params = ffn.get_parameters()

        assert params["ffn_linear1_weight"].shape == (4, 8)
        assert params["ffn_linear1_bias"].shape == (8,)
        assert params["ffn_linear2_weight"].shape == (8, 4)
        assert params["ffn_linear2_bias"].shape == (4,)

    def test_ffn_matches_manual_computation(self):
        from tinydecoder.transformer import FeedForwardNetwork

        ffn = FeedForwardNetwork(4, 8, NumpyRandomSource(seed=1))
        x = np.random.randn(3, 4)

        expected = np.maximum(0, x @ ffn.linear_1.weights) @ ffn.linear_2.weights

        assert np.allclose(ffn.forward(x), expected)

    def test_feed_forward_samples_new_weights_per_call(self):
        from tinydecoder.transformer import feed_forward

        source = NumpyRandomSource(seed=5)
        x = np.random.randn(3, 4)

        first = feed_forward(x, 8, source)
        second = feed_forward(x, 8, source)

        assert first.shape == second.shape == (3, 4)
        assert not np.allclose(first, second)

    def test_feed_forward_reproducible_with_same_seed(self):
        from tinydecoder.transformer import feed_forward

        x = np.random.randn(3, 4)

        assert np.array_equal(
            feed_forward(x, 8, NumpyRandomSource(seed=7)),
            feed_forward(x, 8, NumpyRandomSource(seed=7)),
        )


class TestTransformerLayer:
    def test_layer_output_shape(self, small_config):
        from tinydecoder.transformer import transformer_layer

        x = np.random.randn(6, small_config.embedding_dim)

        output = transformer_layer(x, small_config, NumpyRandomSource(seed=0))

        assert output.shape == x.shape

    def test_output_rows_are_normalized_without_dropout(self, small_config):
        """With dropout off the last step is LayerNorm."""
        from tinydecoder.transformer import TransformerLayer

        layer = TransformerLayer(
            embedding_dimension=8,
            num_heads=2,
            ffn_hidden_dimension=16,
            dropout_rate=0.5,
            random_source=NumpyRandomSource(seed=0),
        )
        output = layer.forward(np.random.randn(4, 8), training=False)

        assert np.allclose(output.mean(axis=-1), 0.0, atol=1e-7)
        assert np.allclose(output.var(axis=-1), 1.0, atol=1e-3)

    def test_empty_sequence_passes_through(self):
        from tinydecoder.transformer import TransformerLayer

        layer = TransformerLayer(8, 2, 16, 0.0, NumpyRandomSource(seed=0))

        output = layer.forward(np.zeros((0, 8)))

        assert output.shape == (0, 8)

    def test_layer_matches_manual_composition(self):
        from tinydecoder.attention import multi_head_self_attention
        from tinydecoder.layers import layer_norm
        from tinydecoder.transformer import TransformerLayer

        layer = TransformerLayer(8, 2, 16, 0.0, NumpyRandomSource(seed=2))
        x = np.random.randn(5, 8)

        attended = layer_norm(x + multi_head_self_attention(x, x, x, 2))
        expected = layer_norm(attended + layer.feed_forward.forward(attended))

        assert np.allclose(layer.forward(x), expected)

    def test_layer_is_causal(self, small_config):
        """Output row i depends only on input rows 0..i."""
        from tinydecoder.transformer import TransformerLayer

        layer = TransformerLayer(8, 2, 16, 0.0, NumpyRandomSource(seed=4))
        x = np.random.randn(5, 8)
        changed = x.copy()
        changed[3:] = np.random.randn(2, 8)

        assert np.allclose(layer.forward(x)[:3], layer.forward(changed)[:3])

    def test_dropout_applied_in_training(self):
        from tinydecoder.transformer import TransformerLayer

        layer = TransformerLayer(8, 2, 16, 0.5, NumpyRandomSource(seed=0))
        output = layer.forward(np.random.randn(10, 8), training=True)

        assert np.any(output == 0.0)


class TestTransformerStack:
    def test_stack_has_configured_layers(self, small_config):
        from tinydecoder.transformer import TransformerStack

        stack = TransformerStack(small_config, NumpyRandomSource(seed=0))

        assert len(stack.layers) == small_config.num_layers
        assert "layer_1_ffn_linear2_weight" in stack.get_parameters()

    def test_stack_applies_layers_in_order(self, small_config):
        from tinydecoder.transformer import TransformerStack

        stack = TransformerStack(small_config, NumpyRandomSource(seed=0))
        x = np.random.randn(4, 8)

        expected = stack.layers[1].forward(stack.layers[0].forward(x))

        assert np.allclose(stack.forward(x), expected)

    def test_empty_stack_is_identity(self, small_config):
        from dataclasses import replace

        from tinydecoder.transformer import TransformerStack

        stack = TransformerStack(replace(small_config, num_layers=0))
        x = np.random.randn(4, 8)

        assert np.array_equal(stack.forward(x), x)
