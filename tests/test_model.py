"""
Tests for the Decoder Model Module

Tests the complete forward pipeline:
- Output shape and truncation
- Probability simplex rows
- Weight sampling, reuse and reproducibility
- Dropout mode flag
"""

import numpy as np
import pytest

from tinydecoder.config import DecoderConfig
from tinydecoder.errors import DimensionMismatchError
from tinydecoder.model import DecoderModel, forward_pass
from tinydecoder.random_source import NumpyRandomSource


class CountingRandomSource(NumpyRandomSource):
    """NumpyRandomSource that records how many draws were made."""

    def __init__(self, seed=None):
        super().__init__(seed)
        self.uniform_calls = 0
        self.bernoulli_calls = 0

    def uniform(self, shape):
        self.uniform_calls += 1
        return super().uniform(shape)

    def bernoulli(self, shape, probability):
        self.bernoulli_calls += 1
        return super().bernoulli(shape, probability)


@pytest.fixture
def tiny_config():
    """The end-to-end scenario configuration."""
    return DecoderConfig(
        num_layers=1,
        num_heads=2,
        embedding_dim=4,
        ffn_hidden_dim=8,
        max_sequence_length=16,
        vocab_size=5,
        dropout_prob=0.0,
    )


@pytest.fixture
def small_config():
    return DecoderConfig(
        num_layers=2,
        num_heads=4,
        embedding_dim=16,
        ffn_hidden_dim=32,
        max_sequence_length=8,
        vocab_size=50,
        dropout_prob=0.1,
    )


class TestForwardPass:
    def test_end_to_end_scenario(self, tiny_config):
        probabilities = forward_pass([1, 2, 3], tiny_config)

        assert probabilities.shape == (3, 5)
        assert np.allclose(probabilities.sum(axis=-1), 1.0, atol=1e-6)

    def test_rows_are_probability_distributions(self, small_config):
        tokens = list(range(0, 400, 57))

        probabilities = forward_pass(tokens, small_config, NumpyRandomSource(seed=0))

        assert np.all(probabilities >= 0.0)
        assert np.all(probabilities <= 1.0)
        assert np.allclose(probabilities.sum(axis=-1), 1.0, atol=1e-6)

    @pytest.mark.parametrize("num_tokens", [1, 7, 8, 9, 30])
    def test_output_shape_with_truncation(self, small_config, num_tokens):
        tokens = list(range(num_tokens))

        probabilities = forward_pass(tokens, small_config)

        expected_rows = min(num_tokens, small_config.max_sequence_length)
        assert probabilities.shape == (expected_rows, small_config.vocab_size)

    def test_empty_sequence(self, small_config):
        probabilities = forward_pass([], small_config)

        assert probabilities.shape == (0, small_config.vocab_size)

    def test_fresh_weights_on_every_call(self, tiny_config):
        source = NumpyRandomSource(seed=11)

        first = forward_pass([1, 2, 3], tiny_config, source)
        second = forward_pass([1, 2, 3], tiny_config, source)

        assert not np.allclose(first, second)

    def test_seeded_source_is_reproducible(self, small_config):
        tokens = [104, 101, 108, 108, 111]

        first = forward_pass(tokens, small_config, NumpyRandomSource(seed=3))
        second = forward_pass(tokens, small_config, NumpyRandomSource(seed=3))

        assert np.array_equal(first, second)

    def test_inference_mode_draws_no_dropout_masks(self, small_config):
        source = CountingRandomSource(seed=0)

        forward_pass([1, 2, 3], small_config, source, training=False)

        assert source.bernoulli_calls == 0
        assert source.uniform_calls > 0

    def test_training_mode_draws_dropout_masks(self, small_config):
        source = CountingRandomSource(seed=0)

        forward_pass([1, 2, 3], small_config, source, training=True)

        assert source.bernoulli_calls == small_config.num_layers


class TestDecoderModel:
    def test_weight_shapes(self, small_config):
        model = DecoderModel(small_config, NumpyRandomSource(seed=0))
        params = model.get_parameters()

        assert params["token_embedding_table"].shape == (50, 16)
        assert params["output_weight"].shape == (16, 50)
        assert params["layer_0_ffn_linear1_weight"].shape == (16, 32)
        assert params["layer_1_ffn_linear2_weight"].shape == (32, 16)

    def test_num_parameters(self, tiny_config):
        model = DecoderModel(tiny_config)

        # embedding 5*4, ffn 4*8 + 8 + 8*4 + 4, projection 4*5
        assert model.num_parameters() == 20 + 32 + 8 + 32 + 4 + 20

    def test_reused_model_is_deterministic_in_inference(self, small_config):
        model = DecoderModel(small_config, NumpyRandomSource(seed=0))

        first = model.forward([5, 6, 7], training=False)
        second = model.forward([5, 6, 7], training=False)

        assert np.array_equal(first, second)

    def test_forward_is_softmax_of_logits(self, tiny_config):
        model = DecoderModel(tiny_config, NumpyRandomSource(seed=0))

        logits = model.compute_logits([1, 2, 3], training=False)
        probabilities = model.forward([1, 2, 3], training=False)

        expected = np.exp(logits) / np.exp(logits).sum(axis=-1, keepdims=True)
        assert np.allclose(probabilities, expected)

    def test_token_ids_wrap_modulo_vocab(self, tiny_config):
        model = DecoderModel(tiny_config, NumpyRandomSource(seed=0))

        assert np.array_equal(
            model.forward([1, 2, 3], training=False),
            model.forward([6, 12, 3 + 5 * 1000], training=False),
        )

    def test_earlier_positions_ignore_later_tokens(self, small_config):
        """Causal masking carries through the whole pipeline."""
        model = DecoderModel(small_config, NumpyRandomSource(seed=0))

        short = model.forward([10, 20, 30], training=False)
        longer = model.forward([10, 20, 30, 40, 50], training=False)

        assert np.allclose(short, longer[:3])

    def test_predict_next_token(self, small_config):
        model = DecoderModel(small_config, NumpyRandomSource(seed=0))

        token = model.predict_next_token([1, 2, 3])
        probabilities = model.forward([1, 2, 3], training=False)

        assert 0 <= token < small_config.vocab_size
        assert token == int(np.argmax(probabilities[-1]))

    def test_predict_next_token_on_empty_input(self, small_config):
        model = DecoderModel(small_config)

        with pytest.raises(ValueError):
            model.predict_next_token([])

    def test_dimension_errors_propagate(self, tiny_config):
        model = DecoderModel(tiny_config, NumpyRandomSource(seed=0))
        model.output_projection.weights = np.ones((3, 5))

        with pytest.raises(DimensionMismatchError):
            model.forward([1, 2])
