"""
Untrained Decoder-Only Transformer Reference

This package computes a forward pass through a small decoder-style
transformer using only NumPy: a token sequence goes in, a per-position
probability distribution over the vocabulary comes out. Weights are sampled
afresh for every forward pass, so the output illustrates the computation and
is not a meaningful prediction.

Modules:
    errors: DimensionMismatchError and ConfigurationError
    linalg: Shape-checked multiply, transpose and add
    activations: Activation functions (softmax, ReLU)
    random_source: Pluggable randomness for weights and dropout masks
    config: DecoderConfig, the immutable model configuration
    layers: Linear, LayerNorm, Embedding, PositionalEncoding, Dropout
    attention: Causal multi-head self-attention
    transformer: Feed-forward network and transformer layers
    model: DecoderModel and the forward_pass entry point
    tokenizer: Code-point tokenizer

Reference:
    "Attention Is All You Need" (Vaswani et al., 2017)
    https://arxiv.org/abs/1706.03762
"""

__version__ = "1.0.0"
