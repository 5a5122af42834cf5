"""
Activation Functions

Forward-only activation functions used by the decoder pipeline.

Functions:
    softmax: Converts logits to a probability distribution along an axis
    relu: Rectified Linear Unit, used in the feed-forward sublayer

Reference:
    "Attention Is All You Need" (Vaswani et al., 2017) - Softmax in attention,
    ReLU in the position-wise feed-forward network
"""

import numpy as np


def softmax(logits: np.ndarray, axis: int = -1) -> np.ndarray:
    """
    Compute softmax activation function.

    Converts a vector of arbitrary real values (logits) into a probability
    distribution where all values are in [0, 1] and sum to 1. Applied to a
    matrix with the default axis, every row is normalised independently.

    Mathematical Formula:
        softmax(x)_i = exp(x_i) / sum_j(exp(x_j))

    Numerical Stability:
        We subtract max(x) from all values before exponentiation to prevent
        overflow. This doesn't change the result because:
        exp(x_i - max) / sum(exp(x_j - max)) = exp(x_i) / sum(exp(x_j))

        Entries equal to -inf (masked attention scores) become exactly 0, as
        long as at least one entry along the axis is finite.

    Args:
        logits: Input array of any shape. Must not be empty along `axis`.
        axis: The axis along which to compute softmax. Default is -1 (last axis).

    Returns:
        probabilities: Array of same shape as input, with softmax applied along
                      the specified axis.

    Example:
        >>> logits = np.array([1.0, 2.0, 3.0])
        >>> probs = softmax(logits)
        >>> print(probs)  # [0.09, 0.24, 0.67]
        >>> print(np.sum(probs))  # 1.0
    """
    logits = np.asarray(logits, dtype=np.float64)

    # Step 1: Subtract maximum for numerical stability
    max_logit = np.max(logits, axis=axis, keepdims=True)
    stable_logits = logits - max_logit

    # Step 2: Compute exponentials (all <= 1 after the shift)
    exponentials = np.exp(stable_logits)

    # Step 3: Normalize to get probabilities
    sum_of_exponentials = np.sum(exponentials, axis=axis, keepdims=True)
    probabilities = exponentials / sum_of_exponentials

    return probabilities


def relu(x: np.ndarray) -> np.ndarray:
    """
    Compute ReLU (Rectified Linear Unit) activation.

    Formula:
        ReLU(x) = max(0, x)

    Args:
        x: Input array of any shape

    Returns:
        Output array of same shape with negative values zeroed
    """
    return np.maximum(0, x)


# =============================================================================
# EDUCATIONAL DEMO
# Run with: python -m tinydecoder.activations
# =============================================================================
if __name__ == "__main__":
    print("=" * 70)
    print("ACTIVATION FUNCTIONS DEMO")
    print("=" * 70)
    print()

    logits = np.array([2.0, 1.0, 0.1])
    print(f"Logits:           {logits}")
    print(f"Softmax:          {softmax(logits).round(3)}")
    print(f"Softmax (+1000):  {softmax(logits + 1000.0).round(3)}")
    print("  Shifting every logit by a constant leaves the distribution unchanged.")
    print()

    masked = np.array([0.5, -np.inf, 1.5])
    print(f"Masked logits:    {masked}")
    print(f"Softmax:          {softmax(masked).round(3)}")
    print("  A -inf entry receives exactly zero probability.")
    print()

    x = np.array([-2.0, -0.5, 0.0, 0.5, 2.0])
    print(f"ReLU({x}) = {relu(x)}")
