"""
Decoder Configuration

All hyperparameters that define the decoder live in one immutable record
that is passed explicitly to every stage. Nothing reads a process-wide
default.
"""

from dataclasses import asdict, dataclass, fields
from numbers import Integral, Real

from tinydecoder.errors import ConfigurationError


def _is_integer(value) -> bool:
    """True for int-like values, excluding bool."""
    return isinstance(value, Integral) and not isinstance(value, bool)


@dataclass(frozen=True)
class DecoderConfig:
    """
    Configuration for the decoder.

    Attributes:
        num_layers: Number of transformer layers
        num_heads: Number of attention heads
        embedding_dim: Dimension of token embeddings (d_model in papers)
        ffn_hidden_dim: Hidden dimension of the feed-forward network
        max_sequence_length: Longer token sequences are truncated to this
        vocab_size: Rows of the embedding table and width of the output
        dropout_prob: Dropout probability applied after every layer

    Raises:
        ConfigurationError: On construction, if any value is out of range or
            embedding_dim is not a multiple of num_heads
    """

    num_layers: int
    num_heads: int
    embedding_dim: int
    ffn_hidden_dim: int
    max_sequence_length: int
    vocab_size: int
    dropout_prob: float

    def __post_init__(self):
        for name in (
            "num_heads",
            "embedding_dim",
            "ffn_hidden_dim",
            "max_sequence_length",
            "vocab_size",
        ):
            value = getattr(self, name)
            if not _is_integer(value) or value <= 0:
                raise ConfigurationError(
                    f"{name} must be a positive integer, got {value!r}"
                )

        if not _is_integer(self.num_layers) or self.num_layers < 0:
            raise ConfigurationError(
                f"num_layers must be a non-negative integer, got {self.num_layers!r}"
            )

        # bool is a Real
        dropout_prob = self.dropout_prob
        if isinstance(dropout_prob, bool) or not isinstance(dropout_prob, Real):
            raise ConfigurationError(
                f"dropout_prob must be a number in [0, 1), got {dropout_prob!r}"
            )
        if not 0.0 <= dropout_prob < 1.0:
            raise ConfigurationError(
                f"dropout_prob must be in [0, 1), got {dropout_prob!r}"
            )

        if self.embedding_dim % self.num_heads != 0:
            raise ConfigurationError(
                f"Embedding dimension ({self.embedding_dim}) must be divisible by "
                f"number of heads ({self.num_heads})"
            )

    @property
    def head_dim(self) -> int:
        """Width of the column slice each attention head sees."""
        return self.embedding_dim // self.num_heads

    @classmethod
    def reference(cls) -> "DecoderConfig":
        """Hyperparameters used by run_demo.py when nothing is overridden."""
        return cls(
            num_layers=4,
            num_heads=4,
            embedding_dim=256,
            ffn_hidden_dim=512,
            max_sequence_length=128,
            vocab_size=128,
            dropout_prob=0.1,
        )

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, values: dict) -> "DecoderConfig":
        """
        Build a config from a dictionary, ignoring unknown keys.

        Raises:
            ConfigurationError: If a field is missing or invalid
        """
        names = {field.name for field in fields(cls)}
        missing = names - set(values)
        if missing:
            raise ConfigurationError(
                f"missing configuration fields: {sorted(missing)}"
            )
        return cls(**{name: values[name] for name in names})
