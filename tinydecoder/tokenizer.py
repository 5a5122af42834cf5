"""
Character Tokenizer

The decoder consumes integer token IDs. This tokenizer maps each Unicode code
point of the text to its integer value, so there is no vocabulary to learn
and no out-of-vocabulary token: IDs beyond the model's vocab_size are wrapped
by the embedding lookup.

Classes:
    CharacterTokenizer: encode/decode between text and code points

Functions:
    string_to_tokens: Functional form of CharacterTokenizer.encode
"""

from typing import Iterable, List


class CharacterTokenizer:
    """
    Code-point tokenizer.

    Example:
        >>> tokenizer = CharacterTokenizer()
        >>> tokenizer.encode("hi!")
        [104, 105, 33]
        >>> tokenizer.decode([104, 105, 33])
        'hi!'
    """

    def encode(self, text: str) -> List[int]:
        """Return one token per code point (so "สวัสดี" yields six IDs)."""
        return [ord(character) for character in text]

    def decode(self, token_ids: Iterable[int]) -> str:
        """
        Inverse of encode.

        Raises:
            ValueError: If an ID is not a valid code point
        """
        return "".join(chr(token_id) for token_id in token_ids)


def string_to_tokens(text: str) -> List[int]:
    """Tokenize text into code points."""
    return CharacterTokenizer().encode(text)
