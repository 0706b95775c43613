"""Building blocks for reading Source 2 game replays: var types, fx hash, quantized floats, string tables, Huffman tree."""

__version__ = "0.1.0"