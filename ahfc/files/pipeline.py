"""
Streaming Pipeline

Cuts the compressed payload into fixed-size blocks and feeds them, in
order, through the active block transform. Block boundaries are never
stored: decode recomputes them from BLOCK_SIZE and the ciphertext length.
"""

import logging
from typing import Callable, Generator, Optional

from ..core_crypto.block_cipher import BlockTransform


logger = logging.getLogger(__name__)

# Chunk size for streaming (1 MiB)
BLOCK_SIZE = 1024 * 1024

ProgressCallback = Callable[[int, int], None]


def block_count(length: int, block_size: int = BLOCK_SIZE) -> int:
    """Number of blocks a payload of `length` bytes is cut into."""
    if block_size <= 0:
        raise ValueError("Block size must be positive")
    return -(-length // block_size)


def iter_blocks(data: bytes, block_size: int = BLOCK_SIZE) -> Generator[bytes, None, None]:
    """
    Yield sequential slices of at most `block_size` bytes.

    Args:
        data: Payload to cut
        block_size: Maximum block size

    Yields:
        Blocks in payload order
    """
    if block_size <= 0:
        raise ValueError("Block size must be positive")
    view = memoryview(data)
    for offset in range(0, len(data), block_size):
        yield bytes(view[offset:offset + block_size])


def run_pipeline(data: bytes, transform: BlockTransform,
                 progress: Optional[ProgressCallback] = None,
                 block_size: int = BLOCK_SIZE) -> bytes:
    """
    Feed every block through `transform` and collect the output in order.

    Args:
        data: Payload (compressed plaintext or ciphertext)
        transform: Encrypting or decrypting block transform
        progress: Optional sink called as progress(done, total) per block
        block_size: Maximum block size

    Returns:
        Concatenated transform output, including finalize() output
    """
    total = block_count(len(data), block_size)
    output = []

    for done, block in enumerate(iter_blocks(data, block_size), start=1):
        output.append(transform.update(block))
        if progress is not None:
            progress(done, total)

    output.append(transform.finalize())
    logger.debug("Processed %d block(s), %d bytes", total, len(data))
    return b"".join(output)
