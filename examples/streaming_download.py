"""
Streaming download example using microget.

Downloads a URL straight to a file, one buffer at a time, and gives up
on anything but a 200 before reading a single body byte.

    python examples/streaming_download.py http://example.com/big.bin out.bin
"""

import logging
import sys
import time

from microget import ClientConfig, MicrogetError, perform_get

# Configure logging
logging.basicConfig(level=logging.DEBUG)
logger = logging.getLogger(__name__)


def download(url: str, path: str) -> int:
    """Stream url into path, return the number of body bytes."""
    config = ClientConfig(open_timeout=5.0, read_timeout=30.0)

    with open(path, "wb") as out:
        def write_chunk(status_code, headers, chunk):
            if status_code != 200:
                logger.warning(f"Server answered {status_code}, not downloading")
                return False
            out.write(chunk.view)
            return True

        return perform_get(url, write_chunk, config=config)


def main() -> int:
    if len(sys.argv) != 3:
        print(__doc__)
        return 2

    url, path = sys.argv[1:]
    started = time.time()
    try:
        size = download(url, path)
    except MicrogetError as e:
        logger.error(f"Download failed: {e}")
        return 1

    duration = time.time() - started
    logger.info(f"Downloaded {size} bytes in {duration:.2f}s")
    return 0


if __name__ == "__main__":
    sys.exit(main())
