"""
Reading the response head before deciding on the body.

Uses get_status_headers_and_body_stream to look at the status and
headers, then reads only a prefix of the body and hangs up.
"""

import logging
import sys

from microget import MicrogetClient

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


def peek(url: str, prefix: int = 512) -> None:
    client = MicrogetClient()
    head, connection = client.get_status_headers_and_body_stream(url)
    try:
        logger.info(f"HTTP/{head.http_version} {head.status_code} {head.reason}")
        for name, value in head.headers.items():
            logger.info(f"  {name}: {value}")

        if head.content_length is not None:
            logger.info(f"Body is {head.content_length} bytes")

        data = connection.read(prefix)
        logger.info(f"First {len(data)} body bytes: {data[:80]!r}")
    finally:
        connection.close()


if __name__ == "__main__":
    peek(sys.argv[1] if len(sys.argv) > 1 else "http://example.com/")
