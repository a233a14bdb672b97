from __future__ import annotations

import logging
import sys

from mcp.server.fastmcp import FastMCP

from .config import Settings, load_settings
from .errors import DiceError
from .parser import parse_request
from .render import to_payload


def parse_dice(text: str):
    """Parse tabletop dice notation such as '2d20kh1 + 3d6!! - floor(4d10)'.

    Input: text (string)
    Output: structured JSON with the expression tree and the ordered dice rolls

    Nothing is rolled. Raises a hard error (exception) on invalid notation.
    """

    try:
        return to_payload(parse_request(text))
    except DiceError as e:
        # Fail-fast: surface stable error codes in the message.
        raise ValueError(str(e)) from None


def create_server(settings: Settings) -> FastMCP:
    mcp = FastMCP(settings.server_name)
    mcp.tool()(parse_dice)
    return mcp


def run() -> None:
    settings = load_settings()
    # stdout belongs to the stdio transport.
    logging.basicConfig(stream=sys.stderr, level=settings.log_level)
    create_server(settings).run(transport=settings.transport)


if __name__ == "__main__":
    run()
