"""
Overtime Attribution Engine - MCP Server

FastMCP server exposing the overtime analysis tool:
- calculate_overtime_analysis: regular / overtime split, tiered premiums,
  earned, cost and profit per user, day and ISO week
"""

import logging

from engines.config import get_settings

settings = get_settings()

# Configure logging
logging.basicConfig(level=getattr(logging, settings.log_level.upper(), logging.INFO))
logger = logging.getLogger(__name__)

# Import the MCP instance from the tool module
# This registers the tools with the MCP server
from engines.tools.overtime_engine import mcp  # noqa: E402

# Configure the MCP server
mcp.name = settings.app_name
mcp.description = """
Overtime attribution for time-tracking data.

**Overtime Analysis** (calculate_overtime_analysis)
   - Groups entries by user and calendar day in the viewer's timezone
   - Resolves daily capacity and multipliers from per-day, weekly and
     global overrides, profile capacity and defaults
   - Holidays, non-working days and time off reduce capacity
   - Tail attribution: overtime lands on the latest work of the day or week
   - Daily, weekly or combined overtime basis
   - Two-tier premiums with earned, cost and profit per entry

Every analysis carries a SHA-256 fingerprint so stored reports can be
reproduced exactly.
"""


def main():
    """Run the MCP server."""
    logger.info(f"Starting {settings.app_name} MCP Server v{settings.app_version}")
    mcp.run()


if __name__ == "__main__":
    main()
