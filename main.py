#!/usr/bin/env python3
"""
Entry point for the web crawler.
Seeds the frontier, starts workers, waits for completion, prints the summary.
"""

import sys

from bounded_crawler.cli import main

if __name__ == "__main__":
    sys.exit(main())
