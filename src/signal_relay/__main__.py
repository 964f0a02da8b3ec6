#!/usr/bin/env python3
"""Entry point for running the relay as a module."""

import sys

from signal_relay.main import main

if __name__ == "__main__":
    sys.exit(main())
