#!/usr/bin/env python3
"""
Main entry point for the session client
"""

from authsession.main import run

if __name__ == "__main__":
    run()
