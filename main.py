#!/usr/bin/env python3
"""
battlesim - turn-based creature battle simulator

Thin wrapper around the command-line session in battlesim.cli.

To run: python main.py --ally Chimchar --enemy Piplup
"""
import sys

from battlesim.cli import run

if __name__ == "__main__":
    sys.exit(run())
