#!/usr/bin/env python3
"""Entry point for the Portfolio Risk Simulator."""

from risk_simulator.cli import main

if __name__ == "__main__":
    main()
