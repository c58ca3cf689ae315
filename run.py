"""
Backlog Unroller - Entry Point
==============================
Open the configured board and keep it unrolled.
Usage:  python run.py [--url URL] [--harvest | --find PHRASE] [--duration S]
"""
import os
import sys

# Ensure project root is on the Python path
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from core.driver import main

if __name__ == '__main__':
    main()
