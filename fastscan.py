#!/usr/bin/env python3
"""
fastscan - Somewhat speedy full-connect scanner

Finds the listening TCP ports on a single host, grabbing whatever
banner each open port sends first. Ports are scanned in random order
by a fixed pool of worker threads.

Usage:
    python fastscan.py -p 1-1024 example.com
    python fastscan.py -n 512 -w 500ms -f -p 22,80,8000-8010 10.0.0.5
"""

from fastscan.main import main

if __name__ == "__main__":
    main()
