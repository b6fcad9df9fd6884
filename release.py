#!/usr/bin/env python3
"""
Release script for the web build.

Compiles the game for wasm32-unknown-unknown, generates the wasm-bindgen web
bindings and zips them with assets/ and index.html into game.zip.

Usage:
    python release.py [--config release.yaml] [--skip-build] [--debug]
"""
import sys

from webbundle.cli import main

if __name__ == "__main__":
    sys.exit(main())
