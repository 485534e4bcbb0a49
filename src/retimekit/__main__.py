#!/usr/bin/env python3
# /// script
# requires-python = ">=3.12"
# dependencies = [
#   "click",
#   "rich",
# ]
# ///

"""
Keyframe Retiming Toolkit

Converts animated compositions between frame rates while keeping every
keyframe in order and every cubic-bezier easing curve intact.
"""

from __future__ import annotations

from retimekit.cli import main


if __name__ == "__main__":
    main()
