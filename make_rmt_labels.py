#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
Allocate RMT identifiers and print them as QR label sheets.
"""

# local repo modules
import rmt_label_sheets.cli


if __name__ == "__main__":
	rmt_label_sheets.cli.main()
