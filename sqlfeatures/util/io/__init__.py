#!/usr/bin/env python
"""Stream filters and file openers"""
