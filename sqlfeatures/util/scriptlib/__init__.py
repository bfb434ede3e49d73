#!/usr/bin/env python
"""Tools for writing command-line scripts"""
