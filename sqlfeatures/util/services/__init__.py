#!/usr/bin/env python
"""Exceptions, warnings, and warning filters"""
