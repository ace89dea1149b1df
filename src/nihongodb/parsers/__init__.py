"""Parsers for Japanese text notations."""
