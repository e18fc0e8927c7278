"""Gemvest command-line interface."""
