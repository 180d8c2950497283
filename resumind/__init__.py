"""Resumind - ATS-style resume feedback pipeline."""
