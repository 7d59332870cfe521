"""Test doubles for the store publisher collaborators."""
