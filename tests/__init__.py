"""Test package for Crackify."""
