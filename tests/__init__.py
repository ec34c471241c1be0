"""Test suite and fixture circuits."""
