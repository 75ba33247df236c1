"""Tests for the Brand Snapshot backend."""
