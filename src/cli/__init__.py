"""Operator CLI for scene code generation."""
