"""Recipes Service."""
